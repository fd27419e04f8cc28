"""Message projector — joins a message with its resolved folder path."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mailbox_snapshot.graph.models import FLAG_COMPLETE, FLAG_NOT_FLAGGED, MailMessage

# Output record keys
RECORD_ID = "id"
RECORD_FOLDER = "folder"
RECORD_RECEIVED_AT = "receivedAt"
RECORD_SUBJECT = "subject"
RECORD_FLAGGED = "flagged"
RECORD_COMPLETED = "completed"
RECORD_READ = "read"


class UnknownFolderError(LookupError):
    """Raised when a message's folder has no entry in the path table."""

    def __init__(self, message_id: str, folder_id: str) -> None:
        super().__init__(f"Message {message_id!r} is in unknown folder {folder_id!r}")
        self.message_id = message_id
        self.folder_id = folder_id


def project_message(message: MailMessage, path_table: Mapping[str, str]) -> dict[str, Any]:
    """Build the output record for one message.

    ``completed`` is only present when the message's flag is complete.

    Raises:
        UnknownFolderError: If the message's folder is not in path_table.
    """
    folder = path_table.get(message.parent_folder_id)
    if folder is None:
        raise UnknownFolderError(message.id, message.parent_folder_id)

    record: dict[str, Any] = {
        RECORD_ID: message.id,
        RECORD_FOLDER: folder,
        RECORD_RECEIVED_AT: message.received_at,
        RECORD_SUBJECT: message.subject,
        RECORD_FLAGGED: message.flag_status != FLAG_NOT_FLAGGED,
    }
    if message.flag_status == FLAG_COMPLETE and message.completed_at:
        record[RECORD_COMPLETED] = message.completed_at
    record[RECORD_READ] = message.is_read
    return record
