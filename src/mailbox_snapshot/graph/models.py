"""Data models and field names for Microsoft Graph mail folders and messages."""

from dataclasses import dataclass

# Graph API JSON field names
FIELD_ID = "id"
FIELD_DISPLAY_NAME = "displayName"
FIELD_PARENT_FOLDER_ID = "parentFolderId"
FIELD_RECEIVED_DATE_TIME = "receivedDateTime"
FIELD_SUBJECT = "subject"
FIELD_FLAG = "flag"
FIELD_FLAG_STATUS = "flagStatus"
FIELD_COMPLETED_DATE_TIME = "completedDateTime"
FIELD_DATE_TIME = "dateTime"
FIELD_TIME_ZONE = "timeZone"
FIELD_IS_READ = "isRead"
FIELD_EXTENDED_PROPERTIES = "singleValueExtendedProperties"
FIELD_VALUE = "value"

# OData response keys
ODATA_NEXT_LINK = "@odata.nextLink"
ODATA_TYPE = "@odata.type"
ODATA_VALUE = "value"

# MAPI PR_CONTAINER_CLASS, exposed by Graph as an extended property.
CONTAINER_CLASS_PROPERTY_ID = "String 0x3613"

MESSAGE_ODATA_TYPE = "#microsoft.graph.message"

# Graph followupFlag.flagStatus values
FLAG_NOT_FLAGGED = "notFlagged"
FLAG_FLAGGED = "flagged"
FLAG_COMPLETE = "complete"

# Graph well-known folder name for the Junk Email folder
WELL_KNOWN_JUNK = "junkemail"

FOLDER_SELECT_FIELDS = (FIELD_ID, FIELD_DISPLAY_NAME, FIELD_PARENT_FOLDER_ID)
MESSAGE_SELECT_FIELDS = (
    FIELD_ID,
    FIELD_PARENT_FOLDER_ID,
    FIELD_RECEIVED_DATE_TIME,
    FIELD_SUBJECT,
    FIELD_FLAG,
    FIELD_IS_READ,
)


@dataclass(frozen=True)
class MailMessage:
    """A message item as read from the mailbox.

    Attributes:
        id: Graph message id.
        parent_folder_id: Id of the folder holding the message.
        received_at: ISO-8601 receive timestamp.
        subject: Message subject (empty when unset).
        flag_status: One of notFlagged, flagged, complete.
        completed_at: ISO-8601 completion timestamp when the flag is complete.
        is_read: Whether the message has been read.
    """

    id: str
    parent_folder_id: str
    received_at: str
    subject: str
    flag_status: str
    completed_at: str | None
    is_read: bool
