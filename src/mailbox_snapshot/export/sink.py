"""Snapshot sinks — JSON Lines to a stream or to Azure Blob Storage."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import IO, TYPE_CHECKING, Any

from azure.core.exceptions import ResourceExistsError
from azure.storage.blob import BlobServiceClient, ContentSettings

if TYPE_CHECKING:
    from mailbox_snapshot.config import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_CONTAINER = "mailbox-snapshot"
DEFAULT_SNAPSHOT_BLOB_PREFIX = "snapshots/"
JSONL_CONTENT_TYPE = "application/x-ndjson"


def encode_record(record: dict[str, Any]) -> str:
    """Serialize one output record as a single JSON line (no trailing newline)."""
    return json.dumps(record, ensure_ascii=False)


class JsonLinesWriter:
    """Writes each record as one JSON line to a text stream, flushing per line."""

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream
        self.count = 0

    def write(self, record: dict[str, Any]) -> None:
        self._stream.write(encode_record(record) + "\n")
        self._stream.flush()
        self.count += 1

    def close(self) -> None:
        self._stream.flush()


class BlobSnapshotWriter:
    """Collects records and uploads them as one JSON Lines blob on close.

    The blob is named ``<prefix><UTC timestamp>.jsonl``. Nothing is uploaded
    if ``close`` is never called, so a failed run leaves no partial snapshot
    in storage.
    """

    def __init__(
        self,
        storage_connection_string: str,
        container: str = DEFAULT_SNAPSHOT_CONTAINER,
        blob_prefix: str = DEFAULT_SNAPSHOT_BLOB_PREFIX,
    ) -> None:
        """Initialise the blob writer.

        Args:
            storage_connection_string: Azure Storage connection string.
            container: Blob container for snapshots.
            blob_prefix: Prefix for snapshot blob paths (e.g. "snapshots/").
        """
        self._blob_service = BlobServiceClient.from_connection_string(storage_connection_string)
        self._container = container
        self._blob_prefix = blob_prefix
        self._lines: list[str] = []
        self.blob_name: str | None = None

    @property
    def count(self) -> int:
        return len(self._lines)

    def write(self, record: dict[str, Any]) -> None:
        self._lines.append(encode_record(record))

    def close(self) -> None:
        """Upload the collected records, creating the container if needed."""
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        self.blob_name = f"{self._blob_prefix}{stamp}.jsonl"

        container_client = self._blob_service.get_container_client(self._container)
        try:
            container_client.create_container()
            logger.info("[close] created blob container; container:%s", self._container)
        except ResourceExistsError:
            pass

        body = "".join(f"{line}\n" for line in self._lines).encode("utf-8")
        blob_client = container_client.get_blob_client(self.blob_name)
        blob_client.upload_blob(
            body,
            overwrite=True,
            content_settings=ContentSettings(content_type=JSONL_CONTENT_TYPE),
        )
        logger.info(
            "[close] uploaded snapshot; blob:%s;record_count:%d", self.blob_name, len(self._lines)
        )


def blob_snapshot_writer_from_config(config: AppConfig) -> BlobSnapshotWriter:
    """Construct a BlobSnapshotWriter from application configuration.

    Raises:
        ValueError: If no storage connection string is configured.
    """
    if not config.storage_connection_string:
        raise ValueError("AzureWebJobsStorage must be set to write snapshots to blob storage")
    return BlobSnapshotWriter(
        storage_connection_string=config.storage_connection_string,
        container=config.snapshot_container,
        blob_prefix=config.snapshot_blob_prefix,
    )
