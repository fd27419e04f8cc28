"""Snapshot extractor — orchestrates hierarchy loading and message streaming."""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from mailbox_snapshot.export.projector import UnknownFolderError, project_message
from mailbox_snapshot.graph.client import graph_client_from_config
from mailbox_snapshot.graph.mailbox import MailboxSource, mailbox_source_from_config
from mailbox_snapshot.hierarchy.builder import DuplicateIdError, InvalidNodeError, build_node_map
from mailbox_snapshot.hierarchy.models import AmbiguousResultError, NotFoundError, PathTable
from mailbox_snapshot.hierarchy.resolver import resolve_paths
from mailbox_snapshot.paging.enumerator import FetchError

if TYPE_CHECKING:
    from mailbox_snapshot.config import AppConfig

logger = logging.getLogger(__name__)

PHASE_HIERARCHY = "hierarchy"
PHASE_MESSAGES = "messages"

RecordWriter = Callable[[dict[str, Any]], None]


class ExtractionError(Exception):
    """Raised when an extraction phase fails as a whole."""

    phase = ""

    def __init__(self, message: str, result: ExtractionResult | None = None) -> None:
        super().__init__(f"{self.phase} phase failed: {message}")
        self.result = result


class HierarchyLoadError(ExtractionError):
    """The folder hierarchy could not be loaded; no path table is available."""

    phase = PHASE_HIERARCHY


class MessageStreamError(ExtractionError):
    """Message streaming stopped early; records already written stand."""

    phase = PHASE_MESSAGES


@dataclass
class ExtractionResult:
    """Outcome of one extraction run.

    Attributes:
        folder_count: Folders in the path table.
        message_count: Records written.
        unresolved_ids: Ids of messages whose folder was not in the path table.
    """

    folder_count: int = 0
    message_count: int = 0
    unresolved_ids: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.unresolved_ids


class SnapshotExtractor:
    """Runs the two-phase mailbox extraction."""

    def __init__(self, mailbox: MailboxSource, exclude_folders: Collection[str] = ()) -> None:
        """Initialise the extractor.

        Args:
            mailbox: Source of folders and messages.
            exclude_folders: Folder paths whose messages are skipped, in
                addition to the Junk Email folder.
        """
        self._mailbox = mailbox
        self._exclude_folders = tuple(exclude_folders)

    def load_hierarchy(self) -> PathTable:
        """Fetch every folder and resolve the path table.

        Raises:
            HierarchyLoadError: If a page fails or a folder record is malformed.
        """
        logger.info("[load_hierarchy] loading folder hierarchy")
        try:
            nodes = build_node_map(self._mailbox.folders())
        except (FetchError, InvalidNodeError, DuplicateIdError) as exc:
            logger.error("[load_hierarchy] hierarchy load failed; error:%s", exc)
            raise HierarchyLoadError(str(exc)) from exc
        return resolve_paths(nodes)

    def excluded_folder_ids(self, path_table: PathTable) -> set[str]:
        """Resolve the Junk Email folder and the configured exclusion paths to ids.

        Raises:
            HierarchyLoadError: If the junk folder cannot be read, or an
                exclusion path matches no folder or several folders.
        """
        try:
            excluded = {self._mailbox.junk_folder_id()}
            for path in self._exclude_folders:
                excluded.add(path_table.find_id(path))
        except (FetchError, NotFoundError, AmbiguousResultError) as exc:
            logger.error("[excluded_folder_ids] cannot resolve excluded folders; error:%s", exc)
            raise HierarchyLoadError(str(exc)) from exc
        logger.info("[excluded_folder_ids] excluding folders; folder_count:%d", len(excluded))
        return excluded

    def stream_messages(
        self,
        path_table: PathTable,
        write: RecordWriter,
        excluded_folder_ids: Collection[str] = (),
    ) -> ExtractionResult:
        """Project every message against the path table and hand each record to write.

        A message in an unknown folder is logged and skipped; the rest of
        the stream continues.

        Raises:
            MessageStreamError: If a page fails. Records already written stand;
                the error carries the partial result.
        """
        result = ExtractionResult(folder_count=len(path_table))
        try:
            for message in self._mailbox.messages(excluded_folder_ids):
                try:
                    record = project_message(message, path_table)
                except UnknownFolderError as exc:
                    logger.warning(
                        "[stream_messages] message in unknown folder; message_id:%s;folder_id:%s",
                        exc.message_id,
                        exc.folder_id,
                    )
                    result.unresolved_ids.append(exc.message_id)
                    continue
                write(record)
                result.message_count += 1
        except FetchError as exc:
            logger.error(
                "[stream_messages] message stream failed; written:%d;error:%s",
                result.message_count,
                exc,
            )
            raise MessageStreamError(str(exc), result) from exc
        logger.info(
            "[stream_messages] message stream complete; written:%d;unresolved:%d",
            result.message_count,
            len(result.unresolved_ids),
        )
        return result

    def run(self, write: RecordWriter) -> ExtractionResult:
        """Run the full extraction.

        Steps:
            1. Load the folder hierarchy and resolve the path table.
            2. Resolve the folders whose messages are skipped.
            3. Stream every remaining message as an output record.

        The path table is complete before the first message is fetched.

        Returns:
            ExtractionResult with counts and unresolved message ids.
        """
        path_table = self.load_hierarchy()
        excluded = self.excluded_folder_ids(path_table)
        result = self.stream_messages(path_table, write, excluded)
        logger.info(
            "[run] extraction complete; folder_count:%d;message_count:%d;unresolved:%d",
            result.folder_count,
            result.message_count,
            len(result.unresolved_ids),
        )
        return result


def snapshot_extractor_from_config(config: AppConfig) -> SnapshotExtractor:
    """Construct a SnapshotExtractor from application configuration.

    Creates a GraphClient and MailboxSource from the config, then wires
    them into a SnapshotExtractor.
    """
    client = graph_client_from_config(config)
    mailbox = mailbox_source_from_config(client, config)
    return SnapshotExtractor(mailbox=mailbox, exclude_folders=config.exclude_folders)
