"""Mailbox source — the Graph mail schema behind folder and message enumeration."""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection
from typing import TYPE_CHECKING, Any

from mailbox_snapshot.graph.fetchers import (
    DEFAULT_INITIAL_WAIT,
    DEFAULT_MAX_RETRIES,
    LinkPageFetcher,
    OffsetPageFetcher,
    RawItem,
    RetryingFetcher,
    build_query,
    fetch_json,
)
from mailbox_snapshot.graph.models import (
    CONTAINER_CLASS_PROPERTY_ID,
    FIELD_COMPLETED_DATE_TIME,
    FIELD_DATE_TIME,
    FIELD_DISPLAY_NAME,
    FIELD_EXTENDED_PROPERTIES,
    FIELD_FLAG,
    FIELD_FLAG_STATUS,
    FIELD_ID,
    FIELD_IS_READ,
    FIELD_PARENT_FOLDER_ID,
    FIELD_RECEIVED_DATE_TIME,
    FIELD_SUBJECT,
    FIELD_TIME_ZONE,
    FIELD_VALUE,
    FLAG_COMPLETE,
    FLAG_NOT_FLAGGED,
    FOLDER_SELECT_FIELDS,
    MESSAGE_ODATA_TYPE,
    MESSAGE_SELECT_FIELDS,
    ODATA_TYPE,
    WELL_KNOWN_JUNK,
    MailMessage,
)
from mailbox_snapshot.hierarchy.models import Node
from mailbox_snapshot.paging.enumerator import FetchError, PaginatedEnumerator

if TYPE_CHECKING:
    from mailbox_snapshot.config import AppConfig
    from mailbox_snapshot.graph.client import GraphClient

logger = logging.getLogger(__name__)

DEFAULT_FOLDER_CLASS = "IPF.Note"
DEFAULT_FOLDER_PAGE_SIZE = 100
DEFAULT_MESSAGE_PAGE_SIZE = 1000

# Delta entries for folders removed since a previous sync carry this key.
ODATA_REMOVED = "@removed"


def container_class(raw: RawItem) -> str | None:
    """Return the folder's PR_CONTAINER_CLASS, or None if Graph did not send it."""
    for prop in raw.get(FIELD_EXTENDED_PROPERTIES, []):
        if str(prop.get(FIELD_ID, "")).lower() == CONTAINER_CLASS_PROPERTY_ID.lower():
            return prop.get(FIELD_VALUE)  # type: ignore[no-any-return]
    return None


def folder_class_filter(folder_class: str) -> Callable[[RawItem], bool]:
    """Build the hierarchy-eligibility predicate for raw Graph folders.

    Folders of another class (calendars, contacts, tasks) are excluded.
    Folders for which Graph returned no class are kept.
    """

    def is_eligible(raw: RawItem) -> bool:
        if ODATA_REMOVED in raw:
            return False
        value = container_class(raw)
        return value is None or value == folder_class

    return is_eligible


def node_from_graph(raw: RawItem) -> Node:
    """Map a raw Graph mailFolder dict to a Node."""
    return Node(
        id=raw.get(FIELD_ID, ""),
        parent_id=raw.get(FIELD_PARENT_FOLDER_ID) or None,
        display_name=raw.get(FIELD_DISPLAY_NAME) or "",
    )


def _graph_timestamp(value: dict[str, Any] | None) -> str | None:
    """Render a Graph dateTimeTimeZone value as an ISO-8601 string."""
    if not value or not value.get(FIELD_DATE_TIME):
        return None
    stamp = str(value[FIELD_DATE_TIME])
    if value.get(FIELD_TIME_ZONE, "UTC") == "UTC" and not stamp.endswith("Z"):
        stamp = f"{stamp}Z"
    return stamp


def message_from_graph(raw: RawItem) -> MailMessage:
    """Map a raw Graph message dict to a MailMessage."""
    flag = raw.get(FIELD_FLAG) or {}
    flag_status = flag.get(FIELD_FLAG_STATUS) or FLAG_NOT_FLAGGED
    completed_at = None
    if flag_status == FLAG_COMPLETE:
        completed_at = _graph_timestamp(flag.get(FIELD_COMPLETED_DATE_TIME))
    return MailMessage(
        id=raw.get(FIELD_ID, ""),
        parent_folder_id=raw.get(FIELD_PARENT_FOLDER_ID, ""),
        received_at=raw.get(FIELD_RECEIVED_DATE_TIME) or "",
        subject=raw.get(FIELD_SUBJECT) or "",
        flag_status=flag_status,
        completed_at=completed_at,
        is_read=bool(raw.get(FIELD_IS_READ, False)),
    )


def message_filter(excluded_folder_ids: Collection[str]) -> Callable[[RawItem], bool]:
    """Build the predicate selecting plain mail items outside the excluded folders.

    Meeting requests and other message subtypes are skipped.
    """
    excluded = frozenset(excluded_folder_ids)

    def is_wanted(raw: RawItem) -> bool:
        if raw.get(ODATA_TYPE, MESSAGE_ODATA_TYPE) != MESSAGE_ODATA_TYPE:
            return False
        return raw.get(FIELD_PARENT_FOLDER_ID) not in excluded

    return is_wanted


class MailboxSource:
    """Enumerates the folders and messages of one mailbox through Graph API."""

    def __init__(
        self,
        graph_client: GraphClient,
        mailbox_user: str,
        folder_class: str = DEFAULT_FOLDER_CLASS,
        folder_page_size: int = DEFAULT_FOLDER_PAGE_SIZE,
        message_page_size: int = DEFAULT_MESSAGE_PAGE_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_initial_wait: float = DEFAULT_INITIAL_WAIT,
    ) -> None:
        """Initialise the mailbox source.

        Args:
            graph_client: Authenticated GraphClient instance.
            mailbox_user: UPN or object ID of the mailbox owner
                (e.g. "alice@contoso.onmicrosoft.com"). Required when using app
                permissions (client credentials flow) where /me is not available.
            folder_class: Container class of folders that take part in the hierarchy.
            folder_page_size: Folders requested per page.
            message_page_size: Messages requested per page.
            max_retries: Retries of a page after a transient failure.
            retry_initial_wait: Seconds before the first retry of a page.
        """
        self._graph = graph_client
        self._mailbox_user = mailbox_user
        self._folder_class = folder_class
        self._folder_page_size = folder_page_size
        self._message_page_size = message_page_size
        self._max_retries = max_retries
        self._retry_initial_wait = retry_initial_wait

    @property
    def _base(self) -> str:
        return f"/users/{self._mailbox_user}"

    def folders(self) -> PaginatedEnumerator[Node, str]:
        """Every hierarchy-eligible folder below the message folder root.

        The mail folder delta collection lists the whole tree flat, in no
        particular order: a child may arrive on an earlier page than its parent.
        Top-level folders point at the (unlisted) message folder root.
        """
        query = build_query(
            {
                "$select": ",".join(FOLDER_SELECT_FIELDS),
                "$expand": (
                    f"{FIELD_EXTENDED_PROPERTIES}"
                    f"($filter=id eq '{CONTAINER_CLASS_PROPERTY_ID}')"
                ),
            }
        )
        fetcher = LinkPageFetcher(
            self._graph,
            parse=node_from_graph,
            predicate=folder_class_filter(self._folder_class),
            page_size=self._folder_page_size,
        )
        return PaginatedEnumerator(
            RetryingFetcher(
                fetcher,
                max_retries=self._max_retries,
                initial_wait=self._retry_initial_wait,
                name="folders",
            ),
            initial_cursor=f"{self._base}/mailFolders/delta?{query}",
            name="folders",
        )

    def messages(
        self, excluded_folder_ids: Collection[str] = ()
    ) -> PaginatedEnumerator[MailMessage, int]:
        """Every mail item in the mailbox outside the excluded folders."""
        fetcher = OffsetPageFetcher(
            self._graph,
            path=f"{self._base}/messages",
            page_size=self._message_page_size,
            parse=message_from_graph,
            predicate=message_filter(excluded_folder_ids),
            params={"$select": ",".join(MESSAGE_SELECT_FIELDS)},
        )
        return PaginatedEnumerator(
            RetryingFetcher(
                fetcher,
                max_retries=self._max_retries,
                initial_wait=self._retry_initial_wait,
                name="messages",
            ),
            initial_cursor=0,
            name="messages",
        )

    def junk_folder_id(self) -> str:
        """Return the id of the mailbox's Junk Email folder.

        Raises:
            FetchError: If the folder cannot be read.
        """
        response = fetch_json(
            self._graph, f"{self._base}/mailFolders/{WELL_KNOWN_JUNK}?$select={FIELD_ID}"
        )
        folder_id = response.get(FIELD_ID)
        if not folder_id:
            raise FetchError("Junk Email folder response carried no id")
        logger.info("[junk_folder_id] resolved junk folder; folder_id:%s", folder_id)
        return str(folder_id)


def mailbox_source_from_config(graph_client: GraphClient, config: AppConfig) -> MailboxSource:
    """Construct a MailboxSource from application configuration.

    Args:
        graph_client: Authenticated GraphClient instance.
        config: Application configuration instance.

    Returns:
        Configured MailboxSource instance.
    """
    return MailboxSource(
        graph_client=graph_client,
        mailbox_user=config.mailbox_user,
        folder_class=config.folder_class,
        folder_page_size=config.folder_page_size,
        message_page_size=config.message_page_size,
        max_retries=config.max_retries,
        retry_initial_wait=config.retry_initial_wait,
    )
