"""Page fetchers over Graph API collections, plus a retry layer for them."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from urllib.error import URLError
from urllib.parse import quote, urlencode

from mailbox_snapshot.graph.client import GRAPH_BASE_URL, GraphApiError, GraphAuthError
from mailbox_snapshot.graph.models import ODATA_NEXT_LINK, ODATA_VALUE
from mailbox_snapshot.paging.enumerator import FetchError, FetchPage, Page

if TYPE_CHECKING:
    from mailbox_snapshot.graph.client import GraphClient

logger = logging.getLogger(__name__)

T = TypeVar("T")
C = TypeVar("C")

RawItem = dict[str, Any]

# Status codes worth retrying: throttling and server-side hiccups.
TRANSIENT_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_WAIT = 1.0


def _accept_all(raw: RawItem) -> bool:
    return True


def relative_path(full_url: str) -> str:
    """Convert a full Graph API URL to a relative path for GraphClient.get()."""
    if full_url.startswith(GRAPH_BASE_URL):
        return full_url[len(GRAPH_BASE_URL) :]
    return full_url


def build_query(params: Mapping[str, Any]) -> str:
    """Encode OData query parameters, keeping ``$`` and filter punctuation readable."""
    return urlencode(params, safe="$,()'=", quote_via=quote)


def fetch_json(
    graph_client: GraphClient,
    path: str,
    cursor: Any = None,
    headers: Mapping[str, str] | None = None,
) -> RawItem:
    """GET one Graph resource, translating transport failures into FetchError."""
    try:
        return graph_client.get(path, headers=headers)
    except GraphApiError as exc:
        raise FetchError(
            str(exc),
            cursor=cursor,
            status_code=exc.status_code,
            transient=exc.status_code in TRANSIENT_STATUS_CODES,
        ) from exc
    except GraphAuthError as exc:
        raise FetchError(str(exc), cursor=cursor) from exc
    except URLError as exc:
        raise FetchError(f"Request failed: {exc.reason}", cursor=cursor, transient=True) from exc


class OffsetPageFetcher(Generic[T]):
    """Fetches a Graph collection page by item offset (``$top``/``$skip``).

    The cursor is the number of raw items already returned by the source.
    The predicate runs after the page is fetched, so the next offset counts
    filtered-out items too.
    """

    def __init__(
        self,
        graph_client: GraphClient,
        path: str,
        page_size: int,
        parse: Callable[[RawItem], T],
        predicate: Callable[[RawItem], bool] = _accept_all,
        params: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialise the fetcher.

        Args:
            graph_client: Authenticated GraphClient.
            path: Collection path relative to the Graph base URL, without a query.
            page_size: Items requested per page (``$top``).
            parse: Field extractor turning a raw item into T.
            predicate: Raw items failing this test are dropped.
            params: Extra OData query parameters (e.g. ``$select``).
        """
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self._graph = graph_client
        self._path = path
        self._page_size = page_size
        self._parse = parse
        self._predicate = predicate
        self._params = dict(params or {})

    def __call__(self, offset: int) -> Page[T, int]:
        query = build_query({**self._params, "$top": self._page_size, "$skip": offset})
        response = fetch_json(self._graph, f"{self._path}?{query}", offset)
        raw_items = response.get(ODATA_VALUE, [])
        items = [self._parse(raw) for raw in raw_items if self._predicate(raw)]
        return Page(
            items=items,
            next_cursor=offset + len(raw_items),
            has_more=ODATA_NEXT_LINK in response,
        )


class LinkPageFetcher(Generic[T]):
    """Fetches a Graph collection page by following ``@odata.nextLink``.

    The cursor is the relative request path of the page; the initial cursor
    is the collection path with its query string. Collections paged this way
    (e.g. delta queries) take the page size as a ``Prefer`` header.
    """

    def __init__(
        self,
        graph_client: GraphClient,
        parse: Callable[[RawItem], T],
        predicate: Callable[[RawItem], bool] = _accept_all,
        page_size: int | None = None,
    ) -> None:
        self._graph = graph_client
        self._parse = parse
        self._predicate = predicate
        self._headers = {"Prefer": f"odata.maxpagesize={page_size}"} if page_size else None

    def __call__(self, path: str) -> Page[T, str]:
        response = fetch_json(self._graph, path, path, self._headers)
        raw_items = response.get(ODATA_VALUE, [])
        items = [self._parse(raw) for raw in raw_items if self._predicate(raw)]
        next_link = response.get(ODATA_NEXT_LINK)
        return Page(
            items=items,
            next_cursor=relative_path(next_link) if next_link else None,
            has_more=next_link is not None,
        )


class RetryingFetcher(Generic[C, T]):
    """Retries transient FetchErrors of a page fetcher with exponential backoff.

    Only the failing page is requested again; the enumerator driving this
    fetcher never sees a transient failure that a retry absorbed.
    """

    def __init__(
        self,
        fetch_page: FetchPage[C, T],
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_wait: float = DEFAULT_INITIAL_WAIT,
        sleep: Callable[[float], None] = time.sleep,
        name: str = "",
    ) -> None:
        """Initialise the retry layer.

        Args:
            fetch_page: The page fetcher to wrap.
            max_retries: Retries after the first attempt; 0 disables retrying.
            initial_wait: Seconds before the first retry, doubled on each retry.
            sleep: Sleep function (injected by tests).
            name: Label used in log messages.
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        if initial_wait < 0:
            raise ValueError(f"initial_wait must be >= 0, got {initial_wait}")
        self._fetch_page = fetch_page
        self._max_retries = max_retries
        self._initial_wait = initial_wait
        self._sleep = sleep
        self._name = name

    def __call__(self, cursor: C) -> Page[T, C]:
        attempt = 0
        while True:
            try:
                return self._fetch_page(cursor)
            except FetchError as exc:
                if not exc.transient or attempt >= self._max_retries:
                    raise
                wait = self._initial_wait * (2**attempt)
                attempt += 1
                logger.warning(
                    "[fetch_page] transient failure, retrying; source:%s;status:%s;"
                    "wait:%.1f;attempt:%d/%d",
                    self._name,
                    exc.status_code,
                    wait,
                    attempt,
                    self._max_retries,
                )
                self._sleep(wait)
