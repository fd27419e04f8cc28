"""Unit tests for paging/enumerator.py — PaginatedEnumerator behaviour."""

from unittest.mock import MagicMock

import pytest

from mailbox_snapshot.paging.enumerator import (
    FetchError,
    Page,
    PaginatedEnumerator,
    PaginationStalledError,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _offset_source(pages: list[list[str]]) -> MagicMock:
    """Return a fetch function serving ``pages`` by page index."""

    def fetch(cursor: int) -> Page[str, int]:
        return Page(
            items=pages[cursor],
            next_cursor=cursor + 1,
            has_more=cursor + 1 < len(pages),
        )

    return MagicMock(side_effect=fetch)


# ---------------------------------------------------------------------------
# Completeness and ordering
# ---------------------------------------------------------------------------


class TestCompleteness:
    def test_emits_every_item_in_page_then_position_order(self) -> None:
        fetch = _offset_source([["a", "b"], ["c"], ["d", "e", "f"]])

        items = list(PaginatedEnumerator(fetch, 0))

        assert items == ["a", "b", "c", "d", "e", "f"]

    def test_one_fetch_per_page(self) -> None:
        fetch = _offset_source([["a"], ["b"], ["c"]])

        list(PaginatedEnumerator(fetch, 0))

        assert [c.args[0] for c in fetch.call_args_list] == [0, 1, 2]

    def test_single_empty_page_yields_nothing(self) -> None:
        fetch = MagicMock(return_value=Page(items=[], next_cursor=None, has_more=False))

        items = list(PaginatedEnumerator(fetch, 0))

        assert items == []
        fetch.assert_called_once_with(0)

    def test_empty_middle_page_is_skipped(self) -> None:
        fetch = _offset_source([["a"], [], ["b"]])

        assert list(PaginatedEnumerator(fetch, 0)) == ["a", "b"]

    def test_stops_when_has_more_is_false_even_with_cursor(self) -> None:
        fetch = MagicMock(return_value=Page(items=["x"], next_cursor=99, has_more=False))

        assert list(PaginatedEnumerator(fetch, 0)) == ["x"]
        fetch.assert_called_once()

    def test_string_cursors_are_followed(self) -> None:
        responses = {
            "/start": Page(items=[1, 2], next_cursor="/next", has_more=True),
            "/next": Page(items=[3], next_cursor=None, has_more=False),
        }

        items = list(PaginatedEnumerator(responses.__getitem__, "/start"))

        assert items == [1, 2, 3]


# ---------------------------------------------------------------------------
# Laziness and restart
# ---------------------------------------------------------------------------


class TestLaziness:
    def test_nothing_fetched_before_iteration(self) -> None:
        fetch = _offset_source([["a"]])

        enumerator = PaginatedEnumerator(fetch, 0)
        iterator = iter(enumerator)

        fetch.assert_not_called()
        assert next(iterator) == "a"
        fetch.assert_called_once()

    def test_next_page_fetched_only_after_current_page_consumed(self) -> None:
        fetch = _offset_source([["a", "b"], ["c"]])
        iterator = iter(PaginatedEnumerator(fetch, 0))

        assert next(iterator) == "a"
        assert next(iterator) == "b"
        assert fetch.call_count == 1
        assert next(iterator) == "c"
        assert fetch.call_count == 2

    def test_consumer_may_stop_early(self) -> None:
        fetch = _offset_source([["a", "b"], ["c"], ["d"]])
        iterator = iter(PaginatedEnumerator(fetch, 0))

        next(iterator)
        iterator.close()  # type: ignore[attr-defined]

        assert fetch.call_count == 1

    def test_each_iteration_starts_fresh_from_initial_cursor(self) -> None:
        fetch = _offset_source([["a"], ["b"]])
        enumerator = PaginatedEnumerator(fetch, 0)

        first = list(enumerator)
        second = list(enumerator)

        assert first == second == ["a", "b"]
        assert [c.args[0] for c in fetch.call_args_list] == [0, 1, 0, 1]

    def test_produced_iterator_is_single_use(self) -> None:
        fetch = _offset_source([["a"]])
        iterator = iter(PaginatedEnumerator(fetch, 0))

        assert list(iterator) == ["a"]
        assert list(iterator) == []


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_fetch_error_terminates_sequence_after_emitted_items(self) -> None:
        fetch = MagicMock(
            side_effect=[
                Page(items=["a"], next_cursor=1, has_more=True),
                FetchError("boom", cursor=1, status_code=500),
            ]
        )
        iterator = iter(PaginatedEnumerator(fetch, 0))

        assert next(iterator) == "a"
        with pytest.raises(FetchError, match="boom") as exc_info:
            next(iterator)
        assert exc_info.value.cursor == 1
        assert exc_info.value.status_code == 500

    def test_fetch_error_is_not_retried(self) -> None:
        fetch = MagicMock(side_effect=FetchError("down", transient=True))

        with pytest.raises(FetchError):
            list(PaginatedEnumerator(fetch, 0))

        fetch.assert_called_once()

    def test_more_available_without_cursor_raises_stalled(self) -> None:
        fetch = MagicMock(return_value=Page(items=["a"], next_cursor=None, has_more=True))

        with pytest.raises(PaginationStalledError):
            list(PaginatedEnumerator(fetch, 0, name="folders"))

    def test_cursor_that_does_not_advance_raises_stalled(self) -> None:
        fetch = MagicMock(return_value=Page(items=["a"], next_cursor=0, has_more=True))

        with pytest.raises(PaginationStalledError, match="did not advance"):
            list(PaginatedEnumerator(fetch, 0))

        fetch.assert_called_once()

    def test_stalled_error_is_a_fetch_error(self) -> None:
        assert issubclass(PaginationStalledError, FetchError)


class TestFetchError:
    def test_defaults(self) -> None:
        err = FetchError("failed")
        assert str(err) == "failed"
        assert err.cursor is None
        assert err.status_code is None
        assert err.transient is False
