"""Query filter state bound to a flat key/value parameter store.

Each slot (query, filter, category, page, sort) owns exactly one key of
the store. A slot at its default value is absent from the store. Setters touch
only their own key, so independent updates never clobber each other.
"""

from contextlib import contextmanager
from typing import Callable, Iterator, MutableMapping, Protocol

from collectiondesk.core.logging import get_logger
from collectiondesk.domain.entities.filter_state import (
    CATEGORY_KEY,
    DEFAULT_CATEGORY,
    DEFAULT_FILTER,
    DEFAULT_PAGE,
    DEFAULT_QUERY,
    DEFAULT_SORT,
    FILTER_KEY,
    PAGE_KEY,
    QUERY_KEY,
    SORT_KEY,
    FilterState,
)

logger = get_logger(__name__)

Observer = Callable[[FilterState], None]


class ParamStore(Protocol):
    """Flat string-keyed persistence medium (URL query, session, local storage)."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def snapshot(self) -> dict[str, str]: ...


class DictParamStore:
    """ParamStore backed by a plain dict.

    Keys not owned by the filter state are left alone.
    """

    def __init__(self, data: MutableMapping[str, str] | None = None) -> None:
        self.data: MutableMapping[str, str] = data if data is not None else {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self.data)


class QueryFilterState:
    """Five-slot filter state machine with clear-on-default persistence.

    Observers are called synchronously with the new FilterState after every
    observable update. Updates made inside ``batch()`` produce a single
    notification when the outermost batch exits.
    """

    def __init__(self, store: ParamStore | None = None) -> None:
        self.store: ParamStore = store if store is not None else DictParamStore()
        self._observers: list[Observer] = []
        self._batch_depth = 0
        self._dirty = False

    @property
    def state(self) -> FilterState:
        """Decode the current state from the store."""
        return FilterState.decode(
            {
                key: value
                for key in (QUERY_KEY, FILTER_KEY, CATEGORY_KEY, PAGE_KEY, SORT_KEY)
                if (value := self.store.get(key)) is not None
            }
        )

    @property
    def query(self) -> str:
        return self.state.query

    @property
    def filter(self) -> str:
        return self.state.filter

    @property
    def category(self) -> str:
        return self.state.category

    @property
    def page(self) -> int:
        return self.state.page

    @property
    def sort(self) -> str:
        return self.state.sort

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Group updates into a single observable transition."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self._dirty = False
                self._notify()

    def _write(self, key: str, value: str, default: str) -> None:
        current = self.store.get(key)
        if value == default:
            if current is None:
                return
            self.store.delete(key)
        else:
            if current == value:
                return
            self.store.set(key, value)

        if self._batch_depth:
            self._dirty = True
        else:
            self._notify()

    def _notify(self) -> None:
        state = self.state
        for observer in list(self._observers):
            observer(state)

    def set_query(self, query: str) -> None:
        self._write(QUERY_KEY, query, DEFAULT_QUERY)

    def set_filter(self, filter_expr: str) -> None:
        self._write(FILTER_KEY, filter_expr, DEFAULT_FILTER)

    def set_category(self, category: str) -> None:
        self._write(CATEGORY_KEY, category, DEFAULT_CATEGORY)

    def set_page(self, page: int) -> None:
        """Set the 1-based page number.

        Raises:
            ValueError: If page is less than 1.
        """
        if page < 1:
            raise ValueError("page must be >= 1")
        self._write(PAGE_KEY, str(page), str(DEFAULT_PAGE))

    def set_sort(self, sort: str) -> None:
        """Order by ``field`` or ``-field``; an empty string restores creation order."""
        self._write(SORT_KEY, sort, DEFAULT_SORT)

    def clear_search(self) -> None:
        """Reset query, filter and category in one update; page and sort are unchanged."""
        with self.batch():
            self.set_query(DEFAULT_QUERY)
            self.set_filter(DEFAULT_FILTER)
            self.set_category(DEFAULT_CATEGORY)
        logger.debug("Search cleared", page=self.page)

    def replace(self, state: FilterState) -> None:
        """Apply every slot of ``state`` as one update."""
        with self.batch():
            self.set_query(state.query)
            self.set_filter(state.filter)
            self.set_category(state.category)
            self.set_page(state.page)
            self.set_sort(state.sort)
