"""Filter state of a collection view and its flat key/value encoding."""

from dataclasses import dataclass, replace
from typing import Mapping
from urllib.parse import parse_qsl, urlencode

QUERY_KEY = "q"
FILTER_KEY = "filter"
CATEGORY_KEY = "category"
PAGE_KEY = "page"
SORT_KEY = "sort"

DEFAULT_QUERY = ""
DEFAULT_FILTER = ""
DEFAULT_CATEGORY = "all"
DEFAULT_PAGE = 1
DEFAULT_SORT = ""


def parse_page(raw: str | None) -> int:
    """Parse a persisted page value; anything invalid falls back to page 1."""
    if raw is None:
        return DEFAULT_PAGE
    try:
        page = int(raw)
    except ValueError:
        return DEFAULT_PAGE
    return page if page >= 1 else DEFAULT_PAGE


@dataclass(frozen=True)
class FilterState:
    """What subset of a collection a view is displaying.

    Attributes:
        query: Free-text search.
        filter: Filter expression (``field=value`` pairs separated by commas).
        category: Field the search is scoped to, or ``all``.
        page: 1-based page number.
        sort: Field to order by, prefixed with ``-`` for descending; empty
            keeps creation order.
    """

    query: str = DEFAULT_QUERY
    filter: str = DEFAULT_FILTER
    category: str = DEFAULT_CATEGORY
    page: int = DEFAULT_PAGE
    sort: str = DEFAULT_SORT

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")

    @property
    def is_default(self) -> bool:
        return self == FilterState()

    def cleared(self) -> "FilterState":
        """Reset query, filter and category; page and sort are kept."""
        return replace(
            self, query=DEFAULT_QUERY, filter=DEFAULT_FILTER, category=DEFAULT_CATEGORY
        )

    def encode(self) -> dict[str, str]:
        """Encode to flat key/value pairs, omitting slots at their default."""
        params: dict[str, str] = {}
        if self.query != DEFAULT_QUERY:
            params[QUERY_KEY] = self.query
        if self.filter != DEFAULT_FILTER:
            params[FILTER_KEY] = self.filter
        if self.category != DEFAULT_CATEGORY:
            params[CATEGORY_KEY] = self.category
        if self.page != DEFAULT_PAGE:
            params[PAGE_KEY] = str(self.page)
        if self.sort != DEFAULT_SORT:
            params[SORT_KEY] = self.sort
        return params

    @classmethod
    def decode(cls, params: Mapping[str, str]) -> "FilterState":
        """Decode from flat key/value pairs; missing keys take their default."""
        return cls(
            query=params.get(QUERY_KEY, DEFAULT_QUERY),
            filter=params.get(FILTER_KEY, DEFAULT_FILTER),
            category=params.get(CATEGORY_KEY, DEFAULT_CATEGORY),
            page=parse_page(params.get(PAGE_KEY)),
            sort=params.get(SORT_KEY, DEFAULT_SORT),
        )

    def to_query_string(self) -> str:
        """Render as a URL query string (without the leading '?')."""
        return urlencode(self.encode())

    @classmethod
    def from_query_string(cls, query_string: str) -> "FilterState":
        """Parse a URL query string; a leading '?' is accepted."""
        return cls.decode(dict(parse_qsl(query_string.lstrip("?"), keep_blank_values=True)))
