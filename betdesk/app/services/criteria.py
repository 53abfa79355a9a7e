"""Filter, sort and pagination state for a single listing request."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional
from urllib.parse import urlencode

from .. import settings

PAGE_KEY = "page"
SORT_KEY = "sort"
LIMIT_KEY = "limit"
FULLTEXT_KEY = "query"
UNLIMITED_KEY = "unlimited"
RESERVED_KEYS = frozenset({PAGE_KEY, SORT_KEY, LIMIT_KEY})

_SORT_TOKEN_RE = re.compile(r"^([+-]?)([A-Za-z_][A-Za-z0-9_]*)$")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortOrder:
    """Column and direction parsed from a token such as ``-closest_match_date``."""

    column: str
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def parse(cls, token: Any) -> Optional["SortOrder"]:
        if not isinstance(token, str):
            return None
        match = _SORT_TOKEN_RE.match(token.strip())
        if match is None:
            return None
        marker, column = match.groups()
        direction = SortDirection.DESC if marker == "-" else SortDirection.ASC
        return cls(column=column, direction=direction)

    @property
    def token(self) -> str:
        prefix = "-" if self.direction is SortDirection.DESC else ""
        return f"{prefix}{self.column}"


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if number >= 1 else None


def _single(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


class ListingCriteria:
    """Holds the current filter/sort/pagination request of one listing.

    Criteria keys are stored verbatim; listings decide which keys they read.
    The total is unknown until a count query has run and the caller records
    it with :meth:`set_total`.
    """

    def __init__(
        self,
        *,
        page: Any = 1,
        limit: Any = None,
        sort: Any = None,
        criteria: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._page = _positive_int(_single(page)) or 1
        requested_limit = _positive_int(_single(limit))
        if requested_limit is not None:
            requested_limit = min(requested_limit, settings.listing_max_page_size())
        self._limit = requested_limit
        self._requested_sort = SortOrder.parse(_single(sort))
        self._criteria: dict[str, Any] = dict(criteria or {})
        self._default_sort: Optional[SortOrder] = None
        self._default_limit = settings.listing_page_size()
        self._total: Optional[int] = None

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "ListingCriteria":
        criteria = {key: value for key, value in params.items() if key not in RESERVED_KEYS}
        return cls(
            page=params.get(PAGE_KEY, 1),
            limit=params.get(LIMIT_KEY),
            sort=params.get(SORT_KEY),
            criteria=criteria,
        )

    @classmethod
    def from_query(cls, pairs: Iterable[tuple[str, Any]]) -> "ListingCriteria":
        """Build criteria from raw query pairs; repeated keys become lists."""

        collected: dict[str, Any] = {}
        for raw_key, value in pairs:
            key = raw_key[:-2] if raw_key.endswith("[]") else raw_key
            if key in collected:
                existing = collected[key]
                collected[key] = [*existing, value] if isinstance(existing, list) else [existing, value]
            elif raw_key.endswith("[]"):
                collected[key] = [value]
            else:
                collected[key] = value
        return cls.from_params(collected)

    # ── pagination ───────────────────────────────────────────────────

    @property
    def page(self) -> int:
        return self._page

    @property
    def limit(self) -> int:
        return self._limit or self._default_limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def set_total(self, total: int) -> None:
        self._total = max(int(total), 0)

    @property
    def total(self) -> Optional[int]:
        return self._total

    # ── sorting ──────────────────────────────────────────────────────

    def apply_defaults(self, sort: str, limit: Optional[int] = None) -> None:
        """Set the listing defaults without overriding request values.

        Without a listing-specific ``limit`` the configured page size applies.
        """

        self._default_sort = SortOrder.parse(sort)
        if limit is None:
            limit = settings.listing_page_size()
        self._default_limit = max(int(limit), 1)

    @property
    def default_sort(self) -> Optional[SortOrder]:
        return self._default_sort

    @property
    def requested_sort(self) -> Optional[SortOrder]:
        return self._requested_sort

    @property
    def sort(self) -> Optional[SortOrder]:
        return self._requested_sort or self._default_sort

    @property
    def sort_column(self) -> Optional[str]:
        return self.sort.column if self.sort else None

    @property
    def sort_direction(self) -> SortDirection:
        return self.sort.direction if self.sort else SortDirection.ASC

    # ── criteria accessors ───────────────────────────────────────────

    @property
    def criteria(self) -> dict[str, Any]:
        return dict(self._criteria)

    def get(self, key: str, default: Any = None) -> Any:
        return self._criteria.get(key, default)

    def get_str(self, key: str) -> Optional[str]:
        value = _single(self._criteria.get(key))
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def get_int(self, key: str) -> Optional[int]:
        value = _single(self._criteria.get(key))
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(str(value).strip())
        except ValueError:
            return None

    def get_bool(self, key: str) -> Optional[bool]:
        value = _single(self._criteria.get(key))
        if value is None:
            return None
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        normalized = str(value).strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        return None

    def get_date(self, key: str) -> date | datetime | None:
        """Return a ``date`` for date-only values and a ``datetime`` otherwise."""

        value = _single(self._criteria.get(key))
        if value is None or isinstance(value, (date, datetime)):
            return value
        text = str(value).strip()
        if not text:
            return None
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return datetime.fromisoformat(text)
        except ValueError:
            return None

    def get_list(self, key: str) -> list[Any]:
        value = self._criteria.get(key)
        if value is None:
            return []
        values = list(value) if isinstance(value, (list, tuple, set)) else [value]
        return [item for item in values if item is not None and str(item).strip() != ""]

    def get_int_list(self, key: str) -> list[int]:
        numbers = []
        for item in self.get_list(key):
            try:
                numbers.append(int(str(item).strip()))
            except ValueError:
                continue
        return numbers

    @property
    def fulltext(self) -> Optional[str]:
        return self.get_str(FULLTEXT_KEY)

    @property
    def unlimited(self) -> bool:
        return bool(self.get_bool(UNLIMITED_KEY))

    # ── links ────────────────────────────────────────────────────────

    def build_url_query(self, page: Optional[int] = None, *, include_page: bool = True) -> str:
        """Serialize sort, criteria and page into a canonical query string.

        ``page`` overrides the current page; ``include_page=False`` leaves it
        out so callers can append their own.
        """

        pairs: list[tuple[str, str]] = []
        if self._requested_sort is not None:
            pairs.append((SORT_KEY, self._requested_sort.token))
        if self._limit is not None:
            pairs.append((LIMIT_KEY, str(self._limit)))
        for key in sorted(self._criteria):
            value = self._criteria[key]
            values = value if isinstance(value, (list, tuple)) else [value]
            for item in values:
                rendered = _render_query_value(item)
                if rendered is not None:
                    pairs.append((key, rendered))
        if include_page:
            pairs.append((PAGE_KEY, str(page if page is not None else self.page)))
        return urlencode(pairs)

    def __repr__(self) -> str:
        return (
            f"ListingCriteria(page={self.page}, limit={self.limit}, "
            f"sort={self.sort.token if self.sort else None!r}, criteria={self._criteria!r})"
        )


def _render_query_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, enum.Enum):
        value = value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    text = str(value).strip()
    return text or None
