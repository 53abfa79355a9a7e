"""Page arithmetic for listing navigation."""

from __future__ import annotations

from dataclasses import dataclass
from math import ceil

from .criteria import ListingCriteria


@dataclass(frozen=True)
class Paginator:
    """Derive page counts and ranges from a total and a page size.

    An empty listing has zero pages. The requested page is reported as-is;
    a page past the end is flagged by :attr:`is_out_of_range` and yields an
    empty slice instead of being clamped.
    """

    item_count: int
    items_per_page: int
    page: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "item_count", max(int(self.item_count), 0))
        object.__setattr__(self, "items_per_page", max(int(self.items_per_page), 1))
        object.__setattr__(self, "page", max(int(self.page), 1))

    @classmethod
    def for_criteria(cls, criteria: ListingCriteria) -> "Paginator":
        if criteria.total is None:
            raise ValueError("Listing total has not been recorded yet")
        if criteria.unlimited:
            # Every match sits on a single page.
            return cls(item_count=criteria.total, items_per_page=max(criteria.total, 1), page=1)
        return cls(item_count=criteria.total, items_per_page=criteria.limit, page=criteria.page)

    @property
    def page_count(self) -> int:
        return ceil(self.item_count / self.items_per_page)

    @property
    def first_page(self) -> int:
        return 1

    @property
    def last_page(self) -> int:
        return self.page_count

    @property
    def is_first(self) -> bool:
        return self.page == self.first_page

    @property
    def is_last(self) -> bool:
        return self.page >= self.last_page

    @property
    def is_out_of_range(self) -> bool:
        return self.page > max(self.page_count, 1)

    @property
    def has_previous(self) -> bool:
        return self.page > 1 and self.page_count > 0

    @property
    def has_next(self) -> bool:
        return self.page < self.page_count

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.items_per_page

    @property
    def length(self) -> int:
        """Number of rows expected on the current page."""

        return max(min(self.items_per_page, self.item_count - self.offset), 0)

    def steps(self, around: int = 3) -> list[int]:
        """Page numbers to render: both ends plus a window around the current page."""

        if self.page_count == 0:
            return []
        window = range(max(self.page - around, 1), min(self.page + around, self.page_count) + 1)
        return sorted({self.first_page, self.last_page, *window})
