"""Compile listing criteria into counted, sorted and paginated queries.

A listing is described once by a :class:`ListingSchema`: the entity, its
default sort and page size, the sort whitelist and the filter descriptors.
:func:`compile_listing` turns a schema plus a :class:`ListingCriteria` into an
immutable :class:`QuerySpec`. :class:`ListingRepository` executes the spec as
two queries built from the same filtered query: a count over the whole
filtered set, then the ordered page.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Any, Callable, Generic, Mapping, Optional, Sequence, TypeVar

from sqlalchemy import or_
from sqlalchemy.orm import Session

from .criteria import ListingCriteria, SortDirection, SortOrder

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Reader = Callable[[ListingCriteria, str], Any]

_WHITESPACE_RE = re.compile(r"\s+")
LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class Join:
    """Inner join to ``target``; joins sharing a ``key`` are emitted once."""

    key: str
    target: Any
    onclause: Any


@dataclass(frozen=True)
class FilterClause:
    predicate: Any
    joins: tuple[Join, ...] = ()


@dataclass(frozen=True)
class SortKey:
    column: Any
    joins: tuple[Join, ...] = ()


class RangeFilter:
    """Inclusive lower/upper bounds read from two criteria keys.

    A date-only upper bound covers the whole day.
    """

    def __init__(self, column: Any, *, lower_key: str, upper_key: str) -> None:
        self.column = column
        self.lower_key = lower_key
        self.upper_key = upper_key

    def apply(self, criteria: ListingCriteria) -> tuple[FilterClause, ...]:
        clauses = []
        lower = criteria.get_date(self.lower_key)
        if lower is not None:
            if not isinstance(lower, datetime):
                lower = datetime.combine(lower, time.min)
            clauses.append(FilterClause(self.column >= lower))
        upper = criteria.get_date(self.upper_key)
        if upper is not None:
            if not isinstance(upper, datetime):
                upper = datetime.combine(upper, time.max)
            clauses.append(FilterClause(self.column <= upper))
        return tuple(clauses)


class EqualsFilter:
    def __init__(self, key: str, column: Any, *, reader: Reader = ListingCriteria.get_int) -> None:
        self.key = key
        self.column = column
        self.reader = reader

    def apply(self, criteria: ListingCriteria) -> tuple[FilterClause, ...]:
        value = self.reader(criteria, self.key)
        if value is None:
            return ()
        return (FilterClause(self.column == value),)


class MembershipFilter:
    """Set membership on a list-valued key.

    ``otherwise`` is applied instead when the key carries no values, e.g. to
    hide unresolved rows unless the caller asked for specific states.
    """

    def __init__(
        self,
        key: str,
        column: Any,
        *,
        reader: Reader = ListingCriteria.get_int_list,
        otherwise: Any = None,
    ) -> None:
        self.key = key
        self.column = column
        self.reader = reader
        self.otherwise = otherwise

    def apply(self, criteria: ListingCriteria) -> tuple[FilterClause, ...]:
        values = self.reader(criteria, self.key)
        if values:
            return (FilterClause(self.column.in_(values)),)
        if self.otherwise is not None:
            return (FilterClause(self.otherwise),)
        return ()


def fulltext_pattern(text: str) -> str:
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )
    return f"%{_WHITESPACE_RE.sub('%', escaped.strip())}%"


class FullTextFilter:
    """Case-insensitive match against two name fields in either order."""

    def __init__(self, key: str, *, first: Any, second: Any, joins: Sequence[Join] = ()) -> None:
        self.key = key
        self.first = first
        self.second = second
        self.joins = tuple(joins)

    def apply(self, criteria: ListingCriteria) -> tuple[FilterClause, ...]:
        text = criteria.get_str(self.key)
        if not text:
            return ()
        pattern = fulltext_pattern(text)
        forward = (self.first + " " + self.second).ilike(pattern, escape=LIKE_ESCAPE)
        backward = (self.second + " " + self.first).ilike(pattern, escape=LIKE_ESCAPE)
        return (FilterClause(or_(forward, backward), self.joins),)


@dataclass(frozen=True)
class ListingSchema:
    entity: Any
    id_column: Any
    default_sort: str
    sort_keys: Mapping[str, SortKey]
    default_limit: Optional[int] = None
    filters: tuple[Any, ...] = ()
    fixed_joins: tuple[Join, ...] = ()
    fixed_predicates: tuple[Any, ...] = ()


@dataclass(frozen=True)
class QuerySpec:
    """Everything needed to run a listing; count and fetch share it."""

    entity: Any
    joins: tuple[Join, ...]
    predicates: tuple[Any, ...]
    order_by: tuple[Any, ...]
    sort: SortOrder
    offset: Optional[int]
    limit: Optional[int]


@dataclass
class ListingPage(Generic[T]):
    items: list[T] = field(default_factory=list)
    total: int = 0
    sort: Optional[SortOrder] = None


def _resolve_sort(schema: ListingSchema, criteria: ListingCriteria) -> SortOrder:
    default = SortOrder.parse(schema.default_sort)
    if default is None or default.column not in schema.sort_keys:
        raise ValueError(f"Default sort {schema.default_sort!r} is not a whitelisted sort key")
    requested = criteria.requested_sort
    if requested is None:
        return default
    if requested.column not in schema.sort_keys:
        LOGGER.debug(
            "Ignoring sort %r outside whitelist; using %r", requested.token, default.token
        )
        return default
    return requested


def _dedupe_joins(joins: Sequence[Join]) -> tuple[Join, ...]:
    seen: set[str] = set()
    unique = []
    for join in joins:
        if join.key in seen:
            continue
        seen.add(join.key)
        unique.append(join)
    return tuple(unique)


def compile_listing(schema: ListingSchema, criteria: ListingCriteria) -> QuerySpec:
    """Compile criteria into a :class:`QuerySpec` for ``schema``.

    Applies the listing defaults to ``criteria`` so that later link building
    and pagination see the effective page size.
    """

    criteria.apply_defaults(schema.default_sort, schema.default_limit)

    joins: list[Join] = list(schema.fixed_joins)
    predicates: list[Any] = list(schema.fixed_predicates)
    for descriptor in schema.filters:
        for clause in descriptor.apply(criteria):
            joins.extend(clause.joins)
            predicates.append(clause.predicate)

    sort = _resolve_sort(schema, criteria)
    sort_key = schema.sort_keys[sort.column]
    joins.extend(sort_key.joins)
    if sort.direction is SortDirection.DESC:
        order_by = (sort_key.column.desc(), schema.id_column.desc())
    else:
        order_by = (sort_key.column.asc(), schema.id_column.asc())

    if criteria.unlimited:
        offset, limit = None, None
    else:
        offset, limit = criteria.offset, criteria.limit

    LOGGER.debug(
        "Compiled %s listing: sort=%s offset=%s limit=%s criteria=%s",
        getattr(schema.entity, "__tablename__", schema.entity),
        sort.token,
        offset,
        limit,
        sorted(criteria.criteria),
    )
    return QuerySpec(
        entity=schema.entity,
        joins=_dedupe_joins(joins),
        predicates=tuple(predicates),
        order_by=order_by,
        sort=sort,
        offset=offset,
        limit=limit,
    )


class ListingRepository(Generic[T]):
    """Run listing queries described by a :class:`ListingSchema`."""

    def __init__(self, schema: ListingSchema) -> None:
        self.schema = schema

    def compile(self, criteria: ListingCriteria) -> QuerySpec:
        return compile_listing(self.schema, criteria)

    @staticmethod
    def filtered_query(db: Session, spec: QuerySpec):
        query = db.query(spec.entity)
        for join in spec.joins:
            query = query.join(join.target, join.onclause)
        if spec.predicates:
            query = query.filter(*spec.predicates)
        return query

    @classmethod
    def fetch(cls, db: Session, spec: QuerySpec) -> ListingPage[T]:
        query = cls.filtered_query(db, spec)
        # Counted before ordering and paging so the total covers every match.
        total = query.count()

        query = query.order_by(*spec.order_by)
        if spec.offset is not None:
            query = query.offset(spec.offset)
        if spec.limit is not None:
            query = query.limit(spec.limit)
        return ListingPage(items=query.all(), total=total, sort=spec.sort)

    def paginate(self, db: Session, criteria: ListingCriteria) -> ListingPage[T]:
        return self.fetch(db, self.compile(criteria))
