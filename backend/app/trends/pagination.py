"""Fetch entire collections from a store whose responses are capped per request.

The hosted backend silently truncates any single response (1000 rows by
default), so a naive single-shot select loses data for athletes with long
histories. ``fetch_all_paginated`` walks the ordered range in fixed pages and
stops on the first short page.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.logging import logger
from backend.app.db import models

SUPPORTED_OPS = {"eq", "in"}


class StoreError(Exception):
    """Transport or backend failure while reading a range from the store."""


@dataclass(frozen=True)
class Filter:
    column: str
    value: Any
    op: str = "eq"

    def __post_init__(self) -> None:
        if self.op not in SUPPORTED_OPS:
            raise ValueError(f"Unsupported filter op '{self.op}'")


@dataclass(frozen=True)
class RangeQuery:
    table: str
    columns: Tuple[str, ...]
    filters: Tuple[Filter, ...] = ()
    not_null: Tuple[str, ...] = ()
    order_column: str = "id"
    ascending: bool = True


class RangeSource(Protocol):
    def fetch_range(self, query: RangeQuery, start: int, end: int) -> List[Dict[str, Any]]:
        """Return rows [start, end] (inclusive) of the ordered query; raise StoreError on failure."""
        ...


@dataclass
class PaginatedFetch:
    records: List[Dict[str, Any]] = field(default_factory=list)
    request_count: int = 0
    complete: bool = True


def fetch_all_paginated(
    source: RangeSource,
    query: RangeQuery,
    page_size: Optional[int] = None,
) -> PaginatedFetch:
    """Accumulate every row of ``query`` by successive range requests.

    A page shorter than ``page_size`` (including an empty one) ends the loop, so
    a collection that is an exact multiple of the page size costs one extra
    request. A StoreError stops the loop and the rows gathered so far are
    returned with ``complete=False``; failed pages are not retried.
    """
    size = page_size if page_size is not None else settings.store_page_size
    if size < 1:
        raise ValueError("page_size must be at least 1")

    result = PaginatedFetch()
    offset = 0
    while True:
        result.request_count += 1
        try:
            page = source.fetch_range(query, offset, offset + size - 1)
        except StoreError as exc:
            logger.error(
                "Pagination fetch error on %s at offset %s: %s (returning %s rows)",
                query.table,
                offset,
                exc,
                len(result.records),
            )
            result.complete = False
            break

        result.records.extend(page)
        if len(page) < size:
            break
        offset += size

    logger.debug(
        "Fetched %s rows from %s in %s requests", len(result.records), query.table, result.request_count
    )
    return result


class SqlAlchemyRangeSource:
    """Range requests against the relational store through a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _column(self, model, name: str):
        try:
            return getattr(model, name)
        except AttributeError as exc:
            raise StoreError(f"Unknown column '{name}' on {model.__tablename__}") from exc

    def fetch_range(self, query: RangeQuery, start: int, end: int) -> List[Dict[str, Any]]:
        model = models.TABLES.get(query.table)
        if model is None:
            raise StoreError(f"Unknown table '{query.table}'")

        columns = [self._column(model, name) for name in query.columns]
        stmt = select(*columns)
        for flt in query.filters:
            column = self._column(model, flt.column)
            if flt.op == "in":
                values: Sequence[Any] = flt.value if isinstance(flt.value, (list, tuple, set)) else [flt.value]
                stmt = stmt.where(column.in_(list(values)))
            else:
                stmt = stmt.where(column == flt.value)
        for name in query.not_null:
            stmt = stmt.where(self._column(model, name).is_not(None))

        order_col = self._column(model, query.order_column)
        stmt = stmt.order_by(order_col.asc() if query.ascending else order_col.desc())
        stmt = stmt.offset(start).limit(end - start + 1)

        try:
            return [dict(row._mapping) for row in self.session.execute(stmt)]
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
