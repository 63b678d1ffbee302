import math

import pytest
from sqlalchemy.orm import sessionmaker

from backend.app.db import models
from backend.app.db.base import Base
from backend.app.db.session import make_engine
from backend.app.trends.pagination import (
    Filter,
    RangeQuery,
    SqlAlchemyRangeSource,
    StoreError,
    fetch_all_paginated,
)

QUERY = RangeQuery(table="hittrax_swings", columns=("id",), order_column="id")


class ListSource:
    """Serves an ordered in-memory collection and records each requested range."""

    def __init__(self, total, cap=None, fail_on_call=None):
        self.rows = [{"id": f"{i:06d}"} for i in range(total)]
        self.cap = cap
        self.fail_on_call = fail_on_call
        self.calls = []

    def fetch_range(self, query, start, end):
        self.calls.append((start, end))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise StoreError("connection reset")
        page = self.rows[start : end + 1]
        if self.cap is not None:
            page = page[: self.cap]
        return page


@pytest.mark.parametrize("total", [1, 999, 1001, 2500])
def test_fetch_returns_every_row_in_ceil_n_over_p_requests(total):
    source = ListSource(total)
    result = fetch_all_paginated(source, QUERY, page_size=1000)

    ids = [r["id"] for r in result.records]
    assert ids == [r["id"] for r in source.rows]
    assert len(set(ids)) == total
    assert result.request_count == math.ceil(total / 1000)
    assert result.complete is True


def test_exact_multiple_of_page_size_issues_one_extra_empty_request():
    source = ListSource(1000)
    result = fetch_all_paginated(source, QUERY, page_size=1000)

    assert len(result.records) == 1000
    assert result.request_count == 2
    assert source.calls == [(0, 999), (1000, 1999)]


def test_empty_collection_stops_after_first_request():
    source = ListSource(0)
    result = fetch_all_paginated(source, QUERY, page_size=50)
    assert result.records == []
    assert result.request_count == 1


def test_backend_error_returns_partial_rows():
    source = ListSource(250, fail_on_call=3)
    result = fetch_all_paginated(source, QUERY, page_size=100)

    assert len(result.records) == 200
    assert result.complete is False
    assert result.request_count == 3


def test_invalid_page_size_rejected():
    with pytest.raises(ValueError):
        fetch_all_paginated(ListSource(10), QUERY, page_size=0)


def test_filter_rejects_unknown_op():
    with pytest.raises(ValueError):
        Filter("session_id", "a", op="like")


def _seeded_session():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    session = SessionLocal()
    session.add(models.Athlete(id="ath-1", play_level="College"))
    session.add_all(
        [
            models.HittraxSession(id="s1", athlete_id="ath-1"),
            models.HittraxSession(id="s2", athlete_id="ath-1"),
            models.HittraxSession(id="s3", athlete_id="ath-1"),
        ]
    )
    for i in range(7):
        session.add(
            models.HittraxSwing(
                id=f"w{i}",
                session_id="s1" if i < 4 else ("s2" if i < 6 else "s3"),
                exit_velocity=80.0 + i,
                spray_chart_x=None if i == 2 else float(i),
                spray_chart_z=100.0,
            )
        )
    session.commit()
    return session


def test_sqlalchemy_source_pages_with_membership_and_not_null_filters():
    session = _seeded_session()
    try:
        query = RangeQuery(
            table="hittrax_swings",
            columns=("id", "session_id", "exit_velocity"),
            filters=(Filter("session_id", ["s1", "s2"], op="in"),),
            not_null=("spray_chart_x", "spray_chart_z"),
            order_column="id",
        )
        result = fetch_all_paginated(SqlAlchemyRangeSource(session), query, page_size=2)
    finally:
        session.close()

    assert [r["id"] for r in result.records] == ["w0", "w1", "w3", "w4", "w5"]
    assert set(result.records[0].keys()) == {"id", "session_id", "exit_velocity"}
    assert result.request_count == 3


def test_sqlalchemy_source_orders_descending_and_filters_equality():
    session = _seeded_session()
    try:
        query = RangeQuery(
            table="hittrax_sessions",
            columns=("id",),
            filters=(Filter("athlete_id", "ath-1"),),
            order_column="id",
            ascending=False,
        )
        rows = SqlAlchemyRangeSource(session).fetch_range(query, 0, 1)
    finally:
        session.close()
    assert [r["id"] for r in rows] == ["s3", "s2"]


def test_sqlalchemy_source_unknown_table_or_column_is_store_error():
    session = _seeded_session()
    source = SqlAlchemyRangeSource(session)
    try:
        with pytest.raises(StoreError):
            source.fetch_range(RangeQuery(table="missing", columns=("id",)), 0, 9)
        with pytest.raises(StoreError):
            source.fetch_range(RangeQuery(table="hittrax_swings", columns=("nope",)), 0, 9)
    finally:
        session.close()
