"""Batted-ball trend pipeline (store -> summaries -> window -> zones/tiers)."""
from __future__ import annotations

import argparse
import json
from datetime import date, datetime
from typing import Dict, List, Optional, Union

from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.logging import configure_logging, logger
from backend.app.trends.aggregation import build_session_summaries, summarize_sessions
from backend.app.trends.pagination import (
    Filter,
    RangeQuery,
    RangeSource,
    SqlAlchemyRangeSource,
    StoreError,
    fetch_all_paginated,
)
from backend.app.trends.records import AthleteTrendData, Swing, TrendsReport, ZoneCell
from backend.app.trends.rest_source import PostgrestRangeSource
from backend.app.trends.tiers import normalize_playing_level
from backend.app.trends.windows import TimeWindow, filter_by_window, window_cutoff
from backend.app.trends.zones import (
    ZoneMetric,
    directional_tendency,
    field_zone_stats,
    pitch_location_heatmap,
    spray_chart_points,
    strike_zone_grid,
    tendency_label,
)

SESSION_COLUMNS = (
    "id",
    "session_date",
    "avg_exit_velocity",
    "max_exit_velocity",
    "avg_launch_angle",
    "max_distance",
    "total_swings",
)
SWING_COLUMNS = (
    "id",
    "session_id",
    "exit_velocity",
    "launch_angle",
    "distance",
    "spray_chart_x",
    "spray_chart_z",
    "poi_x",
    "poi_y",
    "poi_z",
)
DISTANCE_COLUMNS = ("session_id", "distance")


def make_source(session: Optional[Session] = None) -> RangeSource:
    """Store adapter selected by STORE_BACKEND."""
    if settings.store_backend == "rest":
        return PostgrestRangeSource()
    if session is None:
        raise ValueError("STORE_BACKEND=sql requires a database session")
    return SqlAlchemyRangeSource(session)


def resolve_athlete(
    source: RangeSource,
    athlete_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> Optional[Dict]:
    """Look up the athlete row by id, or by owning user id when no id is given.

    StoreError propagates so a failed lookup is not mistaken for a missing athlete.
    """
    if athlete_id:
        flt = Filter("id", athlete_id)
    elif user_id:
        flt = Filter("user_id", user_id)
    else:
        return None
    query = RangeQuery(table="athletes", columns=("id", "play_level"), filters=(flt,), order_column="id")
    rows = source.fetch_range(query, 0, 0)
    return rows[0] if rows else None


def load_athlete_trends(
    source: RangeSource,
    athlete_id: Optional[str] = None,
    *,
    user_id: Optional[str] = None,
    page_size: Optional[int] = None,
) -> Optional[AthleteTrendData]:
    """Run one load cycle. None means there is no athlete record (terminal no-data state).

    A failed athlete lookup yields empty data with complete=False instead.
    """
    try:
        athlete = resolve_athlete(source, athlete_id=athlete_id, user_id=user_id)
    except StoreError as exc:
        logger.error("Athlete lookup failed (athlete_id=%s user_id=%s): %s", athlete_id, user_id, exc)
        return AthleteTrendData(
            athlete_id=str(athlete_id or user_id),
            playing_level=normalize_playing_level(None),
            sessions=(),
            swings=(),
            complete=False,
        )
    if athlete is None:
        logger.info("No athlete record for athlete_id=%s user_id=%s", athlete_id, user_id)
        return None
    resolved_id = str(athlete["id"])
    level = normalize_playing_level(athlete.get("play_level"))

    sessions_fetch = fetch_all_paginated(
        source,
        RangeQuery(
            table="hittrax_sessions",
            columns=SESSION_COLUMNS,
            filters=(Filter("athlete_id", resolved_id),),
            order_column="session_date",
        ),
        page_size=page_size,
    )
    if not sessions_fetch.records:
        return AthleteTrendData(
            athlete_id=resolved_id,
            playing_level=level,
            sessions=(),
            swings=(),
            complete=sessions_fetch.complete,
        )

    session_ids = [str(row["id"]) for row in sessions_fetch.records]
    swings_fetch = fetch_all_paginated(
        source,
        RangeQuery(
            table="hittrax_swings",
            columns=SWING_COLUMNS,
            filters=(Filter("session_id", session_ids, op="in"),),
            not_null=("spray_chart_x", "spray_chart_z"),
            order_column="id",
        ),
        page_size=page_size,
    )
    distance_fetch = fetch_all_paginated(
        source,
        RangeQuery(
            table="hittrax_swings",
            columns=DISTANCE_COLUMNS,
            filters=(Filter("session_id", session_ids, op="in"),),
            order_column="id",
        ),
        page_size=page_size,
    )

    summaries = build_session_summaries(sessions_fetch.records, distance_fetch.records)
    swings = [Swing.from_row(row) for row in swings_fetch.records]
    complete = sessions_fetch.complete and swings_fetch.complete and distance_fetch.complete
    logger.info(
        "Loaded %s sessions / %s swings for athlete %s%s",
        len(summaries),
        len(swings),
        resolved_id,
        "" if complete else " (partial)",
    )
    return AthleteTrendData(
        athlete_id=resolved_id,
        playing_level=level,
        sessions=tuple(summaries),
        swings=tuple(swings),
        complete=complete,
    )


def build_trends_report(
    data: AthleteTrendData,
    window: Union[str, TimeWindow],
    now: Union[date, datetime],
    grid_size: Optional[int] = None,
) -> TrendsReport:
    window = TimeWindow.parse(window)
    size = grid_size if grid_size is not None else settings.heatmap_grid_size
    sessions, swings = filter_by_window(data.sessions, data.swings, window, now)
    tendency = directional_tendency(swings)
    return TrendsReport(
        athlete_id=data.athlete_id,
        playing_level=data.playing_level,
        window=window.value,
        cutoff=window_cutoff(window, now),
        complete=data.complete,
        totals=summarize_sessions(sessions),
        sessions=tuple(sessions),
        swings=tuple(swings),
        field_zones=tuple(field_zone_stats(swings)),
        directional_tendency=tendency,
        tendency_label=tendency_label(tendency),
        strike_zone_exit_velocity=tuple(strike_zone_grid(swings, ZoneMetric.EXIT_VELOCITY, data.playing_level)),
        strike_zone_launch_angle=tuple(strike_zone_grid(swings, ZoneMetric.LAUNCH_ANGLE)),
        heatmap_grid_size=size,
        heatmap=tuple(pitch_location_heatmap(swings, size, data.playing_level)),
        spray_points=tuple(spray_chart_points(swings, data.playing_level)),
    )


def _zone_cells_payload(cells) -> List[dict]:
    return [{"row": c.row, "col": c.col, "count": c.count, "mean": c.mean, "tier": c.tier} for c in cells]


def session_payload(session) -> dict:
    return {
        "session_id": session.session_id,
        "date": session.session_date.isoformat() if session.session_date else None,
        "swing_count": session.swing_count,
        "avg_exit_velocity": session.avg_exit_velocity,
        "max_exit_velocity": session.max_exit_velocity,
        "avg_launch_angle": session.avg_launch_angle,
        "max_distance": session.max_distance,
        "avg_distance": session.avg_distance,
    }


def report_payload(report: TrendsReport) -> dict:
    """JSON-ready dict for API responses and the CLI."""
    totals = report.totals
    return {
        "status": "ok",
        "athlete_id": report.athlete_id,
        "playing_level": report.playing_level,
        "window": report.window,
        "cutoff": report.cutoff.isoformat() if report.cutoff else None,
        "complete": report.complete,
        "totals": {
            "session_count": totals.session_count,
            "swing_count": totals.swing_count,
            "avg_exit_velocity": totals.avg_exit_velocity,
            "peak_exit_velocity": totals.peak_exit_velocity,
            "avg_launch_angle": totals.avg_launch_angle,
            "peak_distance": totals.peak_distance,
        },
        "sessions": [session_payload(s) for s in report.sessions],
        "field_zones": [
            {
                "zone": z.zone,
                "count": z.count,
                "pct": z.pct,
                "avg_exit_velocity": z.avg_exit_velocity,
                "peak_exit_velocity": z.peak_exit_velocity,
            }
            for z in report.field_zones
        ],
        "directional_tendency": report.directional_tendency,
        "tendency_label": report.tendency_label,
        "strike_zone": {
            "exit_velocity": _zone_cells_payload(report.strike_zone_exit_velocity),
            "launch_angle": _zone_cells_payload(report.strike_zone_launch_angle),
        },
        "heatmap": {
            "grid_size": report.heatmap_grid_size,
            "cells": _zone_cells_payload(report.heatmap),
        },
        "spray_points": [
            {"swing_id": p.swing_id, "x": p.x, "z": p.z, "exit_velocity": p.exit_velocity, "tier": p.tier}
            for p in report.spray_points
        ],
    }


def no_data_payload(athlete_id: str, window: Union[str, TimeWindow]) -> dict:
    return {
        "status": "no_data",
        "athlete_id": athlete_id,
        "window": TimeWindow.parse(window).value,
        "sessions": [],
        "spray_points": [],
    }


def run_trends(
    athlete_id: str,
    window: Union[str, TimeWindow],
    as_of: Optional[datetime] = None,
    grid_size: Optional[int] = None,
) -> dict:
    from backend.app.db.session import SessionLocal

    now = as_of or datetime.now()
    with SessionLocal() as session:
        data = load_athlete_trends(make_source(session), athlete_id)
    if data is None:
        return no_data_payload(athlete_id, window)
    return report_payload(build_trends_report(data, window, now, grid_size=grid_size))


def main() -> None:
    parser = argparse.ArgumentParser(description="Build the batted-ball trends report for one athlete")
    parser.add_argument("--athlete-id", required=True, help="Athlete identifier")
    parser.add_argument(
        "--window",
        default=settings.default_time_window,
        choices=[w.value for w in TimeWindow],
        help="Time window",
    )
    parser.add_argument("--as-of", default=None, help="Reference date YYYY-MM-DD (defaults to now)")
    parser.add_argument("--grid-size", type=int, default=None, help="Dense heatmap resolution")
    args = parser.parse_args()

    configure_logging(settings.log_level)
    as_of = datetime.fromisoformat(args.as_of) if args.as_of else None
    payload = run_trends(args.athlete_id, args.window, as_of=as_of, grid_size=args.grid_size)
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
