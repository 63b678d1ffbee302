"""Per-session summaries joined from session rows and raw swing distances."""
from __future__ import annotations

from collections import defaultdict
from statistics import mean
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from backend.app.trends.records import SessionSummary, TrendTotals, as_number


def _positive_distance(value) -> Optional[float]:
    number = as_number(value)
    if number is None or number <= 0:
        return None
    return number


def average_distances(distance_rows: Iterable[Mapping]) -> Dict[str, float]:
    """Mean positive distance per session_id.

    Sessions with no positive distance are absent from the result rather than 0.
    """
    grouped: Dict[str, List[float]] = defaultdict(list)
    for row in distance_rows:
        session_id = row.get("session_id")
        distance = _positive_distance(row.get("distance"))
        if session_id is None or distance is None:
            continue
        grouped[str(session_id)].append(distance)
    return {session_id: mean(values) for session_id, values in grouped.items()}


def build_session_summaries(
    session_rows: Sequence[Mapping],
    distance_rows: Iterable[Mapping],
) -> List[SessionSummary]:
    """One summary per session row, in input order, with avg_distance attached.

    ``distance_rows`` must be the full unfiltered swing history: a session's
    average distance does not depend on the view window.
    """
    distances = average_distances(distance_rows)
    return [SessionSummary.from_row(row, distances.get(str(row["id"]))) for row in session_rows]


def _mean_or_none(values: List[float]) -> Optional[float]:
    return mean(values) if values else None


def _max_or_none(values: List[float]) -> Optional[float]:
    return max(values) if values else None


def summarize_sessions(sessions: Sequence[SessionSummary]) -> TrendTotals:
    """Headline figures across sessions: mean of averages, peak of maxima."""
    avg_evs = [s.avg_exit_velocity for s in sessions if s.avg_exit_velocity is not None]
    max_evs = [s.max_exit_velocity for s in sessions if s.max_exit_velocity is not None]
    avg_las = [s.avg_launch_angle for s in sessions if s.avg_launch_angle is not None]
    max_dists = [s.max_distance for s in sessions if s.max_distance is not None]
    return TrendTotals(
        session_count=len(sessions),
        swing_count=sum(s.swing_count for s in sessions),
        avg_exit_velocity=_mean_or_none(avg_evs),
        peak_exit_velocity=_max_or_none(max_evs),
        avg_launch_angle=_mean_or_none(avg_las),
        peak_distance=_max_or_none(max_dists),
    )
