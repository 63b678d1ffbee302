"""Spatial binning of spray-chart and pitch-location samples.

Pitch locations are normalized against the observed min/max of the eligible
sample on each axis (not a fixed physical zone), mirrored into catcher's view
and dropped into an N x N grid. Spray-chart positions are already calibrated
to a fixed field scale, so field thirds use absolute cutoffs instead.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from statistics import mean
from typing import Dict, List, Optional, Sequence, Tuple

from backend.app.trends.records import FieldZoneStats, SprayPoint, Swing, ZoneCell
from backend.app.trends.thresholds import (
    DEFAULT_HEATMAP_GRID,
    DEGENERATE_AXIS_VALUE,
    FIELD_LEFT_CUTOFF,
    FIELD_RIGHT_CUTOFF,
    POI_Y_MIN,
    STRIKE_ZONE_GRID,
    TENDENCY_OPPOSITE_ABOVE,
    TENDENCY_PULL_BELOW,
    TENDENCY_RANGE,
)
from backend.app.trends.tiers import classify_exit_velocity


class ZoneMetric(str, Enum):
    EXIT_VELOCITY = "exit_velocity"
    LAUNCH_ANGLE = "launch_angle"


class FieldThird(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True)
class AxisBounds:
    min_x: float
    max_x: float
    min_y: float
    max_y: float


def has_spray_position(swing: Swing) -> bool:
    return swing.spray_chart_x is not None and swing.spray_chart_z is not None


def has_pitch_location(swing: Swing) -> bool:
    return swing.poi_x is not None and swing.poi_y is not None and swing.poi_y > POI_Y_MIN


def _metric_value(swing: Swing, metric: ZoneMetric) -> Optional[float]:
    if metric is ZoneMetric.EXIT_VELOCITY:
        return swing.exit_velocity if swing.exit_velocity is not None and swing.exit_velocity > 0 else None
    return swing.launch_angle


def pitch_location_sample(swings: Sequence[Swing], metric: ZoneMetric) -> List[Swing]:
    """Swings with a usable pitch location and a value for ``metric``."""
    metric = ZoneMetric(metric)
    return [s for s in swings if has_pitch_location(s) and _metric_value(s, metric) is not None]


def axis_bounds(swings: Sequence[Swing]) -> Optional[AxisBounds]:
    if not swings:
        return None
    xs = [s.poi_x for s in swings]
    ys = [s.poi_y for s in swings]
    return AxisBounds(min_x=min(xs), max_x=max(xs), min_y=min(ys), max_y=max(ys))


def normalize(value: float, lo: float, hi: float) -> float:
    if hi == lo:
        return DEGENERATE_AXIS_VALUE
    return (value - lo) / (hi - lo)


def catcher_view_position(swing: Swing, bounds: AxisBounds) -> Tuple[float, float]:
    """Normalized (x, y) in [0, 1] with x mirrored so left/right match the catcher's view."""
    x = normalize(swing.poi_x, bounds.min_x, bounds.max_x)
    y = normalize(swing.poi_y, bounds.min_y, bounds.max_y)
    return 1.0 - x, y


def cell_index(value: float, cells: int) -> int:
    return min(max(int(math.floor(value * cells)), 0), cells - 1)


def classify_pitch_locations(
    swings: Sequence[Swing],
    rows: int,
    cols: int,
    metric: ZoneMetric = ZoneMetric.EXIT_VELOCITY,
    playing_level: Optional[str] = None,
) -> List[ZoneCell]:
    """Bin eligible swings into a rows x cols grid; return non-empty cells row-major.

    Exit-velocity cells carry the heat tier of their mean for ``playing_level``.
    """
    if rows < 1 or cols < 1:
        raise ValueError("grid dimensions must be positive")
    metric = ZoneMetric(metric)
    sample = pitch_location_sample(swings, metric)
    bounds = axis_bounds(sample)
    if bounds is None:
        return []

    buckets: Dict[Tuple[int, int], List[Swing]] = {}
    for swing in sample:
        x, y = catcher_view_position(swing, bounds)
        key = (cell_index(y, rows), cell_index(x, cols))
        buckets.setdefault(key, []).append(swing)

    cells = []
    for (row, col) in sorted(buckets):
        members = buckets[(row, col)]
        cell_mean = mean(_metric_value(s, metric) for s in members)
        tier = None
        if metric is ZoneMetric.EXIT_VELOCITY:
            tier = classify_exit_velocity(cell_mean, playing_level).value
        cells.append(
            ZoneCell(
                row=row,
                col=col,
                count=len(members),
                mean=cell_mean,
                tier=tier,
                swings=tuple(members),
            )
        )
    return cells


def strike_zone_grid(
    swings: Sequence[Swing],
    metric: ZoneMetric = ZoneMetric.EXIT_VELOCITY,
    playing_level: Optional[str] = None,
) -> List[ZoneCell]:
    return classify_pitch_locations(swings, STRIKE_ZONE_GRID, STRIKE_ZONE_GRID, metric, playing_level)


def pitch_location_heatmap(
    swings: Sequence[Swing],
    grid_size: int = DEFAULT_HEATMAP_GRID,
    playing_level: Optional[str] = None,
) -> List[ZoneCell]:
    return classify_pitch_locations(swings, grid_size, grid_size, ZoneMetric.EXIT_VELOCITY, playing_level)


def classify_field_third(spray_x: float) -> FieldThird:
    if spray_x < FIELD_LEFT_CUTOFF:
        return FieldThird.LEFT
    if spray_x > FIELD_RIGHT_CUTOFF:
        return FieldThird.RIGHT
    return FieldThird.CENTER


def field_zone_stats(swings: Sequence[Swing]) -> List[FieldZoneStats]:
    """Count, share and exit velocity for each field third (left, center, right)."""
    eligible = [s for s in swings if has_spray_position(s)]
    groups: Dict[FieldThird, List[Swing]] = {third: [] for third in FieldThird}
    for swing in eligible:
        groups[classify_field_third(swing.spray_chart_x)].append(swing)

    total = len(eligible)
    stats = []
    for third in FieldThird:
        members = groups[third]
        evs = [s.exit_velocity for s in members]
        stats.append(
            FieldZoneStats(
                zone=third.value,
                count=len(members),
                pct=(len(members) / total) * 100 if total else 0.0,
                avg_exit_velocity=mean(evs) if evs else None,
                peak_exit_velocity=max(evs) if evs else None,
            )
        )
    return stats


def directional_tendency(swings: Sequence[Swing]) -> Optional[float]:
    """Mean spray x re-mapped from [-200, 200] to a clamped 0-100 position; 50 is dead center."""
    xs = [s.spray_chart_x for s in swings if has_spray_position(s)]
    if not xs:
        return None
    position = (mean(xs) / TENDENCY_RANGE) * 50 + 50
    return max(0.0, min(100.0, position))


def tendency_label(position: Optional[float]) -> Optional[str]:
    if position is None:
        return None
    if position < TENDENCY_PULL_BELOW:
        return "pull"
    if position > TENDENCY_OPPOSITE_ABOVE:
        return "opposite"
    return "neutral"


def spray_chart_points(swings: Sequence[Swing], playing_level: Optional[str] = None) -> List[SprayPoint]:
    return [
        SprayPoint(
            swing_id=s.swing_id,
            x=s.spray_chart_x,
            z=s.spray_chart_z,
            exit_velocity=s.exit_velocity,
            tier=classify_exit_velocity(s.exit_velocity, playing_level).value,
        )
        for s in swings
        if has_spray_position(s)
    ]
