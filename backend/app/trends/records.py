"""Record types produced by the trend pipeline, plus parsers for raw store rows."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Mapping, Optional, Tuple


def as_number(value) -> Optional[float]:
    """Return a float for numeric store values; None for missing, NaN or non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def parse_session_date(value) -> Optional[date]:
    """Date-only view of a session date; timestamps are truncated at the 'T'."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.split("T")[0].strip())
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    session_date: Optional[date]
    swing_count: int
    avg_exit_velocity: Optional[float]
    max_exit_velocity: Optional[float]
    avg_launch_angle: Optional[float]
    max_distance: Optional[float]
    # None means no swing in the session recorded a positive distance.
    avg_distance: Optional[float]

    @classmethod
    def from_row(cls, row: Mapping, avg_distance: Optional[float] = None) -> "SessionSummary":
        return cls(
            session_id=str(row["id"]),
            session_date=parse_session_date(row.get("session_date")),
            swing_count=int(as_number(row.get("total_swings")) or 0),
            avg_exit_velocity=as_number(row.get("avg_exit_velocity")),
            max_exit_velocity=as_number(row.get("max_exit_velocity")),
            avg_launch_angle=as_number(row.get("avg_launch_angle")),
            max_distance=as_number(row.get("max_distance")),
            avg_distance=avg_distance,
        )


@dataclass(frozen=True)
class Swing:
    swing_id: str
    session_id: str
    exit_velocity: float
    launch_angle: Optional[float] = None
    distance: Optional[float] = None
    spray_chart_x: Optional[float] = None
    spray_chart_z: Optional[float] = None
    poi_x: Optional[float] = None
    poi_y: Optional[float] = None
    poi_z: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping) -> "Swing":
        return cls(
            swing_id=str(row["id"]),
            session_id=str(row["session_id"]),
            exit_velocity=as_number(row.get("exit_velocity")) or 0.0,
            launch_angle=as_number(row.get("launch_angle")),
            distance=as_number(row.get("distance")),
            spray_chart_x=as_number(row.get("spray_chart_x")),
            spray_chart_z=as_number(row.get("spray_chart_z")),
            poi_x=as_number(row.get("poi_x")),
            poi_y=as_number(row.get("poi_y")),
            poi_z=as_number(row.get("poi_z")),
        )


@dataclass(frozen=True)
class ZoneCell:
    """One non-empty grid cell. Row 0 is the lowest pitch height, col 0 the catcher's left."""

    row: int
    col: int
    count: int
    mean: float
    # Heat tier of the cell mean; set for exit-velocity grids only.
    tier: Optional[str] = None
    swings: Tuple[Swing, ...] = field(default=(), repr=False)


@dataclass(frozen=True)
class FieldZoneStats:
    zone: str
    count: int
    pct: float
    avg_exit_velocity: Optional[float]
    peak_exit_velocity: Optional[float]


@dataclass(frozen=True)
class SprayPoint:
    swing_id: str
    x: float
    z: float
    exit_velocity: float
    tier: str


@dataclass(frozen=True)
class TrendTotals:
    session_count: int
    swing_count: int
    avg_exit_velocity: Optional[float]
    peak_exit_velocity: Optional[float]
    avg_launch_angle: Optional[float]
    peak_distance: Optional[float]


@dataclass(frozen=True)
class AthleteTrendData:
    """Unfiltered output of one load cycle."""

    athlete_id: str
    playing_level: str
    sessions: Tuple[SessionSummary, ...]
    swings: Tuple[Swing, ...]
    complete: bool = True


@dataclass(frozen=True)
class TrendsReport:
    athlete_id: str
    playing_level: str
    window: str
    cutoff: Optional[datetime]
    complete: bool
    totals: TrendTotals
    sessions: Tuple[SessionSummary, ...]
    swings: Tuple[Swing, ...]
    field_zones: Tuple[FieldZoneStats, ...]
    directional_tendency: Optional[float]
    tendency_label: Optional[str]
    strike_zone_exit_velocity: Tuple[ZoneCell, ...]
    strike_zone_launch_angle: Tuple[ZoneCell, ...]
    heatmap_grid_size: int
    heatmap: Tuple[ZoneCell, ...]
    spray_points: Tuple[SprayPoint, ...]
