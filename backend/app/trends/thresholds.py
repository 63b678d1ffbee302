"""Named constants shared by the batted-ball trend classifiers.

Every boundary the analytics depend on lives here rather than at call sites:
time-window lengths, spray-chart field thirds, the pitch-location noise floor,
the directional tendency range and the per-level exit-velocity breakpoints.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

# Time windows are fixed day counts, not calendar months.
WINDOW_DAYS: Dict[str, int] = {
    "1month": 30,
    "3months": 90,
    "6months": 180,
}

# Spray-chart x (sensor-native units). Pull side is strictly below the left cutoff.
FIELD_LEFT_CUTOFF = -50.0
FIELD_RIGHT_CUTOFF = 50.0

# Mean spray x is mapped from [-TENDENCY_RANGE, +TENDENCY_RANGE] onto [0, 100].
TENDENCY_RANGE = 200.0
TENDENCY_PULL_BELOW = 40.0
TENDENCY_OPPOSITE_ABOVE = 60.0

# poi_y at or below this is sensor noise / out of zone.
POI_Y_MIN = 5.0

# Normalized position assigned on an axis where every sample has the same value.
DEGENERATE_AXIS_VALUE = 0.5

STRIKE_ZONE_GRID = 3
DEFAULT_HEATMAP_GRID = 12


@dataclass(frozen=True)
class ThresholdTable:
    """Descending exit-velocity breakpoints (mph) for one playing level."""

    hot: float
    warm: float
    cool: float
    cold: float


DEFAULT_PLAYING_LEVEL = "high-school"

THRESHOLD_TABLES: Dict[str, ThresholdTable] = {
    "youth": ThresholdTable(hot=80, warm=72, cool=64, cold=55),
    "high-school": ThresholdTable(hot=98, warm=90, cool=82, cold=70),
    "college": ThresholdTable(hot=105, warm=98, cool=90, cold=80),
    "professional": ThresholdTable(hot=110, warm=105, cool=98, cold=88),
}

# Display labels stored on athlete rows -> canonical level slug.
PLAY_LEVEL_LABELS: Dict[str, str] = {
    "Youth": "youth",
    "High School": "high-school",
    "College": "college",
    "Pro": "professional",
}


def get_threshold_table(level: Optional[str]) -> ThresholdTable:
    if level and level in THRESHOLD_TABLES:
        return THRESHOLD_TABLES[level]
    return THRESHOLD_TABLES[DEFAULT_PLAYING_LEVEL]
