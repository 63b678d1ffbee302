"""Exit-velocity heat tiers keyed by playing level."""
from __future__ import annotations

from enum import Enum
from typing import Optional

from backend.app.trends.thresholds import (
    DEFAULT_PLAYING_LEVEL,
    PLAY_LEVEL_LABELS,
    THRESHOLD_TABLES,
    get_threshold_table,
)


class HeatTier(str, Enum):
    HOT = "hot"
    WARM = "warm"
    COOL = "cool"
    COLD = "cold"
    ICE = "ice"

    @property
    def rank(self) -> int:
        """0 for the hottest tier, 4 for the coldest."""
        return list(HeatTier).index(self)


def normalize_playing_level(raw: Optional[str]) -> str:
    """Map a stored play_level (slug or display label) to a threshold key.

    Unrecognized or missing levels fall back to high-school.
    """
    if raw is None:
        return DEFAULT_PLAYING_LEVEL
    value = str(raw).strip()
    if value in THRESHOLD_TABLES:
        return value
    if value in PLAY_LEVEL_LABELS:
        return PLAY_LEVEL_LABELS[value]
    lowered = value.lower().replace(" ", "-").replace("_", "-")
    if lowered in THRESHOLD_TABLES:
        return lowered
    return DEFAULT_PLAYING_LEVEL


def classify_exit_velocity(exit_velocity: float, playing_level: Optional[str] = None) -> HeatTier:
    table = get_threshold_table(normalize_playing_level(playing_level))
    value = float(exit_velocity)
    if value >= table.hot:
        return HeatTier.HOT
    if value >= table.warm:
        return HeatTier.WARM
    if value >= table.cool:
        return HeatTier.COOL
    if value >= table.cold:
        return HeatTier.COLD
    return HeatTier.ICE
