from datetime import date
from typing import Optional

from sqlalchemy import Date, Float, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base


class Athlete(Base):
    __tablename__ = "athletes"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    user_id: Mapped[Optional[str]] = mapped_column(Text, unique=True)
    play_level: Mapped[Optional[str]] = mapped_column(Text)


class HittraxSession(Base):
    __tablename__ = "hittrax_sessions"
    __table_args__ = (Index("idx_hittrax_sessions_athlete_date", "athlete_id", "session_date"),)

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    athlete_id: Mapped[str] = mapped_column(Text, ForeignKey("athletes.id"), nullable=False)
    session_date: Mapped[Optional[date]] = mapped_column(Date)
    avg_exit_velocity: Mapped[Optional[float]] = mapped_column(Float)
    max_exit_velocity: Mapped[Optional[float]] = mapped_column(Float)
    avg_launch_angle: Mapped[Optional[float]] = mapped_column(Float)
    max_distance: Mapped[Optional[float]] = mapped_column(Float)
    total_swings: Mapped[Optional[int]] = mapped_column(Integer)


class HittraxSwing(Base):
    __tablename__ = "hittrax_swings"
    __table_args__ = (Index("idx_hittrax_swings_session", "session_id"),)

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    session_id: Mapped[str] = mapped_column(Text, ForeignKey("hittrax_sessions.id"), nullable=False)
    exit_velocity: Mapped[float] = mapped_column(Float, nullable=False)
    launch_angle: Mapped[Optional[float]] = mapped_column(Float)
    distance: Mapped[Optional[float]] = mapped_column(Float)
    spray_chart_x: Mapped[Optional[float]] = mapped_column(Float)
    spray_chart_z: Mapped[Optional[float]] = mapped_column(Float)
    poi_x: Mapped[Optional[float]] = mapped_column(Float)
    poi_y: Mapped[Optional[float]] = mapped_column(Float)
    poi_z: Mapped[Optional[float]] = mapped_column(Float)


# Store collection name -> mapped model, used by the range-request adapters.
TABLES = {
    Athlete.__tablename__: Athlete,
    HittraxSession.__tablename__: HittraxSession,
    HittraxSwing.__tablename__: HittraxSwing,
}
