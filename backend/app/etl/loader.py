"""ETL loader for seeding the local store with HitTrax session/swing exports."""
from __future__ import annotations

import argparse
import math
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

import pandas as pd
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.logging import configure_logging, logger
from backend.app.db import models
from backend.app.trends.records import parse_session_date

CsvSource = Union[str, Path, pd.DataFrame]


def clean_value(v):
    """
    Convert pandas NA, numpy scalars and NaN-like values into plain Python values.
    SQLAlchemy cannot bind numpy scalars or NaN for nullable columns.
    """
    if v is None or v is pd.NA:
        return None
    if isinstance(v, float) and math.isnan(v):
        return None
    if hasattr(v, "item"):
        v = v.item()
        if isinstance(v, float) and math.isnan(v):
            return None
    return v


def _records(source: CsvSource) -> Iterable[dict]:
    frame = source if isinstance(source, pd.DataFrame) else pd.read_csv(source)
    for row in frame.to_dict(orient="records"):
        yield {k: clean_value(v) for k, v in row.items()}


def _id(value) -> Optional[str]:
    if value is None:
        return None
    # Numeric ids read back from CSV as floats (12.0) when the column has blanks.
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


class HittraxLoader:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _filtered(self, model, row: Mapping) -> dict:
        allowed = {col.key for col in model.__table__.columns}
        return {k: v for k, v in row.items() if k in allowed}

    def upsert_athletes(self, athletes: Iterable[Mapping]) -> int:
        count = 0
        for row in athletes:
            athlete_id = _id(row["id"])
            athlete = self.session.get(models.Athlete, athlete_id) or models.Athlete(id=athlete_id)
            athlete.user_id = _id(row.get("user_id"))
            athlete.play_level = row.get("play_level")
            self.session.add(athlete)
            count += 1
        logger.info("Upserted %s athletes", count)
        return count

    def insert_sessions(self, sessions: Iterable[Mapping]) -> int:
        objs = []
        for row in sessions:
            clean_row = self._filtered(models.HittraxSession, row)
            clean_row["id"] = _id(clean_row["id"])
            clean_row["athlete_id"] = _id(clean_row.get("athlete_id"))
            clean_row["session_date"] = parse_session_date(clean_row.get("session_date"))
            if clean_row.get("total_swings") is not None:
                clean_row["total_swings"] = int(clean_row["total_swings"])
            objs.append(models.HittraxSession(**clean_row))
        if objs:
            self.session.add_all(objs)
        logger.info("Inserted %s hittrax_sessions rows", len(objs))
        return len(objs)

    def insert_swings(self, swings: Iterable[Mapping]) -> int:
        objs = []
        skipped = 0
        for row in swings:
            clean_row = self._filtered(models.HittraxSwing, row)
            if clean_row.get("exit_velocity") is None:
                skipped += 1
                continue
            clean_row["id"] = _id(clean_row["id"])
            clean_row["session_id"] = _id(clean_row.get("session_id"))
            objs.append(models.HittraxSwing(**clean_row))
        if objs:
            self.session.add_all(objs)
        if skipped:
            logger.warning("Skipped %s swings without exit_velocity", skipped)
        logger.info("Inserted %s hittrax_swings rows", len(objs))
        return len(objs)

    def load_all(
        self,
        *,
        athletes: CsvSource,
        sessions: CsvSource,
        swings: CsvSource,
    ) -> None:
        self.upsert_athletes(_records(athletes))
        self.session.flush()
        self.insert_sessions(_records(sessions))
        self.session.flush()
        self.insert_swings(_records(swings))
        self.session.commit()
        logger.info("Committed full batch load")


def main() -> None:
    parser = argparse.ArgumentParser(description="Load HitTrax CSV exports into the local store")
    parser.add_argument("--athletes", required=True, help="CSV with id, user_id, play_level")
    parser.add_argument("--sessions", required=True, help="CSV of hittrax_sessions rows")
    parser.add_argument("--swings", required=True, help="CSV of hittrax_swings rows")
    parser.add_argument("--init-db", action="store_true", help="Create tables before loading")
    args = parser.parse_args()

    configure_logging(settings.log_level)
    from backend.app.db.session import SessionLocal

    if args.init_db:
        from backend.app.db.init_db import init_db

        init_db()

    with SessionLocal() as session:
        HittraxLoader(session).load_all(athletes=args.athletes, sessions=args.sessions, swings=args.swings)


if __name__ == "__main__":
    main()
