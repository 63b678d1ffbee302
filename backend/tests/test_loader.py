from datetime import date

import numpy as np
import pandas as pd
from sqlalchemy import select

from backend.app.db import models
from backend.app.db.base import Base
from backend.app.db.session import make_engine, make_session_factory
from backend.app.etl.loader import HittraxLoader, clean_value


def _session_factory():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    return make_session_factory(engine)


def test_clean_value_handles_pandas_and_numpy_missing_values():
    assert clean_value(pd.NA) is None
    assert clean_value(float("nan")) is None
    assert clean_value(np.float64("nan")) is None
    assert clean_value(np.int64(7)) == 7
    assert isinstance(clean_value(np.float64(1.5)), float)
    assert clean_value("2025-01-01") == "2025-01-01"


def test_load_all_from_csv_files(tmp_path):
    (tmp_path / "athletes.csv").write_text("id,user_id,play_level\n12,u-12,High School\n")
    (tmp_path / "sessions.csv").write_text(
        "id,athlete_id,session_date,total_swings,avg_exit_velocity\n"
        "100,12,2025-04-02T16:00:00,2,81.5\n"
        "101,12,,,\n"
    )
    (tmp_path / "swings.csv").write_text(
        "id,session_id,exit_velocity,launch_angle,spray_chart_x,spray_chart_z,unused\n"
        "1,100,88.2,14.0,-20.5,210.0,x\n"
        "2,100,,10.0,5.0,90.0,y\n"
        "3,101,70.1,,,,z\n"
    )

    SessionLocal = _session_factory()
    with SessionLocal() as session:
        HittraxLoader(session).load_all(
            athletes=tmp_path / "athletes.csv",
            sessions=tmp_path / "sessions.csv",
            swings=tmp_path / "swings.csv",
        )

    with SessionLocal() as session:
        athlete = session.get(models.Athlete, "12")
        assert athlete.play_level == "High School"

        sessions = {s.id: s for s in session.scalars(select(models.HittraxSession))}
        assert sessions["100"].session_date == date(2025, 4, 2)
        assert sessions["100"].total_swings == 2
        assert sessions["101"].session_date is None
        assert sessions["101"].total_swings is None

        swings = session.scalars(select(models.HittraxSwing).order_by(models.HittraxSwing.id)).all()
        assert [s.id for s in swings] == ["1", "3"]
        assert swings[0].session_id == "100"
        assert swings[1].spray_chart_x is None


def test_upsert_athletes_updates_existing_rows():
    SessionLocal = _session_factory()
    with SessionLocal() as session:
        loader = HittraxLoader(session)
        loader.upsert_athletes([{"id": "a", "user_id": "u", "play_level": "Youth"}])
        session.commit()
        loader.upsert_athletes([{"id": "a", "user_id": "u", "play_level": "College"}])
        session.commit()

        rows = session.scalars(select(models.Athlete)).all()
    assert len(rows) == 1
    assert rows[0].play_level == "College"
