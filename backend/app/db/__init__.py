from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine, make_engine, make_session_factory
from backend.app.db import models

__all__ = ["Base", "SessionLocal", "engine", "make_engine", "make_session_factory", "models"]
