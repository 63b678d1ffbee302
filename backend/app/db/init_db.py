from backend.app.db.base import Base
from backend.app.db import models  # noqa: F401  registers tables on Base.metadata
from backend.app.db.session import engine


def init_db() -> None:
    """Create the athletes/hittrax tables in the configured database (local dev and tests)."""
    Base.metadata.create_all(bind=engine)


if __name__ == "__main__":
    init_db()
