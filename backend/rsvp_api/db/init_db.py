# backend/rsvp_api/db/init_db.py

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine

from rsvp_api.db.base import Base

# IMPORTANT: import models so all Base subclasses are registered
import rsvp_api.models  # noqa: F401

logger = logging.getLogger("rsvp.db")


def create_tables(engine: Engine) -> None:
    """
    Create the invites/rsvps tables (and the norm_name index) if missing.
    Idempotent; deployed environments may run Alembic instead.
    """
    Base.metadata.create_all(bind=engine)
    logger.info("Tables ensured: %s", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    from rsvp_api.core.config import get_settings
    from rsvp_api.db.session import build_engine

    logging.basicConfig(level=logging.INFO)
    create_tables(build_engine(get_settings().database_url))
