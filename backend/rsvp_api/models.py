# backend/rsvp_api/models.py
import json
from typing import List

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import text

from rsvp_api.db.base import Base

# Cross-DB timestamp default (SQLite + Postgres)
DB_NOW = text("CURRENT_TIMESTAMP")

MAX_ALLOWED_GUESTS = 10


class Invite(Base):
    __tablename__ = "invites"

    id = Column(String(36), primary_key=True)
    display_name = Column(Text, nullable=False)
    # normalize_name(display_name); lookups only ever hit this column
    norm_name = Column(Text, nullable=False)
    allowed_guests = Column(Integer, nullable=False, default=0, server_default=text("0"))
    message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=DB_NOW, nullable=False)

    __table_args__ = (
        Index("ix_invites_norm_name", "norm_name"),
        CheckConstraint(
            f"allowed_guests >= 0 AND allowed_guests <= {MAX_ALLOWED_GUESTS}",
            name="ck_invites_allowed_guests_range",
        ),
    )


class Rsvp(Base):
    """
    One response per invite. invite_id is the primary key, so the database
    itself refuses a second row; resubmissions go through an upsert.

    No FK cascade: the invite delete handler removes the row explicitly.
    """

    __tablename__ = "rsvps"

    invite_id = Column(String(36), primary_key=True)
    primary_name = Column(Text, nullable=False)
    attending = Column(Boolean, nullable=False)
    # JSON-encoded list[str]
    extra_guest_names = Column(Text, nullable=False, default="[]")
    notes = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=False)
    ip = Column(String(64), nullable=True)

    @property
    def guest_names(self) -> List[str]:
        try:
            names = json.loads(self.extra_guest_names or "[]")
        except ValueError:
            return []
        if not isinstance(names, list):
            return []
        return [str(n) for n in names]
