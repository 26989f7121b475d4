# backend/rsvp_api/schemas.py
"""
Wire shapes. The frontend speaks camelCase, so every outbound model
serializes by alias.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def _as_utc_iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    # SQLite hands back naive datetimes; everything is stored in UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


class InviteOut(_CamelModel):
    id: str
    display_name: str
    allowed_guests: int
    message: Optional[str] = None


class AdminInviteOut(InviteOut):
    created_at: Optional[datetime] = None

    # None: no RSVP yet. 0: declined. Otherwise the headcount including the invitee.
    rsvp_attending: Optional[int] = None
    rsvp_updated_at: Optional[datetime] = None
    rsvp_primary_name: Optional[str] = None
    rsvp_extra_guest_names: Optional[List[str]] = None
    rsvp_notes: Optional[str] = None

    @field_serializer("created_at", "rsvp_updated_at")
    def _serialize_dt(self, value: Optional[datetime]) -> Optional[str]:
        return _as_utc_iso(value)
