# backend/rsvp_api/services/invites.py
from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from rsvp_api.core.errors import ValidationError
from rsvp_api.models import MAX_ALLOWED_GUESTS, Invite, Rsvp
from rsvp_api.schemas import AdminInviteOut
from rsvp_api.services.names import normalize_name

logger = logging.getLogger("rsvp.invites")

ALLOWED_GUESTS_MESSAGE = f"allowedGuests must be an integer between 0 and {MAX_ALLOWED_GUESTS}."


def as_text(value: Any) -> str:
    """Loose string coercion for JSON fields: null and non-scalars become ""."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (str, int, float)):
        return str(value)
    return ""


def parse_allowed_guests(value: Any) -> int:
    """
    Accept integers, integral floats (2.0) and integral numeric strings ("2").
    Booleans, fractions and anything outside [0, MAX_ALLOWED_GUESTS] are rejected.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValidationError(ALLOWED_GUESTS_MESSAGE)

    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValidationError(ALLOWED_GUESTS_MESSAGE)
        number = int(value)
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            return 0
        try:
            parsed = float(raw)
        except ValueError:
            raise ValidationError(ALLOWED_GUESTS_MESSAGE)
        if not math.isfinite(parsed) or not parsed.is_integer():
            raise ValidationError(ALLOWED_GUESTS_MESSAGE)
        number = int(parsed)
    else:
        raise ValidationError(ALLOWED_GUESTS_MESSAGE)

    if number < 0 or number > MAX_ALLOWED_GUESTS:
        raise ValidationError(ALLOWED_GUESTS_MESSAGE)
    return number


@dataclass
class InviteCreate:
    display_name: str
    allowed_guests: int
    message: Optional[str]


def parse_invite_create(body: dict) -> InviteCreate:
    display_name = as_text(body.get("displayName")).strip()
    if not display_name:
        raise ValidationError("displayName required")

    allowed_guests = parse_allowed_guests(body.get("allowedGuests", 0))

    raw_message = body.get("message")
    message = as_text(raw_message).strip() if raw_message is not None else None

    return InviteCreate(
        display_name=display_name,
        allowed_guests=allowed_guests,
        message=message or None,
    )


# ---------- Store access ----------

def create_invite(db: Session, data: InviteCreate) -> Invite:
    invite = Invite(
        id=str(uuid.uuid4()),
        display_name=data.display_name,
        norm_name=normalize_name(data.display_name),
        allowed_guests=data.allowed_guests,
        message=data.message,
        created_at=datetime.now(timezone.utc),
    )
    db.add(invite)
    db.commit()
    db.refresh(invite)
    logger.info("invite created id=%s allowed_guests=%s", invite.id, invite.allowed_guests)
    return invite


def get_invite(db: Session, invite_id: str) -> Optional[Invite]:
    return db.get(Invite, invite_id)


def find_invite_by_norm_name(db: Session, norm_name: str) -> Optional[Invite]:
    """
    Exact match on the stored, indexed norm_name column. Callers normalize
    the search input; the column is never normalized at query time.
    """
    stmt = (
        select(Invite)
        .where(Invite.norm_name == norm_name)
        .order_by(Invite.created_at.asc())
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


def list_invites_with_rsvps(db: Session) -> List[AdminInviteOut]:
    stmt = (
        select(Invite, Rsvp)
        .outerjoin(Rsvp, Rsvp.invite_id == Invite.id)
        .order_by(Invite.created_at.desc())
    )

    items: List[AdminInviteOut] = []
    for invite, rsvp in db.execute(stmt).all():
        item = AdminInviteOut(
            id=invite.id,
            display_name=invite.display_name,
            allowed_guests=invite.allowed_guests,
            message=invite.message,
            created_at=invite.created_at,
        )
        if rsvp is not None:
            guests = rsvp.guest_names
            item.rsvp_attending = 1 + len(guests) if rsvp.attending else 0
            item.rsvp_updated_at = rsvp.submitted_at
            item.rsvp_primary_name = rsvp.primary_name
            item.rsvp_extra_guest_names = guests
            item.rsvp_notes = rsvp.notes
        items.append(item)
    return items


def delete_invite(db: Session, invite_id: str) -> bool:
    """
    Remove an invite and its RSVP in one transaction. Returns False when
    the invite did not exist (deleting is still treated as success upstream).
    """
    try:
        result = db.execute(delete(Invite).where(Invite.id == invite_id))
        db.execute(delete(Rsvp).where(Rsvp.invite_id == invite_id))
        db.commit()
    except Exception:
        db.rollback()
        raise

    existed = (result.rowcount or 0) > 0
    logger.info("invite deleted id=%s existed=%s", invite_id, existed)
    return existed
