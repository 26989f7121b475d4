# backend/rsvp_api/services/rsvps.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from rsvp_api.core.email import RsvpNotice
from rsvp_api.core.errors import NotFoundError, ValidationError
from rsvp_api.models import Rsvp
from rsvp_api.services.invites import as_text, get_invite

logger = logging.getLogger("rsvp.rsvps")

_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


@dataclass
class RsvpSubmission:
    invite_id: str
    primary_name: str
    attending: bool
    extra_guest_names: List[str] = field(default_factory=list)
    notes: Optional[str] = None


def clean_guest_names(raw) -> List[str]:
    if not isinstance(raw, list):
        return []
    names = (as_text(x).strip() for x in raw)
    return [n for n in names if n]


def parse_rsvp_submission(body: dict) -> RsvpSubmission:
    invite_id = as_text(body.get("inviteId")).strip()
    primary_name = as_text(body.get("primaryName")).strip()
    if not invite_id or not primary_name:
        raise ValidationError("Missing required fields.")

    attending = bool(body.get("attending"))
    notes = as_text(body.get("notes")).strip() or None

    return RsvpSubmission(
        invite_id=invite_id,
        primary_name=primary_name,
        attending=attending,
        # A decline never carries guests, whatever the client sent
        extra_guest_names=clean_guest_names(body.get("extraGuestNames")) if attending else [],
        notes=notes,
    )


def enforce_guest_limit(submission: RsvpSubmission, allowed_guests: int) -> None:
    if submission.attending and len(submission.extra_guest_names) > allowed_guests:
        raise ValidationError(
            f"This invite allows up to {allowed_guests} additional guest(s)."
        )


def upsert_rsvp(
    db: Session,
    submission: RsvpSubmission,
    *,
    submitted_at: datetime,
    ip: Optional[str],
) -> None:
    """
    INSERT ... ON CONFLICT (invite_id) DO UPDATE: the primary key keeps one
    row per invite even under concurrent submissions, and the latest write
    replaces every column.
    """
    dialect = db.get_bind().dialect.name
    insert_fn = _UPSERT_INSERTS.get(dialect)
    if insert_fn is None:
        raise RuntimeError(f"RSVP upsert is not supported on dialect {dialect!r}")

    values = {
        "invite_id": submission.invite_id,
        "primary_name": submission.primary_name,
        "attending": submission.attending,
        "extra_guest_names": json.dumps(submission.extra_guest_names),
        "notes": submission.notes,
        "submitted_at": submitted_at,
        "ip": ip,
    }

    stmt = insert_fn(Rsvp).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Rsvp.invite_id],
        set_={name: stmt.excluded[name] for name in values if name != "invite_id"},
    )

    try:
        db.execute(stmt)
        db.commit()
    except Exception:
        db.rollback()
        raise


def get_rsvp(db: Session, invite_id: str) -> Optional[Rsvp]:
    return db.get(Rsvp, invite_id)


def submit_rsvp(db: Session, body: dict, *, ip: Optional[str]) -> RsvpNotice:
    """
    Validate and store one RSVP. Returns the notice for the organiser email;
    sending it is the caller's business.
    """
    submission = parse_rsvp_submission(body)

    invite = get_invite(db, submission.invite_id)
    if invite is None:
        raise NotFoundError("Invite not found.")

    enforce_guest_limit(submission, invite.allowed_guests)

    submitted_at = datetime.now(timezone.utc)
    upsert_rsvp(db, submission, submitted_at=submitted_at, ip=ip)

    logger.info(
        "rsvp stored invite_id=%s attending=%s extra_guests=%s",
        submission.invite_id,
        submission.attending,
        len(submission.extra_guest_names),
    )

    return RsvpNotice(
        invite_name=invite.display_name,
        primary_name=submission.primary_name,
        attending=submission.attending,
        extra_guest_names=list(submission.extra_guest_names),
        notes=submission.notes,
        submitted_at=submitted_at.isoformat(),
        ip=ip,
    )
