# backend/rsvp_api/api/public.py
"""
Guest-facing endpoints: find an invite by name, open it by id, RSVP.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from rsvp_api.api.deps import get_notifier, get_task_registry, json_body
from rsvp_api.core.errors import NotFoundError, ValidationError
from rsvp_api.core.rate_limit import client_ip
from rsvp_api.db.session import get_db
from rsvp_api.schemas import InviteOut
from rsvp_api.services.invites import as_text, find_invite_by_norm_name, get_invite
from rsvp_api.services.names import normalize_name
from rsvp_api.services.rsvps import submit_rsvp

logger = logging.getLogger("rsvp.public")

router = APIRouter(prefix="/public", tags=["public"])


def _rsvp_ip(request: Request) -> Optional[str]:
    ip = client_ip(request)
    return None if ip == "unknown" else ip


@router.post("/find")
def find_invite(body: dict = Depends(json_body), db: Session = Depends(get_db)):
    norm = normalize_name(as_text(body.get("name")))
    if not norm:
        raise ValidationError("Name is required.")

    invite = find_invite_by_norm_name(db, norm)
    if invite is None:
        raise NotFoundError("Invite not found. Please check spelling.")

    return {"invite": InviteOut.model_validate(invite).to_wire()}


@router.get("/invite")
def read_invite(id: Optional[str] = None, db: Session = Depends(get_db)):
    invite_id = (id or "").strip()
    if not invite_id:
        raise ValidationError("Missing id")

    invite = get_invite(db, invite_id)
    if invite is None:
        raise NotFoundError("Invite not found.")

    return {"invite": InviteOut.model_validate(invite).to_wire()}


@router.post("/rsvp")
def rsvp(
    request: Request,
    body: dict = Depends(json_body),
    db: Session = Depends(get_db),
):
    notice = submit_rsvp(db, body, ip=_rsvp_ip(request))

    # The guest gets their answer now; the email settles on the event loop
    # and the lifespan shutdown waits for it.
    notifier = get_notifier(request)
    try:
        get_task_registry(request).spawn(notifier.send(notice), name="rsvp-email")
    except RuntimeError:
        # The RSVP is already stored; only the organiser email is lost
        logger.exception("rsvp email not scheduled invite_id=%s", as_text(body.get("inviteId")).strip())

    return {"ok": True}
