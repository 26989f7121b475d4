# backend/rsvp_api/api/admin.py
"""
Operator endpoints: password login, then invite list/create/delete with a
bearer token.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from rsvp_api.api.deps import get_settings, get_token_service, json_body, require_admin
from rsvp_api.core.errors import AuthError, ValidationError
from rsvp_api.core.rate_limit import client_ip, login_rate_limit
from rsvp_api.core.security import ADMIN_ROLE, verify_admin_password
from rsvp_api.db.session import get_db
from rsvp_api.schemas import InviteOut
from rsvp_api.services.invites import (
    as_text,
    create_invite,
    delete_invite,
    list_invites_with_rsvps,
    parse_invite_create,
)

logger = logging.getLogger("rsvp.admin")

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", dependencies=[Depends(login_rate_limit)])
def login(request: Request, body: dict = Depends(json_body)):
    password = as_text(body.get("password"))
    if not password:
        raise ValidationError("Password required.")

    settings = get_settings(request)
    if not verify_admin_password(settings, password):
        logger.warning("admin login failed ip=%s", client_ip(request))
        raise AuthError()

    token = get_token_service(request).issue({"role": ADMIN_ROLE}, settings.admin_token_ttl_seconds)
    logger.info("admin login ok ip=%s ttl_seconds=%s", client_ip(request), settings.admin_token_ttl_seconds)
    return {"token": token}


@router.get("/invites", dependencies=[Depends(require_admin)])
def list_invites(db: Session = Depends(get_db)):
    return {"invites": [item.to_wire() for item in list_invites_with_rsvps(db)]}


@router.post("/invites", dependencies=[Depends(require_admin)])
def add_invite(body: dict = Depends(json_body), db: Session = Depends(get_db)):
    data = parse_invite_create(body)
    invite = create_invite(db, data)
    return {"invite": InviteOut.model_validate(invite).to_wire()}


@router.delete("/invites", dependencies=[Depends(require_admin)])
def remove_invite(id: Optional[str] = None, db: Session = Depends(get_db)):
    invite_id = (id or "").strip()
    if not invite_id:
        raise ValidationError("Missing id")

    delete_invite(db, invite_id)
    return {"ok": True}
