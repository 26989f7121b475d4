# backend/rsvp_api/api/deps.py
"""
Shared API dependencies.

Services live on app.state (built once in create_app from Settings), so
handlers reach them through the request instead of module globals.
"""

from __future__ import annotations

import json
from typing import Any, Dict

from fastapi import Request

from rsvp_api.core.background import BackgroundTaskRegistry
from rsvp_api.core.config import Settings
from rsvp_api.core.email import RsvpNotifier
from rsvp_api.core.errors import AuthError
from rsvp_api.core.security import TokenService, is_admin, parse_bearer


async def json_body(request: Request) -> Dict[str, Any]:
    """
    Request body as a dict. Empty bodies and non-object JSON read as {}.
    Malformed JSON is not a client validation case; it propagates as a 500.
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    data = json.loads(raw)
    return data if isinstance(data, dict) else {}


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_notifier(request: Request) -> RsvpNotifier:
    return request.app.state.notifier


def get_task_registry(request: Request) -> BackgroundTaskRegistry:
    return request.app.state.task_registry


def require_admin(request: Request) -> Dict[str, Any]:
    """
    Bearer token -> verified claims with role=admin, or 401.
    Every failure mode yields the same AuthError message.
    """
    token = parse_bearer(request.headers.get("authorization"))
    claims = get_token_service(request).verify(token) if token else None
    if not is_admin(claims):
        raise AuthError()
    return claims
