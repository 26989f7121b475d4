# backend/tests/test_email.py

import asyncio
import json

import httpx
import pytest

from rsvp_api.core.email import RESEND_URL, RsvpNotice, RsvpNotifier, build_rsvp_email
from rsvp_api.core.errors import NotificationError
from tests.conftest import make_settings


def _notice(**overrides) -> RsvpNotice:
    values = dict(
        invite_name="The Smith Family",
        primary_name="John Smith",
        attending=True,
        extra_guest_names=["Jane Smith", "Joe Smith"],
        notes="Vegetarian x2",
        submitted_at="2026-06-01T12:00:00+00:00",
        ip="203.0.113.7",
    )
    values.update(overrides)
    return RsvpNotice(**values)


def test_attending_email_summarises_the_party():
    message = build_rsvp_email(_notice())

    assert message.subject == "RSVP: The Smith Family - Attending"
    assert "Total attending (including invitee): 3" in message.text_body
    assert "Guest names: Jane Smith, Joe Smith" in message.text_body
    assert "Notes: Vegetarian x2" in message.text_body
    assert "IP: 203.0.113.7" in message.text_body
    assert "<strong>Total attending:</strong> 3" in message.html_body


def test_declined_email_counts_zero_and_lists_no_guests():
    message = build_rsvp_email(_notice(attending=False, extra_guest_names=[], notes=None, ip=None))

    assert message.subject == "RSVP: The Smith Family - Declined"
    assert "Total attending (including invitee): 0" in message.text_body
    assert "Guest names: -" in message.text_body
    assert "Notes: -" in message.text_body
    assert "IP: -" in message.text_body
    assert "IP:" not in message.html_body


def test_html_body_escapes_guest_supplied_text():
    message = build_rsvp_email(
        _notice(primary_name="<script>alert(1)</script>", notes="Tom & Jerry")
    )
    assert "<script>" not in message.html_body
    assert "&lt;script&gt;" in message.html_body
    assert "Tom &amp; Jerry" in message.html_body


def _resend_settings(**overrides):
    values = dict(email_provider="resend", resend_api_key="re_test_key")
    values.update(overrides)
    return make_settings(**values)


def test_resend_provider_posts_the_message():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "email_123"})

    notifier = RsvpNotifier(_resend_settings(), transport=httpx.MockTransport(handler))
    asyncio.run(notifier.send(_notice()))

    (request,) = seen
    assert str(request.url) == RESEND_URL
    assert request.method == "POST"
    assert request.headers["authorization"] == "Bearer re_test_key"

    payload = json.loads(request.content)
    assert payload["from"] == "rsvp@example.com"
    assert payload["to"] == ["hosts@example.com"]
    assert payload["subject"] == "RSVP: The Smith Family - Attending"
    assert "John Smith" in payload["text"]
    assert payload["html"].startswith("<div")


def test_resend_error_status_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, text="invalid from address")

    notifier = RsvpNotifier(_resend_settings(), transport=httpx.MockTransport(handler))
    with pytest.raises(NotificationError) as excinfo:
        asyncio.run(notifier.send(_notice()))
    assert "422" in str(excinfo.value)


def test_resend_without_api_key_falls_back_to_log_mode(caplog):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    notifier = RsvpNotifier(
        _resend_settings(resend_api_key=None),
        transport=httpx.MockTransport(handler),
    )
    with caplog.at_level("INFO", logger="rsvp.email"):
        asyncio.run(notifier.send(_notice()))

    assert calls == []
    assert "RESEND_API_KEY is not set" in caplog.text
    assert "RSVP email (log mode)" in caplog.text


def test_log_provider_never_touches_the_network(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("network used in log mode")

    notifier = RsvpNotifier(make_settings(email_provider=" LOG "), transport=httpx.MockTransport(handler))
    assert notifier.provider == "log"

    with caplog.at_level("INFO", logger="rsvp.email"):
        asyncio.run(notifier.send(_notice(attending=False, extra_guest_names=[])))

    assert "RSVP: The Smith Family - Declined" in caplog.text
