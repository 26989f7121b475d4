# backend/tests/test_end_to_end.py
"""
One guest's full journey: the organiser creates the invite, the guest finds
it by name, opens it, RSVPs with two extra guests, and the organiser sees
a party of three.
"""

from fastapi.testclient import TestClient

from rsvp_api.main import create_app
from tests.conftest import ADMIN_PASSWORD, SITE_ORIGIN, RecordingNotifier, make_settings


def test_invite_find_rsvp_and_admin_summary():
    notifier = RecordingNotifier()
    app = create_app(make_settings(), notifier=notifier)

    with TestClient(app) as c:
        token = c.post("/admin/login", json={"password": ADMIN_PASSWORD}).json()["token"]
        admin = {"Authorization": f"Bearer {token}"}

        created = c.post(
            "/admin/invites",
            json={"displayName": "John Smith", "allowedGuests": 2, "message": "Can't wait!"},
            headers=admin,
        ).json()["invite"]

        found = c.post("/public/find", json={"name": "john  SMITH."}, headers={"Origin": SITE_ORIGIN})
        assert found.status_code == 200
        assert found.headers["access-control-allow-origin"] == SITE_ORIGIN
        invite = found.json()["invite"]
        assert invite["id"] == created["id"]

        opened = c.get("/public/invite", params={"id": invite["id"]})
        assert opened.json()["invite"] == invite

        too_many = c.post(
            "/public/rsvp",
            json={
                "inviteId": invite["id"],
                "primaryName": "John Smith",
                "attending": True,
                "extraGuestNames": ["Jane Smith", "Joe Smith", "Jim Smith"],
            },
        )
        assert too_many.status_code == 400

        ok = c.post(
            "/public/rsvp",
            json={
                "inviteId": invite["id"],
                "primaryName": "John Smith",
                "attending": True,
                "extraGuestNames": ["Jane Smith", "Joe Smith"],
                "notes": "Vegetarian x2",
            },
        )
        assert ok.status_code == 200
        assert ok.json() == {"ok": True}

        (row,) = c.get("/admin/invites", headers=admin).json()["invites"]
        assert row["displayName"] == "John Smith"
        assert row["rsvpAttending"] == 3
        assert row["rsvpPrimaryName"] == "John Smith"
        assert row["rsvpExtraGuestNames"] == ["Jane Smith", "Joe Smith"]
        assert row["rsvpNotes"] == "Vegetarian x2"

    (notice,) = notifier.sent
    assert notice.attending_count == 3
    assert notice.invite_name == "John Smith"
