# backend/tests/test_store.py

from datetime import datetime, timezone

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from rsvp_api.db.init_db import create_tables
from rsvp_api.db.session import build_engine, build_session_factory
from rsvp_api.models import Rsvp
from rsvp_api.services.invites import (
    InviteCreate,
    create_invite,
    delete_invite,
    find_invite_by_norm_name,
    list_invites_with_rsvps,
)
from rsvp_api.services.rsvps import RsvpSubmission, get_rsvp, upsert_rsvp


@pytest.fixture()
def engine():
    eng = build_engine("sqlite+pysqlite://")
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def db(engine):
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


def _now():
    return datetime.now(timezone.utc)


def test_norm_name_is_indexed(engine):
    indexes = {ix["name"]: ix["column_names"] for ix in inspect(engine).get_indexes("invites")}
    assert indexes["ix_invites_norm_name"] == ["norm_name"]


def test_create_invite_stores_normalized_name(db):
    invite = create_invite(db, InviteCreate("The Smith Family!", 2, None))
    assert invite.norm_name == "the smith family"
    assert find_invite_by_norm_name(db, "the smith family").id == invite.id
    assert find_invite_by_norm_name(db, "The Smith Family!") is None


def test_duplicate_names_resolve_to_the_oldest_invite(db):
    first = create_invite(db, InviteCreate("John Smith", 1, None))
    create_invite(db, InviteCreate("JOHN SMITH", 3, None))
    assert find_invite_by_norm_name(db, "john smith").id == first.id


def test_second_plain_insert_for_an_invite_is_refused(db):
    invite_id = create_invite(db, InviteCreate("Ana", 0, None)).id
    db.add(Rsvp(invite_id=invite_id, primary_name="Ana", attending=True, extra_guest_names="[]", submitted_at=_now()))
    db.commit()
    db.expunge_all()

    db.add(Rsvp(invite_id=invite_id, primary_name="Ana", attending=False, extra_guest_names="[]", submitted_at=_now()))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_upsert_keeps_one_row_and_last_write_wins(db):
    invite = create_invite(db, InviteCreate("Ana", 2, None))

    upsert_rsvp(
        db,
        RsvpSubmission(invite.id, "Ana", True, ["Bo", "Cy"], "first"),
        submitted_at=_now(),
        ip="203.0.113.1",
    )
    upsert_rsvp(
        db,
        RsvpSubmission(invite.id, "Ana L.", False, [], None),
        submitted_at=_now(),
        ip=None,
    )

    assert db.query(Rsvp).count() == 1
    db.expire_all()
    row = get_rsvp(db, invite.id)
    assert row.primary_name == "Ana L."
    assert row.attending is False
    assert row.guest_names == []
    assert row.notes is None
    assert row.ip is None


def test_delete_takes_the_rsvp_with_it(db):
    invite_id = create_invite(db, InviteCreate("Ana", 1, None)).id
    upsert_rsvp(db, RsvpSubmission(invite_id, "Ana", True, ["Bo"]), submitted_at=_now(), ip=None)

    assert delete_invite(db, invite_id) is True
    assert get_rsvp(db, invite_id) is None
    assert delete_invite(db, invite_id) is False


def test_list_orders_newest_first(db):
    older = create_invite(db, InviteCreate("Older", 0, None))
    newer = create_invite(db, InviteCreate("Newer", 0, None))
    ids = [item.id for item in list_invites_with_rsvps(db)]
    assert ids == [newer.id, older.id]


def test_corrupt_guest_names_read_as_empty():
    assert Rsvp(extra_guest_names="not json").guest_names == []
    assert Rsvp(extra_guest_names='{"a": 1}').guest_names == []
    assert Rsvp(extra_guest_names='["Bo", "Cy"]').guest_names == ["Bo", "Cy"]
