import pytest

from autowhiz.core.errors import NotFoundError, ValidationError
from autowhiz.models import Notification
from autowhiz.services import notification_store

from conftest import OTHER_USER_ID, USER_ID


@pytest.fixture
def inbox(db_session, profile):
    mine = [
        notification_store.create(db_session, USER_ID, "analysis_complete", f"Report {i} ready")
        for i in range(3)
    ]
    read = notification_store.create(db_session, USER_ID, "system", "Welcome")
    read.read = True
    theirs = notification_store.create(db_session, OTHER_USER_ID, "system", "Not yours")
    db_session.commit()
    return {"mine": mine, "read": read, "theirs": theirs}


def test_list_only_own_notifications(client, inbox):
    body = client.get("/notifications").json()
    assert body["pagination"]["total"] == 4
    assert body["unreadCount"] == 3
    assert inbox["theirs"].id not in {n["id"] for n in body["data"]}


def test_list_unread_only_with_paging(client, inbox):
    body = client.get("/notifications", params={"unread": "true", "limit": 2}).json()
    assert len(body["data"]) == 2
    assert all(n["read"] is False for n in body["data"])
    assert body["pagination"] == {"total": 3, "limit": 2, "offset": 0, "hasMore": True}


def test_mark_read_ignores_other_users(client, db_session, inbox):
    ids = [inbox["mine"][0].id, inbox["theirs"].id]
    response = client.patch("/notifications", json={"ids": ids})
    assert response.json() == {"success": True, "updated": 1}

    db_session.expire_all()
    assert db_session.get(Notification, inbox["mine"][0].id).read is True
    assert db_session.get(Notification, inbox["mine"][0].id).read_at is not None
    assert db_session.get(Notification, inbox["theirs"].id).read is False


def test_mark_single_by_id(client, inbox):
    response = client.patch("/notifications", json={"id": inbox["mine"][1].id})
    assert response.json()["updated"] == 1


def test_mark_all(client, db_session, inbox):
    assert client.patch("/notifications", json={"markAll": True}).json()["updated"] == 3
    db_session.expire_all()
    assert db_session.get(Notification, inbox["theirs"].id).read is False


def test_mark_read_requires_ids(client, inbox):
    assert client.patch("/notifications", json={}).status_code == 400


def test_delete_other_users_notification_is_not_found(client, db_session, inbox):
    response = client.delete("/notifications", params={"id": inbox["theirs"].id})
    assert response.status_code == 404
    assert db_session.get(Notification, inbox["theirs"].id) is not None


def test_delete_read(client, db_session, inbox):
    assert client.delete("/notifications", params={"read": "true"}).json()["deleted"] == 1
    assert db_session.query(Notification).filter(Notification.user_id == USER_ID).count() == 3


def test_delete_all_keeps_other_users(client, db_session, inbox):
    assert client.delete("/notifications", params={"all": "true"}).json()["deleted"] == 4
    assert db_session.query(Notification).count() == 1


def test_delete_requires_a_target(client, inbox):
    assert client.delete("/notifications").status_code == 400


def test_store_functions_are_scoped(db_session, inbox, other_ctx):
    with pytest.raises(NotFoundError):
        notification_store.delete_one(db_session, other_ctx, inbox["mine"][0].id)
    with pytest.raises(ValidationError):
        notification_store.mark_read(db_session, other_ctx, [])
    assert notification_store.list_notifications(db_session, other_ctx)["pagination"]["total"] == 1


def test_create_normalizes_unknown_priority(db_session, profile):
    notification = notification_store.create(db_session, USER_ID, "system", "Hi", priority="urgent")
    db_session.commit()
    assert notification.priority == "normal"
