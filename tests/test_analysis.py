from unittest.mock import patch

import pytest

from autowhiz.core.errors import NotFoundError, ValidationError
from autowhiz.models import ActivityLog, Analysis, MarketValue, Profile, Subscription, VehicleHistory
from autowhiz.services import analysis_service

from conftest import OTHER_USER_ID, USER_ID

VIN = "1HGBH41JXMN109186"


@pytest.fixture(autouse=True)
def no_queue():
    with patch("autowhiz.services.analysis_service.enqueue_analysis") as enqueue:
        yield enqueue


def _analysis(db_session, user_id=USER_ID, vin=VIN, status="pending"):
    analysis = Analysis(user_id=user_id, vin=vin, status=status, analysis_options={"include_history": True})
    db_session.add(analysis)
    db_session.commit()
    return analysis


def test_create_increments_counter_and_logs_once(client, db_session, no_queue):
    response = client.post("/analysis", json={"vin": VIN.lower(), "mileage": 35000})
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["vin"] == VIN
    assert data["status"] == "pending"
    assert data["analysis_options"] == {"include_history": True, "include_visual": False, "include_audio": False}

    profile = db_session.get(Profile, USER_ID)
    assert profile.analyses_this_month == 1
    assert profile.total_analyses == 1
    assert profile.last_analysis_at is not None

    logs = db_session.query(ActivityLog).filter(ActivityLog.action == "analysis_created").all()
    assert len(logs) == 1
    assert logs[0].resource_type == "analysis"
    assert logs[0].resource_id == data["id"]
    no_queue.assert_called_once_with(data["id"])


def test_quota_exceeded_inserts_nothing(client, db_session, no_queue):
    profile = db_session.get(Profile, USER_ID)
    profile.analyses_this_month = 2
    db_session.commit()

    response = client.post("/analysis", json={"vin": VIN, "mileage": 35000})

    assert response.status_code == 403
    assert response.json() == {"error": "Monthly analysis limit reached. Please upgrade your plan."}
    assert db_session.query(Analysis).count() == 0
    assert db_session.query(ActivityLog).count() == 0
    db_session.expire_all()
    assert db_session.get(Profile, USER_ID).analyses_this_month == 2
    no_queue.assert_not_called()


def test_subscriber_uses_plan_quota(client, db_session, plans):
    db_session.add(Subscription(user_id=USER_ID, plan_id=plans["pro"].id, status="active"))
    profile = db_session.get(Profile, USER_ID)
    profile.analyses_this_month = 9
    db_session.commit()

    assert client.post("/analysis", json={"vin": VIN}).status_code == 201
    assert client.post("/analysis", json={"vin": VIN}).status_code == 403


@pytest.mark.parametrize("vin", [None, "", "1HGBH41JXMN10918", "1HGBH41JXMN1091866"])
def test_create_rejects_bad_vin(client, db_session, vin):
    response = client.post("/analysis", json={"vin": vin})
    assert response.status_code == 400
    assert response.json() == {"error": "Valid 17-character VIN required"}
    assert db_session.get(Profile, USER_ID).analyses_this_month == 0


def test_quota_is_enforced_at_the_database(db_session, ctx):
    profile = db_session.get(Profile, USER_ID)
    profile.analyses_this_month = 1
    db_session.commit()

    analysis_service._reserve_slot(db_session, USER_ID, 2)
    db_session.commit()
    with pytest.raises(analysis_service.QuotaExceededError):
        analysis_service._reserve_slot(db_session, USER_ID, 2)
    db_session.rollback()
    assert db_session.get(Profile, USER_ID).analyses_this_month == 2


def test_get_single_with_details(client, db_session):
    analysis = _analysis(db_session)
    db_session.add(VehicleHistory(analysis_id=analysis.id, owner_count=2, result={"clean_title": True}))
    db_session.commit()

    response = client.get(f"/analysis/{analysis.id}")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["vehicle_history"]["owner_count"] == 2
    assert data["market_value"] is None

    assert client.get("/analysis", params={"id": analysis.id}).json()["data"]["id"] == analysis.id


def test_other_users_analysis_is_not_found(client, db_session):
    theirs = _analysis(db_session, user_id=OTHER_USER_ID)

    assert client.get(f"/analysis/{theirs.id}").status_code == 404
    assert client.patch(f"/analysis/{theirs.id}", json={"notes": "mine now"}).status_code == 404
    response = client.delete(f"/analysis/{theirs.id}")
    assert response.status_code == 404
    assert response.json() == {"error": "Analysis not found"}
    assert db_session.get(Analysis, theirs.id) is not None


def test_list_is_paged_newest_first(client, db_session):
    for _ in range(3):
        _analysis(db_session)
    _analysis(db_session, status="completed")
    _analysis(db_session, user_id=OTHER_USER_ID)

    body = client.get("/analysis", params={"limit": 2}).json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"total": 4, "limit": 2, "offset": 0, "hasMore": True}

    last_page = client.get("/analysis", params={"limit": 2, "offset": 2}).json()
    assert last_page["pagination"]["hasMore"] is False

    completed = client.get("/analysis", params={"status": "completed"}).json()
    assert [a["status"] for a in completed["data"]] == ["completed"]


def test_update_ignores_non_whitelisted_fields(client, db_session):
    analysis = _analysis(db_session)

    response = client.patch(
        f"/analysis/{analysis.id}",
        json={"notes": "Clean car", "starred": True, "askingPrice": 18500, "status": "completed"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["notes"] == "Clean car"
    assert data["starred"] is True
    assert data["asking_price"] == 18500.0
    assert data["status"] == "pending"


def test_delete_removes_details_and_logs(client, db_session):
    analysis = _analysis(db_session)
    db_session.add(MarketValue(analysis_id=analysis.id, average_price=21000))
    db_session.commit()
    analysis_id = analysis.id

    response = client.delete("/analysis", params={"id": analysis_id})
    assert response.status_code == 200
    assert db_session.get(Analysis, analysis_id) is None
    assert db_session.query(MarketValue).count() == 0
    assert db_session.query(ActivityLog).filter(ActivityLog.action == "analysis_deleted").count() == 1


def test_delete_without_id(client):
    assert client.delete("/analysis").status_code == 400


def test_set_status_follows_state_machine(db_session, profile):
    analysis = _analysis(db_session)

    analysis_service.set_status(db_session, analysis.id, "processing", progress=40)
    done = analysis_service.set_status(db_session, analysis.id, "completed")
    assert done.progress == 100

    with pytest.raises(ValidationError):
        analysis_service.set_status(db_session, analysis.id, "processing")
    with pytest.raises(ValidationError):
        analysis_service.set_status(db_session, analysis.id, "archived")
    with pytest.raises(NotFoundError):
        analysis_service.set_status(db_session, "missing", "processing")


def test_unauthenticated_request_is_rejected(anon_client):
    response = anon_client.get("/analysis")
    assert response.status_code == 401
    assert response.json() == {"error": "Missing authorization header"}
