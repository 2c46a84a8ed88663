from autowhiz.models import ActivityLog, SavedVehicle

from conftest import OTHER_USER_ID

VIN = "1HGBH41JXMN109186"
OTHER_VIN = "1M8GDM9AXKP042788"


def _save(client, vin=VIN, **fields):
    return client.post("/vehicles", json={"vin": vin, **fields})


def test_save_vehicle(client, db_session):
    response = _save(client, vin=VIN.lower(), make="Honda", listingPrice=18500, dealerName="Bay Motors")
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["vin"] == VIN
    assert data["listing_price"] == 18500.0
    assert data["dealer_name"] == "Bay Motors"
    assert db_session.query(ActivityLog).filter(ActivityLog.action == "vehicle_saved").count() == 1


def test_duplicate_vin_conflicts(client, db_session):
    assert _save(client).status_code == 201
    response = _save(client)
    assert response.status_code == 409
    assert response.json() == {"error": "Vehicle already saved"}
    assert db_session.query(SavedVehicle).count() == 1


def test_same_vin_for_another_user_is_allowed(client, db_session):
    db_session.add(SavedVehicle(user_id=OTHER_USER_ID, vin=VIN))
    db_session.commit()
    assert _save(client).status_code == 201


def test_save_rejects_bad_vin(client):
    assert _save(client, vin="1HGBH41IXMN109186").status_code == 400


def test_list_sorted(client, db_session):
    _save(client, vin=VIN, year=2021)
    _save(client, vin=OTHER_VIN, year=2019)
    db_session.add(SavedVehicle(user_id=OTHER_USER_ID, vin=VIN, year=2024))
    db_session.commit()

    body = client.get("/vehicles", params={"sortBy": "year", "sortOrder": "asc"}).json()
    assert [v["year"] for v in body["data"]] == [2019, 2021]
    assert body["pagination"]["total"] == 2


def test_update_vehicle(client):
    vehicle_id = _save(client).json()["data"]["id"]
    response = client.patch("/vehicles", json={"id": vehicle_id, "status": "contacted", "listingPrice": 17900})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "contacted"
    assert response.json()["data"]["listing_price"] == 17900.0


def test_update_other_users_vehicle_is_not_found(client, db_session):
    theirs = SavedVehicle(user_id=OTHER_USER_ID, vin=VIN)
    db_session.add(theirs)
    db_session.commit()
    assert client.patch("/vehicles", json={"id": theirs.id, "notes": "x"}).status_code == 404


def test_delete_by_vin_or_id(client, db_session):
    _save(client)
    other_id = _save(client, vin=OTHER_VIN).json()["data"]["id"]

    assert client.delete("/vehicles", params={"vin": VIN}).status_code == 200
    assert client.delete("/vehicles", params={"id": other_id}).status_code == 200
    assert db_session.query(SavedVehicle).count() == 0
    assert client.delete("/vehicles", params={"id": other_id}).status_code == 404
    assert client.delete("/vehicles").status_code == 400
