import uuid

from sqlalchemy import func

from rentledger.models import PaymentStatus, Property, TenancyStatus, Unit
from rentledger.services import property_service


def test_create_property_with_units(client, db, factory, auth_headers):
    landlord = factory.landlord()
    response = client.post("/api/properties/", json={
        "name": "  Palm Court ",
        "address": "12 Allen Avenue",
        "unitsCount": 3,
        "rentAmount": 45000,
    }, headers=auth_headers(landlord))
    assert response.status_code == 201
    body = response.json()
    assert body["property"]["name"] == "Palm Court"
    assert [u["name"] for u in body["units"]] == ["1", "2", "3"]
    assert all(u["rentAmount"] == 45000.0 for u in body["units"])

    assert db.query(func.count(Unit.id)).scalar() == 3


def test_create_property_validation(client, factory, auth_headers):
    headers = auth_headers(factory.landlord())
    cases = [
        {"name": "", "unitsCount": 1, "rentAmount": 100},
        {"name": "Block A", "unitsCount": 0, "rentAmount": 100},
        {"name": "Block A", "unitsCount": 2, "rentAmount": 0},
        {"name": "Block A", "unitsCount": 2},
    ]
    for payload in cases:
        response = client.post("/api/properties/", json=payload, headers=headers)
        assert response.status_code == 400, payload


def test_create_property_is_all_or_nothing(client, db, factory, auth_headers, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from sqlalchemy.orm import Session

    landlord = factory.landlord()

    def failing_commit(self):
        raise OperationalError("INSERT INTO units", {}, Exception("disk full"))

    monkeypatch.setattr(Session, "commit", failing_commit)
    response = client.post("/api/properties/", json={
        "name": "Block A", "unitsCount": 4, "rentAmount": 1000,
    }, headers=auth_headers(landlord))
    monkeypatch.undo()

    assert response.status_code == 500
    assert response.json()["detail"] == "Something went wrong. Please try again."
    db.expire_all()
    assert db.query(func.count(Property.id)).scalar() == 0
    assert db.query(func.count(Unit.id)).scalar() == 0


def test_tenant_cannot_manage_properties(client, factory, auth_headers):
    tenant = factory.tenant()
    response = client.get("/api/properties/", headers=auth_headers(tenant))
    assert response.status_code == 403


def test_list_properties_paginated_with_counts(client, factory, auth_headers, past, future):
    landlord = factory.landlord()
    first = factory.property(landlord, name="First", units=2)
    factory.property(landlord, name="Second", units=1)
    factory.property(factory.landlord(), name="Someone else's")

    overdue_tenancy = factory.tenancy(factory.tenant(), first.units[0], next_due_date=past)
    factory.payment(overdue_tenancy, due_date=past)
    pending_tenancy = factory.tenancy(factory.tenant(), first.units[1], next_due_date=future)
    factory.payment(pending_tenancy, due_date=future)

    response = client.get("/api/properties/?page=1&limit=10", headers=auth_headers(landlord))
    assert response.status_code == 200
    body = response.json()
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 2, "totalPages": 1}

    by_name = {item["name"]: item for item in body["items"]}
    assert set(by_name) == {"First", "Second"}
    assert by_name["First"]["unitsCount"] == 2
    assert by_name["First"]["activeTenants"] == 2
    assert by_name["First"]["pendingPayments"] == 1
    assert by_name["First"]["overduePayments"] == 1

    second_page = client.get("/api/properties/?page=2&limit=1", headers=auth_headers(landlord)).json()
    assert len(second_page["items"]) == 1
    assert second_page["pagination"]["totalPages"] == 2
    assert client.get("/api/properties/?page=5&limit=10", headers=auth_headers(landlord)).json()["items"] == []


def test_other_landlords_property_is_not_found(client, factory, auth_headers):
    owner = factory.landlord()
    prop = factory.property(owner)
    intruder = factory.landlord(full_name="Intruder")
    headers = auth_headers(intruder)

    missing = client.get(f"/api/properties/{uuid.uuid4()}", headers=headers)
    foreign = client.get(f"/api/properties/{prop.id}", headers=headers)
    assert missing.status_code == foreign.status_code == 404
    assert missing.json() == foreign.json()

    assert client.patch(f"/api/properties/{prop.id}", json={"name": "Mine"}, headers=headers).status_code == 404
    assert client.delete(f"/api/properties/{prop.id}", headers=headers).status_code == 404
    assert client.get(f"/api/properties/{prop.id}/units", headers=headers).status_code == 404


def test_property_detail_unit_states(client, factory, auth_headers, past, future):
    landlord = factory.landlord()
    prop = factory.property(landlord, units=4)
    u1, u2, u3, _vacant = prop.units

    paid = factory.tenancy(factory.tenant(full_name="Paid Up"), u1, next_due_date=future)
    factory.payment(paid, status=PaymentStatus.VERIFIED, due_date=past)
    factory.tenancy(factory.tenant(), u2, next_due_date=past)
    factory.tenancy(factory.tenant(), u3, next_due_date=future)

    response = client.get(f"/api/properties/{prop.id}", headers=auth_headers(landlord))
    assert response.status_code == 200
    detail = response.json()["property"]
    states = {u["unitNumber"]: u["paymentStatus"] for u in detail["units"]}
    assert states == {"1": "paid", "2": "overdue", "3": "pending", "4": "vacant"}
    assert detail["activeTenants"] == 3
    assert detail["totalRevenue"] == 50000.0
    assert detail["pendingCount"] == 1
    assert detail["overdueCount"] == 1
    assert detail["units"][0]["tenantName"] == "Paid Up"


def test_update_and_delete_property(client, db, factory, auth_headers):
    landlord = factory.landlord()
    prop = factory.property(landlord)
    headers = auth_headers(landlord)

    response = client.patch(f"/api/properties/{prop.id}", json={"name": "Renamed", "address": ""}, headers=headers)
    assert response.status_code == 200
    assert response.json()["property"]["name"] == "Renamed"
    assert response.json()["property"]["address"] is None

    assert client.patch(f"/api/properties/{prop.id}", json={"name": " "}, headers=headers).status_code == 400

    assert client.delete(f"/api/properties/{prop.id}", headers=headers).status_code == 200
    db.expire_all()
    assert db.get(Property, prop.id) is None
    assert db.query(func.count(Unit.id)).scalar() == 0


def test_units_list_and_add(client, factory, auth_headers):
    landlord = factory.landlord()
    prop = factory.property(landlord, units=2)
    factory.tenancy(factory.tenant(full_name="Occupant"), prop.units[0])
    factory.tenancy(factory.tenant(full_name="Invitee"), prop.units[1], status=TenancyStatus.PENDING)
    headers = auth_headers(landlord)

    units = client.get(f"/api/properties/{prop.id}/units", headers=headers).json()["units"]
    assert units[0]["isVacant"] is False
    assert units[0]["tenantName"] == "Occupant"
    assert units[1]["isVacant"] is True
    assert units[1]["tenancyStatus"] == "pending"

    added = client.post(f"/api/properties/{prop.id}/units",
                        json={"unitNumber": "3B", "rentAmount": 75000}, headers=headers)
    assert added.status_code == 201
    assert added.json()["unit"]["name"] == "3B"

    duplicate = client.post(f"/api/properties/{prop.id}/units",
                            json={"unitNumber": "3B", "rentAmount": 75000}, headers=headers)
    assert duplicate.status_code == 409
    bad_rent = client.post(f"/api/properties/{prop.id}/units",
                           json={"unitNumber": "4", "rentAmount": -1}, headers=headers)
    assert bad_rent.status_code == 400


def test_vacant_units_for_invitation(client, factory, auth_headers):
    landlord = factory.landlord()
    prop = factory.property(landlord, name="Palm Court", units=2)
    factory.tenancy(factory.tenant(), prop.units[0])

    response = client.get("/api/tenants/units", headers=auth_headers(landlord))
    assert response.status_code == 200
    units = response.json()["units"]
    assert [(u["name"], u["propertyName"]) for u in units] == [("2", "Palm Court")]


def test_unit_payment_state_helper(factory, past, future):
    landlord = factory.landlord()
    prop = factory.property(landlord, units=1)
    tenancy = factory.tenancy(factory.tenant(), prop.units[0], next_due_date=future)
    assert property_service.unit_payment_state(None, past) == "vacant"
    assert property_service.unit_payment_state(tenancy, past) == "pending"
