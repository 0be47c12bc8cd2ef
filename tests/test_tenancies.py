from datetime import datetime, timezone

from rentledger.models import Notification, PaymentStatus, RentCycle, Tenancy, TenancyStatus
from rentledger.services.rent_cycle import as_utc


def active_tenancies_of(db, tenant):
    db.expire_all()
    return db.query(Tenancy).filter(
        Tenancy.tenant_id == tenant.id,
        Tenancy.status == TenancyStatus.ACTIVE
    ).all()


def test_invite_creates_pending_tenancy_and_notifies(client, db, factory, auth_headers):
    landlord = factory.landlord()
    prop = factory.property(landlord, name="Palm Court")
    tenant = factory.tenant(phone="08030000000")

    response = client.post("/api/tenants/", json={
        "phone": " 08030000000 ",
        "unitId": str(prop.units[0].id),
        "startDate": "2024-01-31T00:00:00Z",
        "rentCycle": "annual",
    }, headers=auth_headers(landlord))
    assert response.status_code == 201
    assert response.json()["tenancy"]["status"] == "pending"

    tenancy = db.query(Tenancy).filter(Tenancy.tenant_id == tenant.id).one()
    assert tenancy.status == TenancyStatus.PENDING
    assert tenancy.rent_cycle == RentCycle.ANNUAL
    assert tenancy.next_due_date is None

    notification = db.query(Notification).filter(Notification.user_id == tenant.id).one()
    assert notification.title == "Tenancy Invitation"
    assert "Unit 1 at Palm Court" in notification.message
    assert notification.data == {"tenancy_id": str(tenancy.id)}


def test_invite_unknown_phone_needs_registration(client, factory, auth_headers):
    landlord = factory.landlord()
    prop = factory.property(landlord)
    response = client.post("/api/tenants/", json={
        "phone": "0000", "unitId": str(prop.units[0].id),
    }, headers=auth_headers(landlord))
    assert response.status_code == 404
    assert response.json()["detail"]["needsRegistration"] is True


def test_invite_to_occupied_or_foreign_unit(client, factory, auth_headers):
    landlord = factory.landlord()
    prop = factory.property(landlord)
    factory.tenancy(factory.tenant(), prop.units[0])
    factory.tenant(phone="0801")
    headers = auth_headers(landlord)

    occupied = client.post("/api/tenants/", json={"phone": "0801", "unitId": str(prop.units[0].id)}, headers=headers)
    assert occupied.status_code == 409

    other = factory.property(factory.landlord())
    foreign = client.post("/api/tenants/", json={"phone": "0801", "unitId": str(other.units[0].id)}, headers=headers)
    assert foreign.status_code == 404

    missing_phone = client.post("/api/tenants/", json={"unitId": str(prop.units[1].id)}, headers=headers)
    assert missing_phone.status_code == 400


def test_accept_terminates_previous_tenancy_atomically(client, db, factory, auth_headers):
    tenant = factory.tenant()
    old_home = factory.property(factory.landlord(), name="Old Home")
    new_home = factory.property(factory.landlord(), name="New Home")
    previous = factory.tenancy(tenant, old_home.units[0])
    invitation = factory.tenancy(
        tenant, new_home.units[0],
        status=TenancyStatus.PENDING,
        start_date=datetime(2024, 1, 31, tzinfo=timezone.utc),
    )

    response = client.post("/api/tenancies/respond", json={
        "tenancyId": str(invitation.id), "action": "accept",
    }, headers=auth_headers(tenant))
    assert response.status_code == 200
    assert response.json()["status"] == "active"

    active = active_tenancies_of(db, tenant)
    assert [t.id for t in active] == [invitation.id]
    assert db.get(Tenancy, previous.id).status == TenancyStatus.TERMINATED
    # First due date is one cycle after the start, clamped to February's end
    assert as_utc(db.get(Tenancy, invitation.id).next_due_date) == datetime(2024, 2, 29, tzinfo=timezone.utc)

    titles = {n.title for n in db.query(Notification).all()}
    assert {"Tenancy Accepted", "Tenancy Ended"} <= titles


def test_accept_into_occupied_unit_changes_nothing(client, db, factory, auth_headers):
    tenant = factory.tenant()
    current_home = factory.property(factory.landlord())
    previous = factory.tenancy(tenant, current_home.units[0])

    contested = factory.property(factory.landlord())
    factory.tenancy(factory.tenant(full_name="Sitting Tenant"), contested.units[0])
    invitation = factory.tenancy(tenant, contested.units[0], status=TenancyStatus.PENDING)

    response = client.post("/api/tenancies/respond", json={
        "tenancyId": str(invitation.id), "action": "accept",
    }, headers=auth_headers(tenant))
    assert response.status_code == 409

    assert [t.id for t in active_tenancies_of(db, tenant)] == [previous.id]
    assert db.get(Tenancy, invitation.id).status == TenancyStatus.PENDING
    assert db.query(Notification).count() == 0


def test_decline_via_tenant_patch(client, db, factory, auth_headers):
    tenant = factory.tenant()
    prop = factory.property(factory.landlord())
    invitation = factory.tenancy(tenant, prop.units[0], status=TenancyStatus.PENDING)

    response = client.patch(f"/api/tenants/{invitation.id}", json={"action": "decline"},
                            headers=auth_headers(tenant))
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"

    db.expire_all()
    tenancy = db.get(Tenancy, invitation.id)
    assert tenancy.status == TenancyStatus.REJECTED
    assert tenancy.next_due_date is None


def test_respond_validation_and_ownership(client, factory, auth_headers):
    tenant = factory.tenant()
    stranger = factory.tenant(full_name="Stranger")
    prop = factory.property(factory.landlord())
    invitation = factory.tenancy(tenant, prop.units[0], status=TenancyStatus.PENDING)

    missing = client.post("/api/tenancies/respond", json={"action": "accept"}, headers=auth_headers(tenant))
    assert missing.status_code == 400
    bad_action = client.post("/api/tenancies/respond", json={
        "tenancyId": str(invitation.id), "action": "maybe",
    }, headers=auth_headers(tenant))
    assert bad_action.status_code == 400

    not_theirs = client.post("/api/tenancies/respond", json={
        "tenancyId": str(invitation.id), "action": "accept",
    }, headers=auth_headers(stranger))
    assert not_theirs.status_code == 404

    landlord = client.post("/api/tenancies/respond", json={
        "tenancyId": str(invitation.id), "action": "accept",
    }, headers=auth_headers(prop.landlord))
    assert landlord.status_code == 403


def test_responding_twice_is_not_found(client, factory, auth_headers):
    tenant = factory.tenant()
    prop = factory.property(factory.landlord())
    invitation = factory.tenancy(tenant, prop.units[0], status=TenancyStatus.PENDING)
    body = {"tenancyId": str(invitation.id), "action": "reject"}

    assert client.post("/api/tenancies/respond", json=body, headers=auth_headers(tenant)).status_code == 200
    assert client.post("/api/tenancies/respond", json=body, headers=auth_headers(tenant)).status_code == 404


def test_list_tenants_with_outstanding_balance(client, factory, auth_headers):
    landlord = factory.landlord()
    prop = factory.property(landlord, name="Palm Court", units=2)
    owing = factory.tenancy(factory.tenant(full_name="Owing Tenant", phone="0811"), prop.units[0])
    factory.payment(owing, amount="100.00")
    factory.payment(owing, amount="50.00", status=PaymentStatus.VERIFIED)
    factory.payment(owing, amount="25.00", status=PaymentStatus.REJECTED)
    factory.tenancy(factory.tenant(full_name="Invited"), prop.units[1], status=TenancyStatus.PENDING)
    factory.property(factory.landlord())

    response = client.get("/api/tenants/", headers=auth_headers(landlord))
    assert response.status_code == 200
    body = response.json()
    assert body["pagination"]["total"] == 2
    by_name = {item["fullName"]: item for item in body["items"]}
    assert by_name["Owing Tenant"]["outstandingBalance"] == 125.0
    assert by_name["Owing Tenant"]["unitLabel"] == "Unit 1"
    assert by_name["Owing Tenant"]["propertyName"] == "Palm Court"
    assert by_name["Invited"]["outstandingBalance"] == 0

    active_only = client.get("/api/tenants/?status=active", headers=auth_headers(landlord)).json()
    assert [item["fullName"] for item in active_only["items"]] == ["Owing Tenant"]
    assert client.get("/api/tenants/?status=bogus", headers=auth_headers(landlord)).status_code == 400


def test_validate_phone(client, factory, auth_headers):
    landlord = factory.landlord()
    factory.tenant(phone="0812")
    headers = auth_headers(landlord)

    assert client.get("/api/tenants/validate?phone=0812", headers=headers).json() == {"valid": True}
    assert client.get("/api/tenants/validate?phone=0999", headers=headers).json() == {"valid": False}
    assert client.get("/api/tenants/validate", headers=headers).status_code == 400
