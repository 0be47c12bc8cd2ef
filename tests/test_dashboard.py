from rentledger.models import PaymentStatus


def test_landlord_summary(client, factory, auth_headers, past, future):
    landlord = factory.landlord()
    prop = factory.property(landlord, units=3)
    factory.property(landlord, units=1)
    late = factory.tenancy(factory.tenant(full_name="Late Payer"), prop.units[0], next_due_date=past)
    factory.payment(late, due_date=past)
    settled = factory.tenancy(factory.tenant(), prop.units[1], next_due_date=future)
    factory.payment(settled, amount="30000.00", status=PaymentStatus.VERIFIED, due_date=past)
    factory.payment(settled, amount="20000.00", status=PaymentStatus.VERIFIED, due_date=past)
    factory.payment(settled, due_date=future)

    # Another landlord's money never shows up
    other = factory.property(factory.landlord())
    factory.payment(factory.tenancy(factory.tenant(), other.units[0]), status=PaymentStatus.VERIFIED)

    response = client.get("/api/dashboard/summary", headers=auth_headers(landlord))
    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "landlord"
    summary = body["summary"]
    assert summary["totalRevenue"] == 50000.0
    assert summary["totalRevenueDisplay"] == "₦50,000.00"
    assert summary["pendingPayments"] == 1
    assert summary["overduePayments"] == 1
    assert summary["activeTenantsCount"] == 2
    assert summary["propertiesCount"] == 2
    assert len(summary["recentPayments"]) == 4


def test_tenant_summary_without_tenancy(client, factory, auth_headers):
    body = client.get("/api/dashboard/summary", headers=auth_headers(factory.tenant())).json()
    assert body == {"role": "tenant", "summary": None, "message": "No active tenancy"}


def test_tenant_summary(client, factory, auth_headers, future):
    prop = factory.property(factory.landlord(), name="Palm Court", units=1, rent="45000.00")
    tenant = factory.tenant()
    tenancy = factory.tenancy(tenant, prop.units[0], next_due_date=future)
    factory.payment(tenancy, amount="45000.00", status=PaymentStatus.VERIFIED)

    summary = client.get("/api/dashboard/summary", headers=auth_headers(tenant)).json()["summary"]
    assert summary["tenancy"]["id"] == str(tenancy.id)
    assert summary["tenancy"]["unitName"] == "1"
    assert summary["tenancy"]["propertyName"] == "Palm Court"
    assert summary["tenancy"]["rentAmount"] == 45000.0
    assert summary["tenancy"]["isOverdue"] is False
    assert summary["currentStatus"] == "paid"
    assert summary["outstandingBalance"] == 0
    assert [p["status"] for p in summary["paymentHistory"]] == ["paid"]


def test_health_and_root(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/").status_code == 200
