from datetime import datetime, time
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from kitchenops.app.api.deps import get_clock, get_db, get_organization_id
from kitchenops.app.core.clock import FixedClock
from kitchenops.app.db.models.core_types import EventType
from kitchenops.app.main import app

# mercredi 14/10/2026 10:00 (heure locale)
NOW = datetime(2026, 10, 14, 10, 0)


@pytest.fixture
def client(db_session, catalog):
    def _db():
        yield db_session

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_clock] = lambda: FixedClock(NOW)
    app.dependency_overrides[get_organization_id] = lambda: catalog.org.id
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def banquet(catalog):
    flat = catalog.family("Flat", "1.00")
    sup = catalog.supplier("Verduras SL", lead_time_days=2, cut_off_time=time(11, 0), delivery_days=[1, 2, 3, 4, 5])
    tomato = catalog.ingredient("Tomato", cost="2", stock="3", family=flat, supplier=sup)
    salad = catalog.recipe("Salad", 10, [(tomato, "10")])
    ev = catalog.event(EventType.banquet, pax=10, menus=[(salad, None)], name="Wedding")
    return ev, sup, tomato


def test_health(client):
    assert client.get("/v1/health").json() == {"status": "ok"}


def test_event_demand(client, banquet):
    ev, _, tomato = banquet

    r = client.get(f"/v1/events/{ev.id}/demand")

    assert r.status_code == 200
    body = r.json()
    assert body["event"]["name"] == "Wedding"
    assert body["total_items"] == 1
    assert body["demands"][0]["ingredient_id"] == tomato.id
    assert Decimal(str(body["demands"][0]["quantity_with_buffer"])) == Decimal("10")


def test_unknown_event_is_404(client):
    r = client.get("/v1/events/999/demand")

    assert r.status_code == 404
    assert r.json()["detail"] == "Event not found"


def test_stock_check(client, banquet):
    ev, _, _ = banquet

    body = client.get(f"/v1/events/{ev.id}/stock-check").json()

    assert body["has_sufficient_stock"] is False
    assert Decimal(str(body["missing_ingredients"][0]["shortage"])) == Decimal("7")


def test_generate_purchase_orders_commits_and_lists(client, banquet):
    ev, sup, _ = banquet

    r = client.post(f"/v1/events/{ev.id}/generate-purchase-orders")

    assert r.status_code == 200
    body = r.json()
    assert body["total_pos"] == 1
    assert body["failed_suppliers"] == []
    assert body["stock_status"]["has_sufficient_stock"] is False
    generated = body["generated_purchase_orders"][0]
    assert generated["supplier_name"] == "Verduras SL"
    assert Decimal(str(generated["total_cost"])) == Decimal("20")
    assert generated["delivery_date_estimated"] == "2026-10-16"

    listed = client.get("/v1/purchase-orders", params={"event_id": ev.id}).json()
    assert [po["id"] for po in listed] == [generated["id"]]
    assert listed[0]["status"] == "DRAFT"

    detail = client.get(f"/v1/purchase-orders/{generated['id']}").json()
    assert detail["supplier_id"] == sup.id
    assert len(detail["items"]) == 1


def test_unknown_purchase_order_is_404(client):
    assert client.get("/v1/purchase-orders/777").status_code == 404


def test_estimate_delivery_endpoint(client, catalog):
    sup = catalog.supplier("Lonja", lead_time_days=3, delivery_days=[1, 2, 3, 4, 5, 6, 7])

    r = client.get(
        f"/v1/suppliers/{sup.id}/estimate-delivery",
        params={"order_date": "2026-10-15T09:00:00"},
    )

    assert r.status_code == 200
    assert r.json()["estimated_delivery"] == "2026-10-20"


def test_estimate_delivery_unknown_supplier(client):
    assert client.get("/v1/suppliers/4242/estimate-delivery").status_code == 404


def test_cutoff_status_lists_only_suppliers_with_cutoff(client, catalog):
    catalog.supplier("No cutoff")
    catalog.supplier("Panaderia", cut_off_time=time(11, 30), delivery_days=[3])

    body = client.get("/v1/suppliers/cutoff-status/all").json()

    assert [s["name"] for s in body] == ["Panaderia"]
    status = body[0]["cutoff_status"]
    assert status["minutes_until_cutoff"] == 90
    assert status["is_urgent"] is True
    assert status["is_delivery_day"] is True
    assert status["has_passed"] is False
