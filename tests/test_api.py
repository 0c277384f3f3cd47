from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from conftest import checkout_payload
from storefront.api import create_app
from storefront.api.routers import checkout, directory, orders, promo_codes
from storefront.data.database import get_db
from storefront.services.carrier_service import CarrierGateway
from storefront.services.shipping_service import ShippingService


@pytest.fixture()
def client(regions, make_checkout, catalog, carrier, lock):
    db = regions
    app = create_app()

    def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[checkout.get_service] = lambda: make_checkout()
    app.dependency_overrides[orders.get_gateway] = lambda: CarrierGateway(db, carrier, lock)
    app.dependency_overrides[promo_codes.get_product_client] = lambda: catalog
    app.dependency_overrides[directory.get_shipping_service] = lambda: ShippingService(db, carrier)

    with TestClient(app) as c:
        yield c


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_checkout_happy_path(client, make_code):
    make_code("SAVE10", value=Decimal("10"))

    resp = client.post("/checkout/cod", json=checkout_payload(promo_code="SAVE10"))

    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["order_number"] == "COD-000001"
    assert body["cod_status"] == "PENDING"
    assert Decimal(body["pricing"]["total"]) == Decimal("185.00")
    assert body["carrier"]["payload"]["to_commune_name"] == "Hydra"


def test_checkout_bad_phone_is_400(client):
    payload = checkout_payload(customer={"first_name": "A", "last_name": "B", "phone": "12-34"})

    resp = client.post("/checkout/cod", json=payload)

    assert resp.status_code == 400
    assert resp.json()["error"] == "Validation failed"


def test_home_delivery_without_sub_region_is_400(client):
    resp = client.post("/checkout/cod", json=checkout_payload(destination={"region": "Alger"}))

    assert resp.status_code == 400


def test_unknown_delivery_mode_is_400(client):
    resp = client.post("/checkout/cod", json=checkout_payload(delivery={"mode": "drone"}))

    assert resp.status_code == 400


def test_empty_cart_is_400(client):
    assert client.post("/checkout/cod", json=checkout_payload(cart=[])).status_code == 400


def test_missing_products_is_400(client):
    cart = [{"product_id": 42, "name": "Gone", "quantity": 1, "weight_gr": 100}]

    resp = client.post("/checkout/cod", json=checkout_payload(cart=cart))

    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["error"] == "Some products are no longer available"
    assert detail["details"] == {"missing_products": [42]}


def test_invalid_destination_is_400(client):
    resp = client.post("/checkout/cod", json=checkout_payload(destination={"region": "Atlantis", "sub_region": "X"}))

    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_DESTINATION"


def test_rejected_code_is_400(client):
    resp = client.post("/checkout/cod", json=checkout_payload(promo_code="NOPE"))

    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "CODE_NOT_FOUND"


def test_get_order_and_manual_carrier_submit(client, user):
    created = client.post("/checkout/cod?user_id=7", json=checkout_payload()).json()

    order = client.get(f"/orders/{created['order_id']}").json()
    assert order["user_id"] == 7
    assert order["shipment"]["attempts"] == 0
    assert order["lines"][0]["unit_price_cents"] == 10000

    submitted = client.post(f"/orders/{created['order_id']}/carrier/submit")
    assert submitted.status_code == 200
    assert submitted.json()["status"] == "SUBMITTED"
    assert submitted.json()["carrier"]["tracking"] == "YAL-000001"

    again = client.post(f"/orders/{created['order_id']}/carrier/submit")
    assert again.status_code == 409


def test_manual_submit_failure_is_502(client, carrier):
    created = client.post("/checkout/cod", json=checkout_payload()).json()
    carrier.configure(should_succeed=False, failure_reason="wilaya closed")

    resp = client.post(f"/orders/{created['order_id']}/carrier/submit")

    assert resp.status_code == 502
    assert resp.json()["detail"]["error"] == "wilaya closed"
    order = client.get(f"/orders/{created['order_id']}").json()
    assert order["status"] == "PENDING"
    assert order["shipment"]["last_payload"]["error"] == "wilaya closed"


def test_missing_order_is_404(client):
    assert client.get("/orders/999").status_code == 404


def test_directory(client):
    regions = client.get("/directory/regions").json()
    assert [r["name"] for r in regions] == ["Blida", "Tamanrasset", "Alger", "Constantine", "Oran"]

    subs = client.get("/directory/regions/oran/sub-regions").json()
    assert [s["name"] for s in subs] == ["Arzew", "Bir El Djir", "Es Senia", "Oran"]

    desks = client.get("/directory/regions/Alger/desks").json()
    assert desks == [{"id": 1601, "name": "Agence Alger Centre", "address": "Rue Didouche Mourad, Alger"}]

    assert client.get("/directory/regions/Atlantis/desks").status_code == 404


def test_shipping_quote_fallback(client):
    resp = client.post("/shipping/quote", json={"region": "Oran", "sub_region": "Oran", "weight_kg": 2})

    assert resp.status_code == 200
    body = resp.json()
    assert body["cost_cents"] == 50000
    assert body["source"] == "fallback"


def test_promo_code_preview(client, make_code):
    make_code("SAVE10", value=Decimal("10"))

    resp = client.post("/promotional-codes/validate", json={"code": "save10", "items": [{"product_id": 1, "quantity": 2}]})

    assert resp.json() == {
        "is_valid": True,
        "discount_cents": 2000,
        "error_code": None,
        "error": None,
        "code": "SAVE10",
        "type": "PERCENTAGE",
    }


def test_promo_code_preview_rejection(client, make_code):
    make_code("MIN300", minimum_amount_cents=30000)

    body = client.post("/promotional-codes/validate", json={"code": "MIN300", "items": [{"product_id": 1, "quantity": 1}]}).json()

    assert body["is_valid"] is False
    assert body["error_code"] == "BELOW_MINIMUM"
    assert body["discount_cents"] == 0
