import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import SQLAlchemyError

from storefront.repos.order_repo import OrderRepo
from storefront.services.address_service import ResolvedDestination
from storefront.services.carrier_service import (
    ALREADY_SUBMITTED,
    SUBMISSION_IN_PROGRESS,
    CarrierGateway,
    build_carrier_payload,
)
from storefront.services.order_service import PENDING, SUBMITTED, CustomerData, OrderLineData, OrderService
from storefront.services.packing import Parcel
from storefront.services.pricing import price_order

LINES = [
    OrderLineData(
        product_id=1, name="Filtre a huile", sku="FH-01", category_id=None,
        unit_price_cents=10000, quantity=2, weight_gr=600,
    )
]


@pytest.fixture()
def order(db):
    return OrderService(db).create_order(
        user_id=None,
        customer=CustomerData("Amina", "Benali", "0550123456"),
        lines=LINES,
        destination=ResolvedDestination("Oran", "Oran", "desk", desk_id=3101, region_id=31),
        parcel=Parcel(20, 15, 6, 2),
        pricing=price_order(LINES, 0, 400),
        free_shipping=True,
    )


@pytest.fixture()
def gateway(db, carrier, lock):
    return CarrierGateway(db, carrier, lock)


def test_payload_uses_carrier_field_names(order):
    payload = build_carrier_payload(order.shipment)

    assert payload["order_id"] == order.order_number
    assert payload["to_wilaya_name"] == "Oran"
    assert payload["to_commune_name"] == "Oran"
    assert payload["is_stopdesk"] is True
    assert payload["stopdesk_id"] == 3101
    assert payload["freeshipping"] is True
    assert payload["price"] == 204
    assert payload["weight"] == 2
    assert payload["do_insurance"] is True


def test_successful_submission_marks_order_submitted(db, order, gateway, carrier, lock):
    outcome = gateway.submit(order)

    assert outcome.ok
    assert outcome.tracking == "YAL-000001"
    assert order.status == SUBMITTED
    assert order.tracking_number == "YAL-000001"

    shipment = order.shipment
    db.refresh(shipment)
    assert shipment.tracking == "YAL-000001"
    assert shipment.attempts == 1
    assert shipment.last_payload["request"]["order_id"] == order.order_number
    assert shipment.last_payload["response"] == {"tracking": "YAL-000001"}
    assert "timestamp" in shipment.last_payload
    assert lock.held == {}


def test_failed_submission_keeps_order_pending_and_audits(db, order, gateway, carrier):
    carrier.configure(should_succeed=False, failure_reason="wilaya closed")

    outcome = gateway.submit(order)

    assert not outcome.ok
    assert outcome.error == "wilaya closed"
    assert order.status == PENDING
    shipment = order.shipment
    db.refresh(shipment)
    assert shipment.tracking is None
    assert shipment.attempts == 1
    assert shipment.last_payload["error"] == "wilaya closed"


def test_crashing_client_is_reported_not_raised(order, gateway, carrier, monkeypatch):
    def boom(payload):
        raise RuntimeError("socket closed")

    monkeypatch.setattr(carrier, "create_parcel", boom)

    outcome = gateway.submit(order)

    assert not outcome.ok
    assert outcome.error == "socket closed"
    assert order.shipment.attempts == 1


def test_retry_after_failure_then_already_submitted(order, gateway, carrier):
    carrier.configure(should_succeed=False)
    assert not gateway.submit(order).ok

    carrier.configure(should_succeed=True)
    assert gateway.submit(order).ok

    again = gateway.submit(order)
    assert not again.ok
    assert again.error == ALREADY_SUBMITTED
    assert again.tracking == order.tracking_number
    assert len(carrier.created) == 2


def test_concurrent_submission_is_refused(order, gateway, carrier, lock):
    lock.held[order.order_number] = "other-worker"

    outcome = gateway.submit(order)

    assert outcome.error == SUBMISSION_IN_PROGRESS
    assert carrier.created == []
    assert order.shipment.attempts == 0


def test_lock_backend_down_is_recorded(order, gateway, carrier, lock, monkeypatch):
    def down(*args):
        raise RedisConnectionError("redis down")

    monkeypatch.setattr(lock, "acquire_submission_lock", down)

    outcome = gateway.submit(order)

    assert not outcome.ok
    assert "Submission lock unavailable" in outcome.error
    assert carrier.created == []
    assert order.shipment.attempts == 1


def failing_commits(monkeypatch, gateway, db, failures):
    calls = []

    def commit():
        calls.append(1)
        if len(calls) <= failures:
            raise SQLAlchemyError("connection lost")
        db.commit()

    monkeypatch.setattr(gateway.repo, "commit", commit)
    return calls


def test_tracking_survives_failed_audit_commit(db, order, gateway, carrier, monkeypatch):
    calls = failing_commits(monkeypatch, gateway, db, failures=1)

    outcome = gateway.submit(order)

    assert outcome.ok
    assert len(calls) == 2
    shipment = OrderRepo(db).get_shipment(order.id)
    db.refresh(shipment)
    db.refresh(order)
    assert shipment.tracking == "YAL-000001"
    assert order.status == SUBMITTED
    assert order.tracking_number == "YAL-000001"

    again = gateway.submit(order)
    assert again.error == ALREADY_SUBMITTED
    assert len(carrier.created) == 1


def test_unstored_tracking_is_reported_as_failure(db, order, gateway, carrier, monkeypatch):
    failing_commits(monkeypatch, gateway, db, failures=2)

    outcome = gateway.submit(order)

    assert not outcome.ok
    assert outcome.tracking == "YAL-000001"
    assert "YAL-000001" in outcome.error
    db.refresh(order)
    assert order.status == PENDING
