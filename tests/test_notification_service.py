from decimal import Decimal

import pytest

from storefront.domain.errors import NotificationFailure
from storefront.services import notification_service
from storefront.services.notification_service import (
    NotificationService,
    notify_admin_new_order_task,
    notify_customer_order_placed_task,
)


def test_admin_task_runs_eagerly():
    result = notify_admin_new_order_task.delay(
        "COD-000001", "Amina Benali", "205.00", None, [{"name": "Filtre a huile", "quantity": 2}]
    )

    assert result.get() == {"order_number": "COD-000001", "audience": "admin", "status": "sent"}


def test_customer_task():
    assert notify_customer_order_placed_task(7, "COD-000001", "205.00")["audience"] == "customer"


def test_dispatch_passes_total_as_string(monkeypatch):
    sent = []
    monkeypatch.setattr(notification_service.notify_customer_order_placed_task, "delay", lambda *a: sent.append(a))

    NotificationService.notify_customer_order_placed(7, "COD-000001", Decimal("205.00"))

    assert sent == [(7, "COD-000001", "205.00")]


def test_dispatch_failure_is_wrapped(monkeypatch):
    def broker_down(*args):
        raise ConnectionError("broker down")

    monkeypatch.setattr(notification_service.notify_admin_new_order_task, "delay", broker_down)

    with pytest.raises(NotificationFailure):
        NotificationService.notify_admin_new_order("COD-000001", "A B", Decimal("1.00"), None, [])
