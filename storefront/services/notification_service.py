# storefront/services/notification_service.py
from decimal import Decimal

from storefront.celery_worker import celery_app
from storefront.domain.errors import NotificationFailure
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Powiadomienia o nowym zamowieniu.
    Fire-and-forget przez Celery, checkout nie czeka na dostarczenie.
    Blad zlecenia zadania jest zamieniany na NotificationFailure.
    """

    @staticmethod
    def notify_admin_new_order(
        order_number: str,
        customer_name: str,
        total: Decimal,
        user_id: int | None,
        items: list[dict],
    ) -> None:
        try:
            notify_admin_new_order_task.delay(order_number, customer_name, str(total), user_id, items)
        except Exception as e:
            raise NotificationFailure(f"Admin notification for {order_number} not dispatched: {e}") from e

    @staticmethod
    def notify_customer_order_placed(user_id: int, order_number: str, total: Decimal) -> None:
        try:
            notify_customer_order_placed_task.delay(user_id, order_number, str(total))
        except Exception as e:
            raise NotificationFailure(f"Customer notification for {order_number} not dispatched: {e}") from e


@celery_app.task(name="storefront.services.notification_service.notify_admin_new_order_task")
def notify_admin_new_order_task(order_number, customer_name, total, user_id, items):
    """
    Celery task - kanaly (telegram, email) sa poza tym serwisem.
    Teraz tylko loguje.
    """
    lines = ", ".join(f"{i['name']} x{i['quantity']}" for i in items)
    logger.info(
        f"[NOTIFICATION] admin: new COD order {order_number} from {customer_name} "
        f"(user {user_id or 'guest'}), total {total}: {lines}"
    )
    return {"order_number": order_number, "audience": "admin", "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.notify_customer_order_placed_task")
def notify_customer_order_placed_task(user_id, order_number, total):
    logger.info(f"[NOTIFICATION] user {user_id}: order {order_number} placed, total {total}")
    return {"user_id": user_id, "order_number": order_number, "audience": "customer", "status": "sent"}
