# storefront/services/checkout_service.py
from typing import Any

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain.errors import (
    CatalogMismatch,
    DiscountRejected,
    NotificationFailure,
    ValidationError,
)
from storefront.domain.schemas import CartLineIn, CheckoutIn
from storefront.services.address_service import AddressResolver
from storefront.services.carrier_client import CarrierClient
from storefront.services.carrier_service import CarrierGateway, CarrierOutcome, build_carrier_payload
from storefront.services.discount_service import DiscountResult, DiscountService
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import CustomerData, OrderLineData, OrderService
from storefront.services.packing import apply_parcel_overrides, compute_parcel, validate_physical_items
from storefront.services.pricing import cents_to_major, price_order, subtotal_cents, to_cents
from storefront.services.product_client import ProductClient
from storefront.utils import settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# stany checkoutu
VALIDATING = "VALIDATING"
PRICED = "PRICED"
PERSISTED = "PERSISTED"
CARRIER_SUBMITTED = "CARRIER_SUBMITTED"
CARRIER_DEFERRED = "CARRIER_DEFERRED"


class CheckoutService:
    """
    Orkiestracja checkoutu COD:
    VALIDATING -> PRICED -> PERSISTED -> CARRIER_SUBMITTED | CARRIER_DEFERRED

    Wszystko przed PERSISTED jest fail-closed i bez efektow ubocznych.
    Po commit zamowienia przewoznik i powiadomienia sa best-effort,
    ich bledy trafiaja do logow / odpowiedzi, nigdy nie cofaja zamowienia.
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductClient,
        carrier_client: CarrierClient,
        lock_service: LockService,
        notifier: NotificationService | None = None,
        auto_submit: bool | None = None,
    ):
        self.product_client = product_client
        self.resolver = AddressResolver(db, carrier_client)
        self.discounts = DiscountService(db)
        self.orders = OrderService(db)
        self.gateway = CarrierGateway(db, carrier_client, lock_service)
        self.notifier = notifier or NotificationService()
        self.auto_submit = settings.CARRIER_AUTO_SUBMIT if auto_submit is None else auto_submit

    def checkout(self, payload: CheckoutIn, user_id: int | None = None) -> dict[str, Any]:
        state = VALIDATING
        delivery = payload.delivery
        logger.info(f"COD checkout: {len(payload.cart)} lines, {delivery.mode} delivery, user {user_id or 'guest'}")

        errors = validate_physical_items(payload.cart)
        if errors:
            raise ValidationError("Invalid items", details=errors)

        destination = self.resolver.resolve(
            region=payload.destination.region,
            sub_region=payload.destination.sub_region,
            mode=delivery.mode,
            desk_id=getattr(delivery, "desk_id", None),
        )

        lines = self._reprice(payload.cart)
        subtotal = subtotal_cents(lines)

        discount: DiscountResult | None = None
        if payload.promo_code:
            discount = self.discounts.validate_code(payload.promo_code, user_id, lines, subtotal)
            if not discount.is_valid:
                raise DiscountRejected(discount.error, code=discount.error_code)

        waive_shipping = bool(discount and discount.free_shipping)
        pricing = price_order(
            lines,
            discount_cents=discount.discount_cents if discount else 0,
            quoted_shipping_cents=to_cents(payload.quoted_shipping_cost),
            free_shipping=waive_shipping,
        )
        state = PRICED
        logger.info(
            f"Checkout {state}: subtotal {pricing.subtotal_cents}, discount {pricing.discount_cents}, "
            f"shipping {pricing.shipping_cents}, total {pricing.total_cents}"
        )

        parcel = apply_parcel_overrides(compute_parcel(lines), payload.parcel_override)
        customer = CustomerData(
            first_name=payload.customer.first_name,
            last_name=payload.customer.last_name,
            phone=payload.customer.phone,
        )

        order = self.orders.create_order(
            user_id=user_id,
            customer=customer,
            lines=lines,
            destination=destination,
            parcel=parcel,
            pricing=pricing,
            discount=discount,
            free_shipping=delivery.free_shipping or waive_shipping,
            has_exchange=delivery.has_exchange,
            notes=payload.notes,
        )
        state = PERSISTED

        self._notify(order, customer, lines, user_id)

        if self.auto_submit:
            outcome = self.gateway.submit(order)
            state = CARRIER_SUBMITTED if outcome.ok else CARRIER_DEFERRED
        else:
            # zamowienie czeka na przeglad admina przed wysylka
            outcome = CarrierOutcome(ok=False, payload=build_carrier_payload(order.shipment))
            state = CARRIER_DEFERRED

        logger.info(f"COD checkout completed: {order.order_number} {state}")

        return {
            "ok": True,
            "order_id": order.id,
            "order_number": order.order_number,
            "cod_status": order.status,
            "state": state,
            "pricing": {
                "subtotal": cents_to_major(pricing.subtotal_cents),
                "discount": cents_to_major(pricing.discount_cents),
                "shipping": cents_to_major(pricing.shipping_cents),
                "total": cents_to_major(pricing.total_cents),
                "currency": order.currency,
            },
            "carrier": {
                "payload": outcome.payload,
                "tracking": outcome.tracking,
                "label_url": outcome.label_url,
                "status": outcome.status,
                "error": outcome.error,
            },
        }

    def _reprice(self, cart: list[CartLineIn]) -> list[OrderLineData]:
        """Cena, nazwa i sku zawsze z katalogu, nigdy od klienta."""
        product_ids = [line.product_id for line in cart]
        catalog = self.product_client.fetch_catalog(product_ids)

        missing = [pid for pid in dict.fromkeys(product_ids) if pid not in catalog]
        if missing:
            logger.error(f"Missing products: {missing}")
            raise CatalogMismatch(missing)

        return [
            OrderLineData(
                product_id=line.product_id,
                name=catalog[line.product_id].name,
                sku=catalog[line.product_id].sku or line.sku or "",
                category_id=catalog[line.product_id].category_id,
                unit_price_cents=catalog[line.product_id].price_cents,
                quantity=line.quantity,
                weight_gr=line.weight_gr,
                length_cm=line.length_cm,
                width_cm=line.width_cm,
                height_cm=line.height_cm,
            )
            for line in cart
        ]

    def _notify(self, order: OrderModel, customer: CustomerData, lines: list[OrderLineData], user_id: int | None):
        total = cents_to_major(order.total_cents)
        items = [
            {"name": line.name, "quantity": line.quantity, "price": str(cents_to_major(line.unit_price_cents))}
            for line in lines
        ]

        try:
            self.notifier.notify_admin_new_order(order.order_number, customer.full_name, total, user_id, items)
        except NotificationFailure as e:
            logger.error(f"Admin notification failed for {order.order_number}: {e}")
        except Exception as e:
            logger.error(f"Admin notification crashed for {order.order_number}: {e}")

        if user_id is None:
            logger.info("Skipping customer notification - order placed as guest")
            return

        try:
            self.notifier.notify_customer_order_placed(user_id, order.order_number, total)
        except NotificationFailure as e:
            logger.error(f"Customer notification failed for {order.order_number}: {e}")
        except Exception as e:
            logger.error(f"Customer notification crashed for {order.order_number}: {e}")
