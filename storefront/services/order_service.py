# storefront/services/order_service.py
from dataclasses import dataclass

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel, OrderLineModel
from storefront.data.models.carrier_shipment import CarrierShipmentModel
from storefront.domain.errors import CheckoutError, OrderNotFound, PersistenceFailure
from storefront.repos.order_repo import OrderRepo
from storefront.services.address_service import ResolvedDestination
from storefront.services.discount_service import DiscountResult, DiscountService
from storefront.services.packing import Parcel, summarize_items
from storefront.services.pricing import Pricing, cents_to_major
from storefront.utils import settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PENDING = "PENDING"
SUBMITTED = "SUBMITTED"


@dataclass(frozen=True)
class OrderLineData:
    """Pozycja po ponownym odczycie z katalogu, zamrozona w zamowieniu."""

    product_id: int
    name: str
    sku: str
    category_id: str | None
    unit_price_cents: int
    quantity: int
    weight_gr: int
    length_cm: int | None = None
    width_cm: int | None = None
    height_cm: int | None = None


@dataclass(frozen=True)
class CustomerData:
    first_name: str
    last_name: str
    phone: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


def format_order_number(prefix: str, value: int) -> str:
    return f"{prefix}-{value:06d}"


class OrderService:
    """
    Zapis zamowienia w jednej transakcji:
    numer zamowienia, Order, OrderLines, CarrierShipment, uzycie kodu promocyjnego.
    Blad w dowolnym kroku = rollback, zadne czesciowe zamowienie nie jest widoczne.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)
        self.discounts = DiscountService(db)

    def create_order(
        self,
        *,
        user_id: int | None,
        customer: CustomerData,
        lines: list[OrderLineData],
        destination: ResolvedDestination,
        parcel: Parcel,
        pricing: Pricing,
        discount: DiscountResult | None = None,
        free_shipping: bool = False,
        has_exchange: bool = False,
        notes: str | None = None,
    ) -> OrderModel:
        promo = discount.code if discount and discount.is_valid else None

        try:
            sequence = self.repo.next_sequence_value(settings.ORDER_NUMBER_PREFIX)
            order_number = format_order_number(settings.ORDER_NUMBER_PREFIX, sequence)

            order = self.repo.add_order(
                OrderModel(
                    order_number=order_number,
                    user_id=user_id,
                    status=PENDING,
                    payment_method="COD",
                    currency=settings.CURRENCY,
                    subtotal_cents=pricing.subtotal_cents,
                    discount_cents=pricing.discount_cents,
                    shipping_cents=pricing.shipping_cents,
                    total_cents=pricing.total_cents,
                    subtotal=cents_to_major(pricing.subtotal_cents),
                    discount=cents_to_major(pricing.discount_cents),
                    shipping=cents_to_major(pricing.shipping_cents),
                    total=cents_to_major(pricing.total_cents),
                    shipping_method="StopDesk" if destination.is_desk else "Home Delivery",
                    customer_first=customer.first_name,
                    customer_last=customer.last_name,
                    customer_phone=customer.phone,
                    customer_notes=notes,
                    promotional_code_id=promo.id if promo else None,
                )
            )

            self.repo.add_order_lines(order, [
                OrderLineModel(
                    product_id=line.product_id,
                    name=line.name,
                    sku=line.sku,
                    unit_price_cents=line.unit_price_cents,
                    price=cents_to_major(line.unit_price_cents),
                    quantity=line.quantity,
                    weight_gr=line.weight_gr,
                    length_cm=line.length_cm,
                    width_cm=line.width_cm,
                    height_cm=line.height_cm,
                )
                for line in lines
            ])

            self.repo.add_shipment(
                CarrierShipmentModel(
                    order_id=order.id,
                    external_order_id=order_number,
                    firstname=customer.first_name,
                    familyname=customer.last_name,
                    contact_phone=customer.phone,
                    address=destination.address,
                    to_region_name=destination.region_name,
                    to_sub_region_name=destination.sub_region_name,
                    is_desk=destination.is_desk,
                    desk_id=destination.desk_id,
                    free_shipping=free_shipping,
                    has_exchange=has_exchange,
                    product_list=summarize_items(lines),
                    # przewoznik przyjmuje kwote bez groszy, zaokraglenie half-up
                    declared_value=(pricing.total_cents + 50) // 100,
                    weight_kg=parcel.weight,
                    length_cm=parcel.length,
                    width_cm=parcel.width,
                    height_cm=parcel.height,
                    from_region_name=settings.CARRIER_FROM_REGION_NAME,
                    from_address=settings.CARRIER_FROM_ADDRESS,
                    attempts=0,
                )
            )

            if promo:
                self.discounts.apply_code_to_order(promo.id, user_id, order.id, pricing.discount_cents)

            self.repo.commit()

        except CheckoutError:
            self.repo.rollback()
            raise
        except Exception as e:
            logger.error(f"Order transaction rolled back: {e}")
            self.repo.rollback()
            raise PersistenceFailure("Failed to process order") from e

        logger.info(
            f"Order {order.order_number} created: total {pricing.total_cents} cents, "
            f"{len(lines)} lines, {destination.address}"
        )
        return order

    def get_order(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound("Order not found")
        return order
