from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String, nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)  # null = zamowienie goscia

    status = Column(String, nullable=False, default="PENDING")  # PENDING, SUBMITTED
    payment_method = Column(String, nullable=False, default="COD")
    currency = Column(String, nullable=False)

    subtotal_cents = Column(Integer, nullable=False)
    discount_cents = Column(Integer, nullable=False, default=0)
    shipping_cents = Column(Integer, nullable=False)
    total_cents = Column(Integer, nullable=False)

    # legacy, tylko do wyswietlania
    subtotal = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    shipping = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    shipping_method = Column(String, nullable=False)
    customer_first = Column(String, nullable=False)
    customer_last = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)
    customer_notes = Column(String, nullable=True)

    promotional_code_id = Column(Integer, ForeignKey("promotional_codes.id"), nullable=True)
    tracking_number = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    lines = relationship("OrderLineModel", back_populates="order", cascade="all, delete-orphan")
    shipment = relationship("CarrierShipmentModel", back_populates="order", uselist=False)


class OrderLineModel(Base):
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)

    name = Column(String, nullable=False)
    sku = Column(String, nullable=False, default="")
    unit_price_cents = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)  # legacy
    quantity = Column(Integer, nullable=False)

    weight_gr = Column(Integer, nullable=False)
    length_cm = Column(Integer, nullable=True)
    width_cm = Column(Integer, nullable=True)
    height_cm = Column(Integer, nullable=True)

    order = relationship("OrderModel", back_populates="lines")


class OrderSequenceModel(Base):
    """Licznik numerow zamowien, inkrementowany w transakcji zamowienia."""

    __tablename__ = "order_sequences"

    prefix = Column(String, primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
