# storefront/data/models/promo_code.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Boolean, JSON

from storefront.data.database import Base


class PromotionalCodeModel(Base):
    __tablename__ = "promotional_codes"

    id = Column(Integer, primary_key=True)
    code = Column(String, nullable=False, unique=True)  # zawsze upper-case
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)

    type = Column(String, nullable=False)  # PERCENTAGE, FIXED_AMOUNT, FREE_SHIPPING
    # procent dla PERCENTAGE, grosze (minor units) dla FIXED_AMOUNT
    value = Column(Numeric(10, 2), nullable=False, default=0)

    minimum_amount_cents = Column(Integer, nullable=True)
    maximum_discount_cents = Column(Integer, nullable=True)

    usage_limit = Column(Integer, nullable=True)
    user_usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True)
    starts_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    expires_at = Column(DateTime(timezone=True), nullable=True)

    applicable_products = Column(JSON, nullable=False, default=list)
    applicable_categories = Column(JSON, nullable=False, default=list)
    excluded_products = Column(JSON, nullable=False, default=list)


class PromotionalCodeUsageModel(Base):
    __tablename__ = "promotional_code_usages"

    id = Column(Integer, primary_key=True)
    promotional_code_id = Column(Integer, ForeignKey("promotional_codes.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    discount_cents = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
