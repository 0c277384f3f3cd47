# storefront/services/discount_service.py
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol

from sqlalchemy.orm import Session

from storefront.data.models.promo_code import PromotionalCodeModel, PromotionalCodeUsageModel
from storefront.domain.errors import DiscountRejected
from storefront.repos.promo_code_repo import PromoCodeRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PERCENTAGE = "PERCENTAGE"
FIXED_AMOUNT = "FIXED_AMOUNT"
FREE_SHIPPING = "FREE_SHIPPING"

CODE_NOT_FOUND = "CODE_NOT_FOUND"
CODE_INACTIVE = "CODE_INACTIVE"
CODE_EXPIRED = "CODE_EXPIRED"
CODE_NOT_YET_ACTIVE = "CODE_NOT_YET_ACTIVE"
GLOBAL_LIMIT_REACHED = "GLOBAL_LIMIT_REACHED"
USER_LIMIT_REACHED = "USER_LIMIT_REACHED"
BELOW_MINIMUM = "BELOW_MINIMUM"
NO_ELIGIBLE_ITEMS = "NO_ELIGIBLE_ITEMS"


class DiscountLine(Protocol):
    product_id: int
    category_id: str | None
    unit_price_cents: int
    quantity: int


@dataclass
class DiscountResult:
    is_valid: bool
    discount_cents: int = 0
    error_code: str | None = None
    error: str | None = None
    code: PromotionalCodeModel | None = None

    @property
    def free_shipping(self) -> bool:
        return self.is_valid and self.code is not None and self.code.type == FREE_SHIPPING


def normalize_code(code: str) -> str:
    return code.strip().upper()


def _as_utc(value: datetime | None) -> datetime | None:
    # sqlite zwraca naive datetime
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _rejected(error_code: str, error: str, code=None) -> DiscountResult:
    return DiscountResult(is_valid=False, discount_cents=0, error_code=error_code, error=error, code=code)


class DiscountService:
    """
    Walidacja kodow promocyjnych i wyliczenie rabatu (w groszach).
    Walidacja nigdy nie zwieksza licznika uzyc, robi to apply_code_to_order
    w transakcji tworzenia zamowienia.
    """

    def __init__(self, db: Session):
        self.repo = PromoCodeRepo(db)

    def validate_code(
        self,
        code: str,
        user_id: int | None,
        lines: list[DiscountLine],
        subtotal_cents: int,
        now: datetime | None = None,
    ) -> DiscountResult:
        now = now or datetime.now(timezone.utc)
        promo = self.repo.get_by_code(normalize_code(code))

        if not promo:
            return _rejected(CODE_NOT_FOUND, "Invalid promotional code")

        if not promo.is_active:
            return _rejected(CODE_INACTIVE, "This promotional code is no longer active", promo)

        expires_at = _as_utc(promo.expires_at)
        if expires_at is not None and now >= expires_at:
            return _rejected(CODE_EXPIRED, "This promotional code has expired", promo)

        if now < _as_utc(promo.starts_at):
            return _rejected(CODE_NOT_YET_ACTIVE, "This promotional code is not yet active", promo)

        if promo.usage_limit is not None and promo.used_count >= promo.usage_limit:
            return _rejected(GLOBAL_LIMIT_REACHED, "This promotional code has reached its usage limit", promo)

        # goscie nie maja ksiegi uzyc per-user
        if promo.user_usage_limit is not None and user_id is not None:
            used = self.repo.count_user_usages(promo.id, user_id)
            if used >= promo.user_usage_limit:
                return _rejected(
                    USER_LIMIT_REACHED,
                    "You have already used this promotional code the maximum number of times",
                    promo,
                )

        if promo.minimum_amount_cents is not None and subtotal_cents < promo.minimum_amount_cents:
            return _rejected(
                BELOW_MINIMUM,
                f"Minimum order amount of {promo.minimum_amount_cents} cents required",
                promo,
            )

        eligible = eligible_lines(promo, lines)
        if not eligible:
            return _rejected(NO_ELIGIBLE_ITEMS, "This promotional code does not apply to any items in your cart", promo)

        eligible_subtotal = sum(line.unit_price_cents * line.quantity for line in eligible)
        discount = calculate_discount(promo, eligible_subtotal)

        logger.info(f"Promotional code {promo.code} valid, discount {discount} cents on {eligible_subtotal} eligible")
        return DiscountResult(is_valid=True, discount_cents=discount, code=promo)

    def apply_code_to_order(
        self,
        code_id: int,
        user_id: int | None,
        order_id: int,
        discount_cents: int,
    ) -> None:
        """
        Wolane wewnatrz transakcji zamowienia (bez commit).
        Gdy limit zostal wyczerpany rownolegle, caly checkout jest wycofywany.
        """
        if self.repo.increment_used_count(code_id) == 0:
            raise DiscountRejected(
                "This promotional code has reached its usage limit",
                code=GLOBAL_LIMIT_REACHED,
            )

        # UPDATE wyzej trzyma blokade wiersza kodu do commit,
        # wiec rownolegly checkout tego usera czeka i widzi juz nasze uzycie
        if user_id is not None:
            user_limit = self.repo.get_user_usage_limit(code_id)
            if user_limit is not None and self.repo.count_user_usages(code_id, user_id) >= user_limit:
                raise DiscountRejected(
                    "You have already used this promotional code the maximum number of times",
                    code=USER_LIMIT_REACHED,
                )

        self.repo.add_usage(
            PromotionalCodeUsageModel(
                promotional_code_id=code_id,
                user_id=user_id,
                order_id=order_id,
                discount_cents=discount_cents,
            )
        )
        logger.info(f"Promotional code {code_id} used by order {order_id}")


def eligible_lines(promo: PromotionalCodeModel, lines: Iterable[DiscountLine]) -> list:
    excluded = set(promo.excluded_products or [])
    products = set(promo.applicable_products or [])
    categories = set(promo.applicable_categories or [])

    result = []
    for line in lines:
        if line.product_id in excluded:
            continue
        if products:
            if line.product_id in products:
                result.append(line)
            continue
        if categories:
            if line.category_id in categories:
                result.append(line)
            continue
        result.append(line)
    return result


def calculate_discount(promo: PromotionalCodeModel, eligible_subtotal_cents: int) -> int:
    value = Decimal(str(promo.value or 0))

    if promo.type == PERCENTAGE:
        amount = Decimal(eligible_subtotal_cents) * value / Decimal(100)
    elif promo.type == FIXED_AMOUNT:
        amount = value
    else:
        # FREE_SHIPPING, dostawa zerowana w pricing
        amount = Decimal(0)

    if promo.maximum_discount_cents is not None and amount > promo.maximum_discount_cents:
        amount = Decimal(promo.maximum_discount_cents)

    if amount > eligible_subtotal_cents:
        amount = Decimal(eligible_subtotal_cents)

    return max(0, int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)))
