# storefront/api/routers/promo_codes.py
from dataclasses import dataclass

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import CatalogMismatch, CheckoutError
from storefront.domain.schemas import PromoValidateIn, PromoValidateOut
from storefront.services.discount_service import DiscountService
from storefront.services.pricing import subtotal_cents
from storefront.services.product_client import ProductClient

router = APIRouter(prefix="/promotional-codes", tags=["promotional-codes"])


@dataclass(frozen=True)
class _Line:
    product_id: int
    category_id: str | None
    unit_price_cents: int
    quantity: int


def get_product_client() -> ProductClient:
    return ProductClient()


@router.post("/validate", response_model=PromoValidateOut)
def validate_code(
    payload: PromoValidateIn,
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
):
    """Podglad rabatu w koszyku, nic nie zapisuje."""
    try:
        catalog = product_client.fetch_catalog([i.product_id for i in payload.items])
        missing = [i.product_id for i in payload.items if i.product_id not in catalog]
        if missing:
            raise CatalogMismatch(missing)
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

    lines = [
        _Line(i.product_id, catalog[i.product_id].category_id, catalog[i.product_id].price_cents, i.quantity)
        for i in payload.items
    ]
    result = DiscountService(db).validate_code(payload.code, payload.user_id, lines, subtotal_cents(lines))

    return {
        "is_valid": result.is_valid,
        "discount_cents": result.discount_cents,
        "error_code": result.error_code,
        "error": result.error,
        "code": result.code.code if result.is_valid else None,
        "type": result.code.type if result.is_valid else None,
    }

