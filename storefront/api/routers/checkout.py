# storefront/api/routers/checkout.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import CheckoutError
from storefront.domain.schemas import CheckoutIn, CheckoutOut
from storefront.services.carrier_client import CarrierClient
from storefront.services.checkout_service import CheckoutService
from storefront.services.lock_service import LockService
from storefront.services.product_client import ProductClient

router = APIRouter(prefix="/checkout", tags=["checkout"])


def get_service(db: Session = Depends(get_db)) -> CheckoutService:
    return CheckoutService(
        db=db,
        product_client=ProductClient(),
        carrier_client=CarrierClient(),
        lock_service=LockService(),
    )


@router.post("/cod", response_model=CheckoutOut)
def cod_checkout(
    payload: CheckoutIn,
    user_id: Optional[int] = Query(None, gt=0),
    svc: CheckoutService = Depends(get_service),
):
    """
    Zamowienie za pobraniem.
    user_id przychodzi z warstwy auth, brak = zamowienie goscia.
    """
    try:
        return svc.checkout(payload, user_id=user_id)
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
