# storefront/api/routers/orders.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import CarrierSubmissionFailure, CheckoutError
from storefront.domain.schemas import CarrierSubmitOut, OrderOut
from storefront.services.carrier_client import CarrierClient
from storefront.services.carrier_service import CarrierGateway
from storefront.services.lock_service import LockService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)


def get_gateway(db: Session = Depends(get_db)) -> CarrierGateway:
    return CarrierGateway(db, CarrierClient(), LockService())


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, svc: OrderService = Depends(get_service)):
    """
    Pobiera szczegoly zamowienia razem z audytem przewoznika.
    """
    try:
        return svc.get_order(order_id)
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post("/{order_id}/carrier/submit", response_model=CarrierSubmitOut)
def submit_to_carrier(
    order_id: int,
    svc: OrderService = Depends(get_service),
    gateway: CarrierGateway = Depends(get_gateway),
):
    """
    Reczna wysylka zamowienia do przewoznika po przegladzie admina.
    """
    try:
        order = svc.get_order(order_id)
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

    outcome = gateway.submit(order)
    if not outcome.ok:
        failure = CarrierSubmissionFailure(outcome.error or "Carrier submission failed")
        status_code = 409 if order.shipment and order.shipment.tracking else failure.status_code
        raise HTTPException(status_code=status_code, detail=failure.to_detail())

    return {
        "ok": True,
        "order_number": order.order_number,
        "status": order.status,
        "carrier": {
            "payload": outcome.payload,
            "tracking": outcome.tracking,
            "label_url": outcome.label_url,
            "status": outcome.status,
            "error": None,
        },
    }
