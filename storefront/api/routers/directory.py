# storefront/api/routers/directory.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import DeskOut, RegionOut, ShippingQuoteIn, ShippingQuoteOut
from storefront.repos.region_repo import RegionRepo
from storefront.services.carrier_client import CarrierClient
from storefront.services.pricing import cents_to_major
from storefront.services.shipping_service import ShippingService

router = APIRouter(tags=["directory"])


def get_shipping_service(db: Session = Depends(get_db)) -> ShippingService:
    return ShippingService(db, CarrierClient())


def _region_or_404(repo: RegionRepo, name: str):
    region = repo.find_region(name)
    if not region:
        raise HTTPException(status_code=404, detail="Region nie znaleziony")
    return region


@router.get("/directory/regions", response_model=List[RegionOut])
def list_regions(db: Session = Depends(get_db)):
    return RegionRepo(db).list_regions()


@router.get("/directory/regions/{name}/sub-regions", response_model=List[RegionOut])
def list_sub_regions(name: str, db: Session = Depends(get_db)):
    repo = RegionRepo(db)
    return repo.list_sub_regions(_region_or_404(repo, name).id)


@router.get("/directory/regions/{name}/desks", response_model=List[DeskOut])
def list_desks(name: str, db: Session = Depends(get_db)):
    repo = RegionRepo(db)
    return repo.list_desks(_region_or_404(repo, name).id)


@router.post("/shipping/quote", response_model=ShippingQuoteOut)
def quote_shipping(payload: ShippingQuoteIn, svc: ShippingService = Depends(get_shipping_service)):
    """
    Wycena pokazywana klientowi, checkout przyjmuje ja bez przeliczania.
    """
    quote = svc.quote(
        region=payload.region,
        sub_region=payload.sub_region,
        weight_kg=payload.weight_kg,
        is_desk=payload.mode == "desk",
        length=payload.length_cm,
        width=payload.width_cm,
        height=payload.height_cm,
    )
    return {
        "cost": cents_to_major(quote.cost_cents),
        "cost_cents": quote.cost_cents,
        "currency": quote.currency,
        "estimated_days": quote.estimated_days,
        "source": quote.source,
    }
