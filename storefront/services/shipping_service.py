# storefront/services/shipping_service.py
import math
from dataclasses import dataclass

from sqlalchemy.orm import Session

from storefront.repos.region_repo import RegionRepo
from storefront.services.carrier_client import CarrierClient, DirectoryUnavailable
from storefront.services.pricing import to_cents
from storefront.utils import settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# powyzej tej wagi przewoznik dolicza oversize_fee za kazdy kg
FREE_WEIGHT_KG = 5
VOLUMETRIC_FACTOR = 0.0002
DESK_FALLBACK_RATE = 0.8


@dataclass(frozen=True)
class ShippingQuote:
    cost_cents: int
    currency: str
    estimated_days: int
    source: str


def billable_weight(weight_kg: float, length=None, width=None, height=None) -> float:
    volumetric = 0.0
    if length and width and height:
        volumetric = length * width * height * VOLUMETRIC_FACTOR
    return max(weight_kg, volumetric)


def overweight_fee(weight: float, oversize_fee: int) -> int:
    if weight <= FREE_WEIGHT_KG:
        return 0
    return math.ceil((weight - FREE_WEIGHT_KG) * oversize_fee)


def fallback_cost(weight_kg: float, is_desk: bool) -> int:
    """Lokalna estymacja w jednostkach glownych gdy tabela oplat jest niedostepna."""
    if weight_kg <= 1:
        base = 400
    elif weight_kg <= 3:
        base = 500
    elif weight_kg <= 5:
        base = 700
    else:
        base = 1000
    return round(base * (DESK_FALLBACK_RATE if is_desk else 1))


class ShippingService:
    """
    Wycena dostawy pokazywana klientowi przy wyborze adresu.
    Ta sama kwota wraca potem w checkout jako quoted_shipping_cost i nie jest przeliczana.
    """

    def __init__(self, db: Session, client: CarrierClient):
        self.regions = RegionRepo(db)
        self.client = client

    def quote(
        self,
        region: str,
        sub_region: str | None,
        weight_kg: int,
        is_desk: bool,
        length: int | None = None,
        width: int | None = None,
        height: int | None = None,
    ) -> ShippingQuote:
        days = 2 if is_desk else 3
        db_region = self.regions.find_region(region)

        cost = None
        if db_region is not None:
            cost = self._quote_from_fees(db_region.id, sub_region, weight_kg, is_desk, length, width, height)

        if cost is None:
            cost = fallback_cost(weight_kg, is_desk)
            logger.info(f"Shipping to {region} estimated locally: {cost} {settings.CURRENCY}")
            return ShippingQuote(to_cents(cost), settings.CURRENCY, days, "fallback")

        return ShippingQuote(to_cents(cost), settings.CURRENCY, days, "carrier")

    def _quote_from_fees(self, region_id, sub_region, weight_kg, is_desk, length, width, height) -> int | None:
        try:
            fees = self.client.get_fees(region_id)
        except DirectoryUnavailable as e:
            logger.warning(f"Carrier fees unavailable for region {region_id}: {e}")
            return None

        if not fees.per_sub_region:
            return None

        entry = None
        if sub_region:
            wanted = sub_region.strip().lower()
            entry = next(
                (e for e in fees.per_sub_region if str(e.get("commune_name", "")).lower() == wanted),
                None,
            )
        if entry is None:
            entry = fees.per_sub_region[0]

        if is_desk:
            base = entry.get("express_desk") or entry.get("economic_desk")
        else:
            base = entry.get("express_home") or entry.get("economic_home")
        if not base:
            logger.warning(f"No {'desk' if is_desk else 'home'} fee for {entry.get('commune_name')}")
            return None

        weight = billable_weight(weight_kg, length, width, height)
        return int(base) + overweight_fee(weight, fees.oversize_fee)
