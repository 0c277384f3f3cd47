# storefront/domain/schemas.py
import re
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_PHONE_RE = re.compile(r"^[0-9]{9,10}$")


class CartLineIn(BaseModel):
    """Pozycja koszyka wyslana przez klienta, cena jest tylko informacyjna."""

    product_id: int = Field(..., gt=0)
    name: str = Field(..., min_length=1)
    sku: Optional[str] = None
    unit_price_cents: int = Field(0, ge=0, description="Ignorowana, cena jest brana z katalogu")
    quantity: int = Field(..., ge=1)
    weight_gr: int = Field(..., ge=1)
    length_cm: Optional[int] = Field(None, gt=0)
    width_cm: Optional[int] = Field(None, gt=0)
    height_cm: Optional[int] = Field(None, gt=0)


class CustomerIn(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: str) -> str:
        digits = re.sub(r"[\s\-.]", "", value)
        if not _PHONE_RE.match(digits):
            raise ValueError("Phone must be 9-10 digits")
        return digits


class DestinationIn(BaseModel):
    region: str = Field(..., min_length=1)
    sub_region: Optional[str] = None


class HomeDeliveryIn(BaseModel):
    mode: Literal["home"]
    free_shipping: bool = False
    has_exchange: bool = False


class DeskDeliveryIn(BaseModel):
    mode: Literal["desk"]
    desk_id: int = Field(..., gt=0)
    free_shipping: bool = False
    has_exchange: bool = False


DeliveryIn = Annotated[Union[HomeDeliveryIn, DeskDeliveryIn], Field(discriminator="mode")]


class ParcelOverrideIn(BaseModel):
    length: Optional[int] = Field(None, gt=0)
    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)
    weight: Optional[int] = Field(None, gt=0)


class CheckoutIn(BaseModel):
    """Zamowienie za pobraniem (COD)."""

    cart: List[CartLineIn] = Field(..., min_length=1)
    customer: CustomerIn
    destination: DestinationIn
    delivery: DeliveryIn
    parcel_override: Optional[ParcelOverrideIn] = None
    notes: Optional[str] = Field(None, max_length=1000)
    promo_code: Optional[str] = None
    quoted_shipping_cost: Decimal = Field(Decimal("0"), ge=0, description="Koszt dostawy pokazany klientowi")

    @model_validator(mode="after")
    def check_home_sub_region(self):
        if self.delivery.mode == "home":
            if not self.destination.sub_region or not self.destination.sub_region.strip():
                raise ValueError("For home delivery, sub_region is required")
        return self


class PricingOut(BaseModel):
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    total: Decimal
    currency: str


class CarrierOut(BaseModel):
    payload: dict[str, Any]
    tracking: Optional[str] = None
    label_url: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None


class CheckoutOut(BaseModel):
    ok: bool
    order_id: int
    order_number: str
    cod_status: str
    state: str
    pricing: PricingOut
    carrier: CarrierOut


class ShippingQuoteIn(BaseModel):
    region: str = Field(..., min_length=1)
    sub_region: Optional[str] = None
    mode: Literal["home", "desk"] = "home"
    weight_kg: int = Field(1, ge=1)
    length_cm: Optional[int] = Field(None, gt=0)
    width_cm: Optional[int] = Field(None, gt=0)
    height_cm: Optional[int] = Field(None, gt=0)


class ShippingQuoteOut(BaseModel):
    cost: Decimal
    cost_cents: int
    currency: str
    estimated_days: int
    source: str


class PromoItemIn(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)


class PromoValidateIn(BaseModel):
    code: str = Field(..., min_length=1)
    items: List[PromoItemIn] = Field(..., min_length=1)
    user_id: Optional[int] = Field(None, gt=0)


class PromoValidateOut(BaseModel):
    is_valid: bool
    discount_cents: int
    error_code: Optional[str] = None
    error: Optional[str] = None
    code: Optional[str] = None
    type: Optional[str] = None


class RegionOut(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class DeskOut(BaseModel):
    id: int
    name: str
    address: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class OrderLineOut(BaseModel):
    product_id: int
    name: str
    sku: str
    unit_price_cents: int
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class ShipmentOut(BaseModel):
    to_region_name: str
    to_sub_region_name: str
    address: str
    is_desk: bool
    desk_id: Optional[int] = None
    weight_kg: int
    length_cm: int
    width_cm: int
    height_cm: int
    tracking: Optional[str] = None
    label_url: Optional[str] = None
    status: Optional[str] = None
    attempts: int
    last_payload: Optional[dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    order_number: str
    user_id: Optional[int] = None
    status: str
    payment_method: str
    currency: str
    subtotal_cents: int
    discount_cents: int
    shipping_cents: int
    total_cents: int
    customer_first: str
    customer_last: str
    customer_phone: str
    tracking_number: Optional[str] = None
    created_at: datetime
    lines: List[OrderLineOut]
    shipment: Optional[ShipmentOut] = None

    model_config = ConfigDict(from_attributes=True)


class CarrierSubmitOut(BaseModel):
    ok: bool
    order_number: str
    status: str
    carrier: CarrierOut
