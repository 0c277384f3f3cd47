#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from storefront.data.models.user import UserModel
from storefront.data.models.region import RegionModel, SubRegionModel, DeskModel
from storefront.data.models.promo_code import PromotionalCodeModel, PromotionalCodeUsageModel
from storefront.data.models.order import OrderModel, OrderLineModel, OrderSequenceModel
from storefront.data.models.carrier_shipment import CarrierShipmentModel

__all__ = [
    "UserModel",
    "RegionModel",
    "SubRegionModel",
    "DeskModel",
    "PromotionalCodeModel",
    "PromotionalCodeUsageModel",
    "OrderModel",
    "OrderLineModel",
    "OrderSequenceModel",
    "CarrierShipmentModel",
]
