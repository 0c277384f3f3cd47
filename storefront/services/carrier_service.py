# storefront/services/carrier_service.py
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from storefront.data.models.carrier_shipment import CarrierShipmentModel
from storefront.data.models.order import OrderModel
from storefront.repos.order_repo import OrderRepo
from storefront.services.carrier_client import CarrierClient, CarrierResult
from storefront.services.lock_service import LockService
from storefront.services.order_service import SUBMITTED
from storefront.utils import settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ALREADY_SUBMITTED = "Shipment already submitted to carrier"
SUBMISSION_IN_PROGRESS = "Carrier submission already in progress"


@dataclass
class CarrierOutcome:
    ok: bool
    payload: dict[str, Any] = field(default_factory=dict)
    tracking: str | None = None
    label_url: str | None = None
    status: str | None = None
    error: str | None = None


def build_carrier_payload(shipment: CarrierShipmentModel) -> dict[str, Any]:
    return {
        "order_id": shipment.external_order_id,
        "firstname": shipment.firstname,
        "familyname": shipment.familyname,
        "contact_phone": shipment.contact_phone,
        "address": shipment.address,
        "to_wilaya_name": shipment.to_region_name,
        "to_commune_name": shipment.to_sub_region_name,
        "product_list": shipment.product_list,
        "price": shipment.declared_value,
        "height": shipment.height_cm,
        "width": shipment.width_cm,
        "length": shipment.length_cm,
        "weight": shipment.weight_kg,
        "is_stopdesk": shipment.is_desk,
        "stopdesk_id": shipment.desk_id,
        "freeshipping": shipment.free_shipping,
        "has_exchange": shipment.has_exchange,
        "do_insurance": True,
        "from_wilaya_name": shipment.from_region_name,
        "from_address": shipment.from_address,
    }


class CarrierGateway:
    """
    Wysylka paczki do przewoznika, poza transakcja zamowienia.
    - blad przewoznika nie wycofuje zamowienia, zamowienie zostaje PENDING
    - kazda proba zapisuje audit (request, response / error, timestamp)
    - submit() nigdy nie rzuca wyjatku
    """

    def __init__(self, db: Session, client: CarrierClient, lock_service: LockService):
        self.repo = OrderRepo(db)
        self.client = client
        self.lock_service = lock_service

    def submit(self, order: OrderModel) -> CarrierOutcome:
        shipment = self.repo.get_shipment(order.id)
        if shipment is None:
            logger.error(f"Order {order.order_number} has no carrier shipment row")
            return CarrierOutcome(ok=False, error="Carrier shipment record missing")

        payload = build_carrier_payload(shipment)

        if shipment.tracking:
            return CarrierOutcome(
                ok=False,
                payload=payload,
                tracking=shipment.tracking,
                label_url=shipment.label_url,
                status=shipment.status,
                error=ALREADY_SUBMITTED,
            )

        owner = uuid.uuid4().hex
        try:
            locked = self.lock_service.acquire_submission_lock(
                order.order_number, owner, settings.CARRIER_LOCK_TTL_SECONDS
            )
        except RedisError as e:
            logger.error(f"Submission lock unavailable for {order.order_number}: {e}")
            result = CarrierResult(ok=False, error=f"Submission lock unavailable: {e}")
            return self._record(order, shipment, payload, result)

        if not locked:
            logger.warning(f"Order {order.order_number} is already being submitted")
            return CarrierOutcome(ok=False, payload=payload, error=SUBMISSION_IN_PROGRESS)

        try:
            try:
                result = self.client.create_parcel(payload)
            except Exception as e:
                logger.error(f"Carrier submission for {order.order_number} crashed: {e}")
                result = CarrierResult(ok=False, error=str(e), raw={"error": str(e)})

            return self._record(order, shipment, payload, result)
        finally:
            try:
                self.lock_service.release_submission_lock(order.order_number, owner)
            except RedisError as e:
                # lock i tak wygasnie po TTL
                logger.warning(f"Failed to release submission lock for {order.order_number}: {e}")

    def _record(
        self,
        order: OrderModel,
        shipment: CarrierShipmentModel,
        payload: dict,
        result: CarrierResult,
    ) -> CarrierOutcome:
        audit = {"request": payload, "timestamp": datetime.now(timezone.utc).isoformat()}
        if result.ok:
            audit["response"] = result.raw
        else:
            audit["error"] = result.error
            if result.raw is not None:
                audit["response"] = result.raw

        shipment.last_payload = audit
        shipment.attempts = (shipment.attempts or 0) + 1

        if result.ok:
            shipment.tracking = result.tracking
            shipment.label_url = result.label_url
            shipment.status = result.status
            order.status = SUBMITTED
            order.tracking_number = result.tracking
            logger.info(f"Order {order.order_number} submitted to carrier, tracking {result.tracking}")
        else:
            logger.warning(f"Order {order.order_number} stays PENDING, carrier error: {result.error}")

        try:
            self.repo.commit()
        except Exception as e:
            logger.error(f"Failed to store carrier audit for {order.order_number}: {e}")
            self.repo.rollback()
            if result.ok:
                # paczka juz istnieje u przewoznika, tracking musi trafic do bazy
                return self._store_tracking(order, payload, result)

        return CarrierOutcome(
            ok=result.ok,
            payload=payload,
            tracking=result.tracking,
            label_url=result.label_url,
            status=result.status,
            error=result.error,
        )

    def _store_tracking(self, order: OrderModel, payload: dict, result: CarrierResult) -> CarrierOutcome:
        """Druga proba zapisu samego trackingu, bez audytu."""
        try:
            shipment = self.repo.get_shipment(order.id)
            shipment.tracking = result.tracking
            shipment.label_url = result.label_url
            shipment.status = result.status
            order.status = SUBMITTED
            order.tracking_number = result.tracking
            self.repo.commit()
        except Exception as e:
            self.repo.rollback()
            error = f"Parcel created with tracking {result.tracking} but not stored: {e}"
            logger.critical(f"Order {order.order_number}: {error}")
            return CarrierOutcome(
                ok=False,
                payload=payload,
                tracking=result.tracking,
                label_url=result.label_url,
                status=result.status,
                error=error,
            )

        logger.warning(f"Order {order.order_number} tracking {result.tracking} stored without audit")
        return CarrierOutcome(
            ok=True,
            payload=payload,
            tracking=result.tracking,
            label_url=result.label_url,
            status=result.status,
        )
