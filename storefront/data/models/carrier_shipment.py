# storefront/data/models/carrier_shipment.py
from sqlalchemy import Column, Integer, ForeignKey, String, Boolean, JSON
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class CarrierShipmentModel(Base):
    """
    Kopia danych wysylanych do przewoznika.
    Tworzona razem z zamowieniem, aktualizowana przy kazdej probie wysylki, nigdy nie usuwana.
    """

    __tablename__ = "carrier_shipments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, unique=True)
    external_order_id = Column(String, nullable=False)  # numer zamowienia

    firstname = Column(String, nullable=False)
    familyname = Column(String, nullable=False)
    contact_phone = Column(String, nullable=False)
    address = Column(String, nullable=False)
    to_region_name = Column(String, nullable=False)
    to_sub_region_name = Column(String, nullable=False)

    is_desk = Column(Boolean, nullable=False, default=False)
    desk_id = Column(Integer, nullable=True)
    free_shipping = Column(Boolean, nullable=False, default=False)
    has_exchange = Column(Boolean, nullable=False, default=False)

    product_list = Column(String, nullable=False)
    declared_value = Column(Integer, nullable=False)  # jednostki glowne, bez groszy

    weight_kg = Column(Integer, nullable=False)
    length_cm = Column(Integer, nullable=False)
    width_cm = Column(Integer, nullable=False)
    height_cm = Column(Integer, nullable=False)

    from_region_name = Column(String, nullable=False)
    from_address = Column(String, nullable=False)

    tracking = Column(String, nullable=True)
    label_url = Column(String, nullable=True)
    status = Column(String, nullable=True)

    attempts = Column(Integer, nullable=False, default=0)
    last_payload = Column(JSON, nullable=True)  # {request, response|error, timestamp}

    order = relationship("OrderModel", back_populates="shipment")
