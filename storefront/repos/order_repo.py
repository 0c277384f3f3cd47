# storefront/repos/order_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel, OrderLineModel, OrderSequenceModel
from storefront.data.models.carrier_shipment import CarrierShipmentModel


class OrderRepo:
    """
    Repo nie commituje, transakcja nalezy do serwisu.
    Wyjatek: commit() / rollback() wolane jawnie przez serwis.
    """

    def __init__(self, db: Session):
        self.db = db

    def next_sequence_value(self, prefix: str) -> int:
        # atomowa inkrementacja w tej samej transakcji co insert zamowienia
        rowcount = self.db.execute(
            update(OrderSequenceModel)
            .where(OrderSequenceModel.prefix == prefix)
            .values(last_value=OrderSequenceModel.last_value + 1)
            .execution_options(synchronize_session=False)
        ).rowcount

        if rowcount == 0:
            # pierwszy numer dla prefiksu, rownolegly insert skonczy sie konfliktem PK
            self.db.add(OrderSequenceModel(prefix=prefix, last_value=1))
            self.db.flush()
            return 1

        return self.db.execute(
            select(OrderSequenceModel.last_value).where(OrderSequenceModel.prefix == prefix)
        ).scalar_one()

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def add_order_lines(self, order: OrderModel, lines: list[OrderLineModel]) -> list[OrderLineModel]:
        for line in lines:
            line.order_id = order.id
            self.db.add(line)
        self.db.flush()
        return lines

    def add_shipment(self, shipment: CarrierShipmentModel) -> CarrierShipmentModel:
        self.db.add(shipment)
        self.db.flush()
        return shipment

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(selectinload(OrderModel.lines), selectinload(OrderModel.shipment))
        ).scalar_one_or_none()

    def get_shipment(self, order_id: int) -> CarrierShipmentModel | None:
        return self.db.execute(
            select(CarrierShipmentModel).where(CarrierShipmentModel.order_id == order_id)
        ).scalar_one_or_none()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
