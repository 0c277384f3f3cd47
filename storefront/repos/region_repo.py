# storefront/repos/region_repo.py
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.data.models.region import RegionModel, SubRegionModel, DeskModel


class RegionRepo:
    """Lokalny cache katalogu adresow, dopasowanie case-insensitive tylko po aktywnych."""

    def __init__(self, db: Session):
        self.db = db

    def find_region(self, name: str) -> RegionModel | None:
        return self.db.execute(
            select(RegionModel)
            .where(func.lower(RegionModel.name) == name.strip().lower(), RegionModel.active.is_(True))
            .order_by(RegionModel.id)
            .limit(1)
        ).scalar_one_or_none()

    def find_sub_region(self, region_id: int, name: str) -> SubRegionModel | None:
        return self.db.execute(
            select(SubRegionModel)
            .where(
                SubRegionModel.region_id == region_id,
                func.lower(SubRegionModel.name) == name.strip().lower(),
                SubRegionModel.active.is_(True),
            )
            .order_by(SubRegionModel.id)
            .limit(1)
        ).scalar_one_or_none()

    def first_sub_region(self, region_id: int) -> SubRegionModel | None:
        return self.db.execute(
            select(SubRegionModel)
            .where(SubRegionModel.region_id == region_id, SubRegionModel.active.is_(True))
            .order_by(SubRegionModel.name.asc())
            .limit(1)
        ).scalar_one_or_none()

    def get_desk(self, desk_id: int) -> DeskModel | None:
        return self.db.execute(
            select(DeskModel).where(DeskModel.id == desk_id, DeskModel.active.is_(True))
        ).scalar_one_or_none()

    def list_regions(self) -> list[RegionModel]:
        return list(
            self.db.execute(
                select(RegionModel).where(RegionModel.active.is_(True)).order_by(RegionModel.id)
            ).scalars()
        )

    def list_sub_regions(self, region_id: int) -> list[SubRegionModel]:
        return list(
            self.db.execute(
                select(SubRegionModel)
                .where(SubRegionModel.region_id == region_id, SubRegionModel.active.is_(True))
                .order_by(SubRegionModel.name)
            ).scalars()
        )

    def list_desks(self, region_id: int) -> list[DeskModel]:
        return list(
            self.db.execute(
                select(DeskModel)
                .where(DeskModel.region_id == region_id, DeskModel.active.is_(True))
                .order_by(DeskModel.name)
            ).scalars()
        )
