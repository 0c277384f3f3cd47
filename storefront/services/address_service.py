# storefront/services/address_service.py
from dataclasses import dataclass

from sqlalchemy.orm import Session

from storefront.domain.errors import InvalidDestination
from storefront.repos.region_repo import RegionRepo
from storefront.services.carrier_client import CarrierClient, DirectoryUnavailable
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

HOME = "home"
DESK = "desk"


@dataclass(frozen=True)
class ResolvedDestination:
    region_name: str
    sub_region_name: str
    mode: str
    desk_id: int | None = None
    region_id: int | None = None
    source: str = "cache"

    @property
    def is_desk(self) -> bool:
        return self.mode == DESK

    @property
    def address(self) -> str:
        if self.is_desk:
            return f"Stop Desk {self.desk_id}, {self.sub_region_name}, {self.region_name}"
        return f"{self.sub_region_name}, {self.region_name}"


class AddressResolver:
    """
    Walidacja adresu docelowego:
    1. lokalny cache (tabele regions / sub_regions / desks)
    2. fallback do katalogu przewoznika gdy cache nie potwierdzi adresu
    Zwraca dokladne nazwy do zapisania w zamowieniu.
    """

    def __init__(self, db: Session, directory: CarrierClient):
        self.repo = RegionRepo(db)
        self.directory = directory

    def resolve(
        self,
        region: str,
        sub_region: str | None,
        mode: str,
        desk_id: int | None = None,
    ) -> ResolvedDestination:
        if mode == HOME and not (sub_region and sub_region.strip()):
            raise InvalidDestination("For home delivery, sub_region is required")
        if mode == DESK and (not desk_id or desk_id <= 0):
            raise InvalidDestination("For desk delivery, a valid desk_id is required")

        resolved = self._resolve_local(region, sub_region, mode, desk_id)
        if resolved is None:
            logger.info(f"Destination '{region}/{sub_region}' not confirmed by local cache, asking carrier directory")
            resolved = self._resolve_remote(region, sub_region, mode, desk_id)

        if resolved is None:
            if mode == DESK:
                raise InvalidDestination("Invalid or unavailable region for stop desk delivery")
            raise InvalidDestination("Invalid or unavailable region/sub-region")

        logger.info(f"Destination resolved from {resolved.source}: {resolved.address}")
        return resolved

    def _resolve_local(self, region, sub_region, mode, desk_id) -> ResolvedDestination | None:
        db_region = self.repo.find_region(region)
        if not db_region:
            return None

        if mode == HOME:
            db_sub_region = self.repo.find_sub_region(db_region.id, sub_region)
            if not db_sub_region:
                return None
            return ResolvedDestination(
                region_name=db_region.name,
                sub_region_name=db_sub_region.name,
                mode=HOME,
                region_id=db_region.id,
            )

        desk = self.repo.get_desk(desk_id)
        if not desk:
            return None

        # region desku moze sie roznic od wpisanego, liczy sie region desku
        desk_region = desk.region
        return ResolvedDestination(
            region_name=desk_region.name,
            sub_region_name=self._main_sub_region_name(desk_region),
            mode=DESK,
            desk_id=desk.id,
            region_id=desk_region.id,
        )

    def _main_sub_region_name(self, region) -> str:
        # (a) podregion o nazwie regionu, (b) pierwszy alfabetycznie, (c) nazwa regionu
        same_name = self.repo.find_sub_region(region.id, region.name)
        if same_name:
            return same_name.name

        first = self.repo.first_sub_region(region.id)
        if first:
            logger.info(f"No sub-region named '{region.name}', using '{first.name}' for desk delivery")
            return first.name

        logger.info(f"Region '{region.name}' has no sub-regions, using region name for desk delivery")
        return region.name

    def _resolve_remote(self, region, sub_region, mode, desk_id) -> ResolvedDestination | None:
        try:
            regions = self.directory.get_regions()
            matched = _match_by_name(regions, region)
            if not matched:
                return None

            region_name = matched["name"]
            region_id = matched.get("id")

            if mode == DESK:
                return ResolvedDestination(
                    region_name=region_name,
                    sub_region_name=region_name,
                    mode=DESK,
                    desk_id=desk_id,
                    region_id=region_id,
                    source="remote",
                )

            sub_regions = self.directory.get_sub_regions(region_id)
            matched_sub = _match_by_name(sub_regions, sub_region)
            if not matched_sub:
                return None

            return ResolvedDestination(
                region_name=region_name,
                sub_region_name=matched_sub["name"],
                mode=HOME,
                region_id=region_id,
                source="remote",
            )
        except DirectoryUnavailable as e:
            logger.warning(f"Carrier directory unavailable: {e}")
            return None


def _match_by_name(entries: list[dict], name: str | None) -> dict | None:
    if not name:
        return None
    wanted = name.strip().lower()
    for entry in entries:
        if str(entry.get("name", "")).lower() == wanted:
            return entry
    return None
