# storefront/data/seed.py
from sqlalchemy.orm import Session

from storefront.data.database import SessionLocal
from storefront.data.models.region import RegionModel, SubRegionModel, DeskModel

# wycinek katalogu przewoznika, pelna synchronizacja jest poza tym serwisem
REGIONS = {
    16: ("Alger", ["Alger Centre", "Bab El Oued", "Bir Mourad Rais", "El Biar", "Hydra", "Kouba"]),
    31: ("Oran", ["Oran", "Arzew", "Bir El Djir", "Es Senia"]),
    25: ("Constantine", ["Constantine", "El Khroub", "Hamma Bouziane"]),
    9: ("Blida", ["Blida", "Boufarik", "Larbaa"]),
    11: ("Tamanrasset", []),
}

DESKS = [
    (1601, 16, "Agence Alger Centre", "Rue Didouche Mourad, Alger"),
    (3101, 31, "Agence Oran", "Boulevard de l'ALN, Oran"),
    (2501, 25, "Agence Constantine", "Cite Daksi, Constantine"),
    (1101, 11, "Agence Tamanrasset", "Centre ville, Tamanrasset"),
]


def seed_reference_data(db: Session) -> None:
    # not forcing: only seed if empty
    if db.query(RegionModel).first():
        return

    sub_region_id = 1
    for region_id, (name, sub_regions) in REGIONS.items():
        db.add(RegionModel(id=region_id, name=name, active=True))
        for sub_name in sub_regions:
            db.add(SubRegionModel(id=sub_region_id, region_id=region_id, name=sub_name, active=True))
            sub_region_id += 1

    for desk_id, region_id, name, address in DESKS:
        db.add(DeskModel(id=desk_id, region_id=region_id, name=name, address=address, active=True))

    db.commit()


def seed():
    db = SessionLocal()
    try:
        seed_reference_data(db)
    finally:
        db.close()


if __name__ == "__main__":
    seed()
