# storefront/data/models/region.py
from sqlalchemy import Column, Integer, ForeignKey, String, Boolean
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class RegionModel(Base):
    """Lokalna kopia katalogu regionow przewoznika (wilaya)."""

    __tablename__ = "regions"

    id = Column(Integer, primary_key=True)  # identyfikator po stronie przewoznika
    name = Column(String, nullable=False, index=True)
    active = Column(Boolean, nullable=False, default=True)

    sub_regions = relationship("SubRegionModel", back_populates="region")
    desks = relationship("DeskModel", back_populates="region")


class SubRegionModel(Base):
    __tablename__ = "sub_regions"

    id = Column(Integer, primary_key=True)
    region_id = Column(Integer, ForeignKey("regions.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    region = relationship("RegionModel", back_populates="sub_regions")


class DeskModel(Base):
    """Punkt odbioru przewoznika (stop desk)."""

    __tablename__ = "desks"

    id = Column(Integer, primary_key=True)
    region_id = Column(Integer, ForeignKey("regions.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    region = relationship("RegionModel", back_populates="desks")
