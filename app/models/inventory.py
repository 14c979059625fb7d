"""
Article and Inventory models.
Articles are identified by (mk, artikelnr) and are the same at every location;
inventory rows hold the per-location fields (status, lagerplats).
"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from app.core.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def generate_id() -> str:
    return uuid.uuid4().hex


class Article(Base):
    """Article model - immutable part data shared across locations"""
    __tablename__ = "articles"

    id = Column(String(32), primary_key=True, default=generate_id)
    mk = Column(String(128), nullable=False, index=True)  # Maker code (märkeskod)
    artikelnr = Column(String(256), nullable=False, index=True)
    benamning = Column(String(256), nullable=True)
    benamning2 = Column(String(256), nullable=True)
    extrainfo = Column(String(512), nullable=True)
    bild = Column(Boolean, nullable=True)
    paket = Column(JSONType, nullable=True)  # list[str]
    fordon = Column(JSONType, nullable=True)  # list[str]
    alternativart = Column(JSONType, nullable=True)  # list[{märkeskod, artikelnummer}]
    data = Column(JSONType, nullable=True)  # Raw projection of the snapshot item
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('mk', 'artikelnr', name='uq_articles_mk_artikelnr'),
    )

    def __repr__(self):
        return f"<Article(mk='{self.mk}', artikelnr='{self.artikelnr}')>"


class Inventory(Base):
    """Inventory model - one row per article and stock location"""
    __tablename__ = "inventory"

    id = Column(String(32), primary_key=True, default=generate_id)
    location = Column(String(128), nullable=False, index=True)  # e.g. "Partille"
    mk = Column(String(128), nullable=False, index=True)
    artikelnr = Column(String(256), nullable=False, index=True)
    status = Column(String(64), nullable=True, index=True)
    lagerplats = Column(String(128), nullable=True)
    location_data = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('mk', 'artikelnr', 'location', name='uq_inventory_mk_artikelnr_location'),
    )

    def __repr__(self):
        return f"<Inventory(mk='{self.mk}', artikelnr='{self.artikelnr}', location='{self.location}')>"
