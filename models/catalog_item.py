from sqlalchemy import Column, DateTime, Text, Index
from models.base import Base, JSONType, PrimaryKeyType, utcnow


class CatalogItem(Base):
    """
    Dataset catalog entries synced from NASA OSDR.

    Field Mapping Strategy (first present, non-empty candidate wins):
    - dataset_id / id / uuid / studyId / accession -> business_key
    - title / name / label -> title
    - status / state / lifecycle -> status
    - updated / updated_at / modified -> external_updated_at
    - whole normalized document -> raw

    Design:
    - business_key is UNIQUE, so upserts on it never duplicate a dataset
    - rows without a business key are always inserted fresh
    """
    __tablename__ = "osdr_items"

    id = Column(PrimaryKeyType, primary_key=True, autoincrement=True)
    business_key = Column(Text, nullable=True, unique=True)

    title = Column(Text, nullable=True)
    status = Column(Text, nullable=True)
    external_updated_at = Column(DateTime(timezone=True), nullable=True)
    inserted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    raw = Column(JSONType, nullable=False)

    __table_args__ = (
        Index("idx_osdr_inserted", "inserted_at"),
    )
