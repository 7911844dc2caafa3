from sqlalchemy import Column, String, DateTime, Index
from models.base import Base, JSONType, PrimaryKeyType, utcnow


class SourceSnapshot(Base):
    """
    Generic per-source snapshot of a feed (APOD, NEO, DONKI, SpaceX, JWST).

    Purpose:
    - Keep every fetch as history
    - The row with the highest id per source is the current snapshot
    """
    __tablename__ = "space_cache"

    id = Column(PrimaryKeyType, primary_key=True, autoincrement=True)
    source = Column(String(50), nullable=False)
    fetched_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    payload = Column(JSONType, nullable=False)

    __table_args__ = (
        Index("idx_space_cache_source", "source", "fetched_at"),
    )
