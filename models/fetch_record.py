from sqlalchemy import Column, DateTime, Text, Index
from models.base import Base, JSONType, PrimaryKeyType, utcnow


class FetchRecord(Base):
    """
    Append-only telemetry log, one row per successful ISS position fetch.

    Design:
    - Immutable once written; no updates or deletes
    - id is monotonic, so "latest" and "latest N" order by id
    - payload keeps the upstream document as-is
    """
    __tablename__ = "iss_fetch_log"

    id = Column(PrimaryKeyType, primary_key=True, autoincrement=True)
    fetched_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    source_url = Column(Text, nullable=False)
    payload = Column(JSONType, nullable=False)

    __table_args__ = (
        Index("idx_iss_fetch_log_fetched", "fetched_at"),
    )
