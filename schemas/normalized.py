"""
Pydantic schemas for normalized catalog items with validation
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, Dict, Any
from datetime import datetime


class NormalizedCatalogItem(BaseModel):
    """
    Catalog item extracted from one upstream document, ready for upsert.

    Ensures:
    - Text fields are stripped; blank values become None
    - raw is always a dict
    """

    business_key: Optional[str] = None
    title: Optional[str] = None
    status: Optional[str] = None
    external_updated_at: Optional[datetime] = None
    raw: Dict[str, Any] = Field(default_factory=dict)

    @validator("business_key", "title", "status", pre=True)
    def blank_to_none(cls, v):
        """Strip text; empty strings carry no information"""
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @validator("raw", pre=True)
    def ensure_raw_dict(cls, v):
        """Ensure raw is a dict"""
        if not isinstance(v, dict):
            return {}
        return v
