"""
Turn upstream catalog documents into normalized catalog items
"""

from typing import Dict, Any, Optional, List, Sequence
from datetime import datetime, timezone
from schemas.normalized import NormalizedCatalogItem
import logging

logger = logging.getLogger(__name__)

BUSINESS_KEY_FIELDS = ("dataset_id", "id", "uuid", "studyId", "accession")
TITLE_FIELDS = ("title", "name", "label")
STATUS_FIELDS = ("status", "state", "lifecycle")
UPDATED_FIELDS = ("updated", "updated_at", "modified")


class CatalogNormalizer:
    """
    Normalize catalog documents whose shape varies between upstream versions.

    Handles:
    - Locating the item list inside the document
    - First-match-wins field probing
    - ISO-8601 timestamp parsing (naive values are UTC)
    """

    def extract_items(self, document: Any) -> List[Dict[str, Any]]:
        """
        Locate the list of items inside a catalog document.

        Shapes, in order:
        - a bare array
        - an object with an ``items`` array
        - an object with a ``results`` array
        - a search response ``{"hits": {"hits": [...]}}``; each hit's
          ``_source`` is used when present
        - anything else is a single item
        """
        if isinstance(document, list):
            items = document
        elif isinstance(document, dict) and isinstance(document.get("items"), list):
            items = document["items"]
        elif isinstance(document, dict) and isinstance(document.get("results"), list):
            items = document["results"]
        elif self._is_search_response(document):
            items = [
                hit["_source"] if isinstance(hit, dict) and isinstance(hit.get("_source"), dict) else hit
                for hit in document["hits"]["hits"]
            ]
        else:
            items = [document]

        dicts = [item for item in items if isinstance(item, dict)]
        if len(dicts) != len(items):
            logger.debug(f"Dropped {len(items) - len(dicts)} non-object catalog entries")
        return dicts

    def normalize(self, item: Dict[str, Any]) -> NormalizedCatalogItem:
        """
        Normalize one catalog item.

        Returns:
            Validated NormalizedCatalogItem; fields with no usable candidate are None
        """
        return NormalizedCatalogItem(
            business_key=self.pick_text(item, BUSINESS_KEY_FIELDS),
            title=self.pick_text(item, TITLE_FIELDS),
            status=self.pick_text(item, STATUS_FIELDS),
            external_updated_at=self.pick_timestamp(item, UPDATED_FIELDS),
            raw=item,
        )

    @staticmethod
    def _is_search_response(document: Any) -> bool:
        return (
            isinstance(document, dict)
            and isinstance(document.get("hits"), dict)
            and isinstance(document["hits"].get("hits"), list)
        )

    @staticmethod
    def _as_text(value: Any) -> Optional[str]:
        if isinstance(value, bool):
            return None
        if isinstance(value, str):
            value = value.strip()
            return value or None
        if isinstance(value, (int, float)):
            return str(value)
        return None

    @classmethod
    def pick_text(cls, item: Dict[str, Any], candidates: Sequence[str]) -> Optional[str]:
        """First candidate that is a non-empty string or a number, rendered as text"""
        for field in candidates:
            text = cls._as_text(item.get(field))
            if text is not None:
                return text
        return None

    @staticmethod
    def parse_timestamp(value: Any) -> Optional[datetime]:
        """Parse an ISO-8601 timestamp; naive values are taken as UTC"""
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, str) and value.strip():
            try:
                parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            except ValueError:
                return None
        else:
            return None

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    @classmethod
    def pick_timestamp(cls, item: Dict[str, Any], candidates: Sequence[str]) -> Optional[datetime]:
        """First candidate that parses as a timestamp; unparsable ones are skipped"""
        for field in candidates:
            parsed = cls.parse_timestamp(item.get(field))
            if parsed is not None:
                return parsed
        return None
