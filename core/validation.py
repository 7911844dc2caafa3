"""
Input validation helpers shared by the API and the service layer.

All validators raise ``ValidationError`` before any I/O happens.
"""

import re
from typing import Any, Optional

from core.exceptions import ValidationError

SOURCE_ID_MAX_LENGTH = 50
URL_MAX_LENGTH = 2048

_SOURCE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_source_id(source: Optional[str]) -> str:
    """
    Validate a source identifier.

    Accepts 1-50 characters made of letters, digits, ``_`` and ``-``.

    Returns:
        The validated identifier
    """
    if not source or len(source) > SOURCE_ID_MAX_LENGTH:
        raise ValidationError(
            "Invalid source id",
            context={"field_name": "source", "field_value": source},
            code="INVALID_SOURCE"
        )
    if not _SOURCE_ID_RE.match(source):
        raise ValidationError(
            "Source id may only contain letters, digits, '_' and '-'",
            context={"field_name": "source", "field_value": source},
            code="INVALID_SOURCE"
        )
    return source


def validate_limit(limit: Any, minimum: int = 1, maximum: int = 100) -> int:
    """Validate a list limit lies in [minimum, maximum]"""
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValidationError(
            "Limit must be an integer",
            context={"field_name": "limit", "field_value": limit}
        )
    if limit < minimum or limit > maximum:
        raise ValidationError(
            f"Limit must be between {minimum} and {maximum}",
            context={"field_name": "limit", "field_value": limit}
        )
    return limit


def validate_url(url: Optional[str]) -> str:
    """Validate an http(s) URL of reasonable length"""
    if not url:
        raise ValidationError("URL must not be empty", context={"field_name": "url"})
    if not (url.startswith("http://") or url.startswith("https://")):
        raise ValidationError(
            "URL must start with http:// or https://",
            context={"field_name": "url", "field_value": url}
        )
    if len(url) > URL_MAX_LENGTH:
        raise ValidationError(
            "URL is too long",
            context={"field_name": "url", "length": len(url)}
        )
    return url


def validate_json_payload(payload: Any) -> Any:
    """A stored payload must be a JSON object or array"""
    if not isinstance(payload, (dict, list)):
        raise ValidationError(
            "Payload must be an object or an array",
            context={"field_name": "payload", "field_type": type(payload).__name__}
        )
    return payload
