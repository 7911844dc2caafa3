"""
Custom exceptions for the space data service with structured error context.

Every error carries a stable machine-readable code, a human-readable message
and a unique trace identifier. Internal context (URLs, table names, the
original exception) is kept for logging only and never leaves the process
through ``to_response()``.

Exception Hierarchy:
    ServiceError (base)
    ├── UpstreamError    - external source failed (timeout, transport, status, body)
    ├── StorageError     - durable store operation failed
    ├── CacheError       - cache layer failed (never surfaced to callers)
    ├── ValidationError  - malformed caller-supplied input
    └── NotFoundError    - requested resource does not exist
"""

import enum
import uuid
from typing import Optional, Dict, Any
from datetime import datetime, timezone


class ServiceError(Exception):
    """
    Base exception for all service errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source, operation, etc.)
        original_exception: The original exception that was caught (if any)
        trace_id: Unique identifier for correlating logs with responses
    """

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        code: Optional[str] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)
        self.trace_id = str(uuid.uuid4())
        if code:
            self.code = code

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "trace_id": self.trace_id,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }

    def to_response(self) -> Dict[str, str]:
        """Public error body: code, message and trace id only."""
        return {
            "code": self.code,
            "message": self.message,
            "trace_id": self.trace_id,
        }


# ============================================================================
# Upstream Errors
# ============================================================================

class UpstreamFailure(str, enum.Enum):
    """Why an upstream call failed"""
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    STATUS = "status"
    MALFORMED = "malformed"


class UpstreamError(ServiceError):
    """
    Exception raised when an external source cannot be fetched.

    Context should include:
        - source_name: Logical source being fetched
        - api_url: The endpoint that failed
        - retry_count: Number of attempts made
    """

    code = "UPSTREAM_ERROR"
    status_code = 502

    def __init__(
        self,
        message: str,
        failure: UpstreamFailure = UpstreamFailure.TRANSPORT,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, context, original_exception)
        self.failure = failure
        self.upstream_status = status_code
        self.context["failure"] = failure.value
        if status_code is not None:
            self.context["upstream_status"] = status_code


# ============================================================================
# Storage Errors
# ============================================================================

class StorageError(ServiceError):
    """
    Exception raised when a durable store operation fails.

    Context should include:
        - operation: Type of database operation (INSERT, UPSERT, SELECT)
        - table_name: Name of the table
    """

    code = "DATABASE_ERROR"
    status_code = 500


# ============================================================================
# Cache Errors
# ============================================================================

class CacheError(ServiceError):
    """
    Raised by cache backends. The read-through cache converts it into a miss
    or a skipped write, so it never reaches a caller of the service.
    """

    code = "CACHE_ERROR"
    status_code = 500


# ============================================================================
# Caller Errors
# ============================================================================

class ValidationError(ServiceError):
    """
    Exception raised when caller-supplied input is malformed.

    Context should include:
        - field_name: Name of the offending parameter
        - field_value: Value that failed validation
    """

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(ServiceError):
    """Requested resource does not exist"""

    code = "NOT_FOUND"
    status_code = 404
