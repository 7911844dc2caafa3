"""
Core utilities and configuration for the space data service.

This package provides foundational components used throughout the service:

Modules:
    config: Application configuration and environment variable management
    database: Database engine, session factory and table creation
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities
    validation: Input validators (source ids, limits, URLs, payloads)

Usage:
    from core.config import settings
    from core.database import create_db_engine, create_session_factory
    from core.exceptions import UpstreamError, StorageError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Build a session factory
    engine = create_db_engine(settings)
    session_factory = create_session_factory(engine)
"""

__all__ = [
    "settings",
    "create_db_engine",
    "create_session_factory",
    "init_models",
    "setup_logging",
    "validate_source_id",
    "validate_limit",
    # Exceptions
    "ServiceError",
    "UpstreamError",
    "UpstreamFailure",
    "StorageError",
    "CacheError",
    "ValidationError",
    "NotFoundError",
]
