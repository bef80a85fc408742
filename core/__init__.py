"""
Core utilities and configuration for the civic-data ingestion system.

This package provides foundational components used throughout the import pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Async engine and session management
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import get_db_session
    from core.exceptions import FetchError, DependencyError
    from core.logging import setup_logging

Example:
    setup_logging()

    async with get_db_session() as session:
        # Perform database operations
        pass
"""

__all__ = [
    "settings",
    "get_db_session",
    "setup_logging",
    # Exceptions
    "IngestionError",
    "DependencyError",
    "ConfigurationError",
    "RunLockError",
    "FetchError",
    "NetworkError",
    "RateLimitError",
    "AuthenticationError",
    "ResourceNotFoundError",
    "TransformationError",
    "LoadError",
    "UpsertError",
    "ValidationError",
    "CheckpointError",
    "CheckpointPersistError",
    "CheckpointCorruptError",
    "RetryableError",
    "NonRetryableError",
]
