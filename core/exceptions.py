"""
Custom exceptions for the ingestion pipeline with structured error context.

Every exception carries a message, a context dict and optionally the
exception it wraps, so a failure can be written to the checkpoint and
the logs with enough detail to resume or debug the run.

Exception Hierarchy:
    IngestionError (base)
    ├── DependencyError
    ├── FetchError
    │   ├── NetworkError          (retryable)
    │   ├── RateLimitError        (retryable)
    │   ├── AuthenticationError   (non-retryable)
    │   └── ResourceNotFoundError (non-retryable)
    ├── TransformationError
    ├── LoadError
    │   └── UpsertError
    ├── ValidationError
    ├── CheckpointError
    │   ├── CheckpointPersistError
    │   └── CheckpointCorruptError
    ├── RunLockError
    ├── ConfigurationError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any, Iterable
from datetime import datetime, timezone


class IngestionError(Exception):
    """
    Base exception for all ingestion errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (phase, endpoint, record id, ...)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

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
            base_msg += (
                f" | Caused by: {type(self.original_exception).__name__}: "
                f"{self.original_exception}"
            )

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(IngestionError):
    """
    Mixin for errors that should trigger retry logic.

    Use this for transient errors like:
    - Network timeouts
    - Rate limiting (HTTP 429)
    - Service unavailable (HTTP 5xx)

    Attempt counts and delays come from the client settings.
    """
    pass


class NonRetryableError(IngestionError):
    """
    Mixin for errors that should NOT trigger retry logic.

    Use this for permanent errors like:
    - Authentication failures (HTTP 401, 403)
    - Resource not found (HTTP 404)
    - Malformed upstream records
    """
    pass


# ============================================================================
# Phase Orchestration Errors
# ============================================================================

class DependencyError(NonRetryableError):
    """Raised when a phase is started before its dependencies completed."""

    def __init__(self, phase: str, missing: Iterable[str]):
        self.phase = phase
        self.missing = list(missing)
        super().__init__(
            f"Phase '{phase}' requires completed phases: {', '.join(self.missing)}",
            context={"phase": phase, "missing": self.missing}
        )


class ConfigurationError(NonRetryableError):
    """Required environment or settings are missing."""
    pass


class RunLockError(IngestionError):
    """
    Another import run holds the lock.

    Context should include:
        - lock_path: Path to the lock file
        - owner_pid: PID recorded in the lock file
    """
    pass


# ============================================================================
# Fetch Errors
# ============================================================================

class FetchError(IngestionError):
    """
    Raised when an upstream page cannot be fetched.

    Context should include:
        - endpoint: The API endpoint that failed
        - status_code: HTTP status code (0 for transport failures)
        - retry_count: Number of attempts made
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        status_code: int = 0,
        endpoint: Optional[str] = None
    ):
        super().__init__(message, context, original_exception)
        self.status_code = status_code
        self.endpoint = endpoint
        self.context.setdefault("status_code", status_code)
        if endpoint:
            self.context.setdefault("endpoint", endpoint)


class NetworkError(RetryableError, FetchError):
    """Transport failures and 5xx responses that should be retried."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        status_code: int = 0,
        endpoint: Optional[str] = None
    ):
        FetchError.__init__(
            self, message, context, original_exception,
            status_code=status_code, endpoint=endpoint
        )


class RateLimitError(RetryableError, FetchError):
    """Rate limiting (HTTP 429 or local budget exhausted), retried with backoff."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        retry_after: Optional[float] = None,
        endpoint: Optional[str] = None
    ):
        FetchError.__init__(
            self, message, context, original_exception,
            status_code=429, endpoint=endpoint
        )
        self.retry_after = retry_after  # Seconds to wait before retry
        if retry_after:
            self.context["retry_after"] = retry_after


class AuthenticationError(NonRetryableError, FetchError):
    """Authentication failures (HTTP 401, 403) that should not be retried."""

    def __init__(self, message: str, context=None, original_exception=None,
                 status_code: int = 401, endpoint: Optional[str] = None):
        FetchError.__init__(
            self, message, context, original_exception,
            status_code=status_code, endpoint=endpoint
        )


class ResourceNotFoundError(NonRetryableError, FetchError):
    """Resource not found (HTTP 404) that should not be retried."""

    def __init__(self, message: str, context=None, original_exception=None,
                 endpoint: Optional[str] = None):
        FetchError.__init__(
            self, message, context, original_exception,
            status_code=404, endpoint=endpoint
        )


# ============================================================================
# Transformation / Load Errors
# ============================================================================

class TransformationError(NonRetryableError):
    """
    A raw upstream record could not be mapped to a domain record.

    Context should include:
        - entity: Kind of record (member, committee, bill, roll_call)
        - record_key: Upstream identity of the record, when known
        - field_name: The field that failed, when known
    """
    pass


class LoadError(IngestionError):
    """Base exception for destination store failures."""
    pass


class UpsertError(LoadError):
    """
    Exception raised when a single record upsert fails.

    Context should include:
        - table_name: Destination table
        - record_id: Primary key of the record being upserted
    """
    pass


class ValidationError(IngestionError):
    """
    Post-phase validation failed.

    Raised when a phase finishes with fewer records than its minimum
    threshold or when the validate phase finds error-severity problems.
    ``results`` holds the failing check results, if any.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        results: Optional[list] = None
    ):
        super().__init__(message, context, original_exception)
        self.results = results or []


# ============================================================================
# Checkpoint Errors
# ============================================================================

class CheckpointError(IngestionError):
    """
    Exception raised when checkpoint management fails.

    Context should include:
        - path: Checkpoint file path
        - operation: Operation that failed (read, write, delete)
    """
    pass


class CheckpointPersistError(CheckpointError):
    """The checkpoint could not be written; resuming is impossible, always fatal."""
    pass


class CheckpointCorruptError(CheckpointError):
    """A checkpoint file exists but does not match the checkpoint schema."""
    pass
