"""Error types and persistence health tracking.

Failures inside the engine never reach the UI:
- Malformed catalog entries are tolerated during loading
- Storage failures degrade the engine to in-memory state
- Unknown suggestion types are ignored
"""

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from loguru import logger


class ToolfinderError(Exception):
    """Base class for toolfinder errors."""


class CatalogError(ToolfinderError):
    """Catalog file missing or unreadable."""


class StorageError(ToolfinderError):
    """The key-value storage layer failed."""

    def __init__(self, operation: str, key: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.key = key
        self.cause = cause
        message = f"storage {operation} failed for key {key!r}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ServiceState(Enum):
    """Persistence health states."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"


@dataclass
class ErrorEvent:
    """Represents an error event."""
    timestamp: datetime
    service: str
    error_type: str
    message: str
    traceback: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)


class PersistenceHealth:
    """
    Tracks the health of a storage-backed service.

    The first failure flips the service to DEGRADED for the rest of the
    session; callers check `is_available` before touching storage again.
    """

    def __init__(self, name: str):
        self.name = name
        self.state = ServiceState.HEALTHY
        self.error_count = 0
        self.success_count = 0
        self.last_error: Optional[ErrorEvent] = None

    @property
    def is_available(self) -> bool:
        return self.state == ServiceState.HEALTHY

    def record_success(self) -> None:
        self.success_count += 1

    def record_failure(self, error: BaseException, **context: Any) -> None:
        """Record a storage failure and degrade to in-memory mode."""
        self.error_count += 1
        self.last_error = ErrorEvent(
            timestamp=datetime.now(timezone.utc),
            service=self.name,
            error_type=type(error).__name__,
            message=str(error),
            traceback=''.join(traceback.format_exception(type(error), error, error.__traceback__)),
            context=context
        )

        if self.state == ServiceState.HEALTHY:
            logger.warning(
                f"{self.name}: persistence unavailable ({self.last_error.error_type}: {error}), "
                f"continuing in memory only"
            )
        self.state = ServiceState.DEGRADED
