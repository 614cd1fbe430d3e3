"""Error taxonomy and central error bookkeeping."""

import functools
import traceback
from datetime import datetime
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

from ..logging_config import get_logger

logger = get_logger("error_handler")


class OverlayPipelineError(Exception):
    """Base class for pipeline errors."""


class CapabilityMissing(OverlayPipelineError):
    """No rendering surface or no media capture capability."""


class AcquisitionFailure(OverlayPipelineError):
    """The camera could not be opened or never became ready."""


class NotReady(OverlayPipelineError):
    """The video source reports zero dimensions."""


class TransientReadFailure(OverlayPipelineError):
    """A single frame could not be read."""


class AssetLoadFailure(OverlayPipelineError):
    """The overlay asset failed to load."""


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ComponentStatus(Enum):
    """Component status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    FAILED = "failed"
    UNKNOWN = "unknown"


@dataclass
class ErrorRecord:
    """Record of an error occurrence."""
    component_name: str
    error: Exception
    severity: ErrorSeverity
    timestamp: datetime = field(default_factory=datetime.now)
    traceback_str: str = ""


class ErrorHandler:
    """Records errors per component and tracks component health.

    Handling is synchronous: the sampling loop is single threaded and the
    handler never spawns a worker of its own.
    """

    def __init__(self, max_error_history: int = 500):
        self.max_error_history = max_error_history
        self.error_records: List[ErrorRecord] = []
        self.component_error_counts: Dict[str, int] = {}
        self.component_status: Dict[str, ComponentStatus] = {}
        self.last_fatal_error: Optional[ErrorRecord] = None

    def register_component(self, component_name: str) -> None:
        """Register a component for health tracking."""
        self.component_error_counts.setdefault(component_name, 0)
        self.component_status.setdefault(component_name, ComponentStatus.HEALTHY)
        logger.debug(f"Component registered: {component_name}")

    def handle_error(self, component_name: str, error: Exception, severity: ErrorSeverity) -> ErrorRecord:
        """Record an error from a component and update its status."""
        record = ErrorRecord(
            component_name=component_name,
            error=error,
            severity=severity,
            traceback_str=traceback.format_exc()
        )

        self.error_records.append(record)
        if len(self.error_records) > self.max_error_history:
            self.error_records = self.error_records[-self.max_error_history:]

        self.component_error_counts[component_name] = self.component_error_counts.get(component_name, 0) + 1

        if severity == ErrorSeverity.CRITICAL:
            self.component_status[component_name] = ComponentStatus.FAILED
            self.last_fatal_error = record
        elif severity == ErrorSeverity.HIGH:
            self.component_status[component_name] = ComponentStatus.DEGRADED
        else:
            self.component_status.setdefault(component_name, ComponentStatus.HEALTHY)

        if severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL):
            logger.error(f"Error in {component_name}: {error} (Severity: {severity.value})")
        else:
            logger.warning(f"Error in {component_name}: {error} (Severity: {severity.value})")

        return record

    def mark_healthy(self, component_name: str) -> None:
        """Mark a component healthy again after a successful operation."""
        if self.component_status.get(component_name) == ComponentStatus.DEGRADED:
            logger.info(f"Component recovered: {component_name}")
        if self.component_status.get(component_name) != ComponentStatus.FAILED:
            self.component_status[component_name] = ComponentStatus.HEALTHY

    def reset_error_counts(self, component_name: Optional[str] = None) -> None:
        """Reset error counts for a component or all components."""
        components = [component_name] if component_name else list(self.component_error_counts)
        for component in components:
            if component in self.component_error_counts:
                self.component_error_counts[component] = 0
                self.component_status[component] = ComponentStatus.HEALTHY

    def get_error_stats(self) -> Dict[str, Any]:
        return {
            "total_errors": len(self.error_records),
            "component_error_counts": dict(self.component_error_counts),
            "component_status": {name: status.value for name, status in self.component_status.items()},
            "last_fatal_error": str(self.last_fatal_error.error) if self.last_fatal_error else None
        }


# Create global error handler instance
global_error_handler = ErrorHandler()


def with_error_handling(component_name: str, severity: ErrorSeverity = ErrorSeverity.MEDIUM,
                        handled=(Exception,), default: Any = None):
    """Decorator that records and swallows non-critical errors.

    Only exceptions listed in ``handled`` are caught. Critical errors are
    recorded and re-raised.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except handled as e:
                global_error_handler.handle_error(component_name, e, severity)
                if severity == ErrorSeverity.CRITICAL:
                    raise
                return default
        return wrapper
    return decorator
