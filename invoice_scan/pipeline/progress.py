"""
Progress Reporting and Cancellation.

The pipeline reports each phase transition on a ProgressChannel, a
plain list of subscriber callbacks. Delivery is best effort: events go
nowhere when nobody listens, and a failing subscriber is logged and
skipped so it can never affect the scan.

Cancellation is cooperative: the pipeline checks a CancellationToken
before every phase and before every recognition retry.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List

from invoice_scan.utils.exceptions import ScanCancelledError
from invoice_scan.utils.logger import get_logger

logger = get_logger(__name__)


class OCRPhase(Enum):
    INITIALIZING = "initializing"
    IMAGE_PREPROCESSING = "image_preprocessing"
    TEXT_RECOGNITION = "text_recognition"
    FIELD_EXTRACTION = "field_extraction"
    VALIDATION = "validation"
    POST_PROCESSING = "post_processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class ProgressEvent:
    """
    One phase transition of a scan.

    Attributes:
        scan_id: Scan the event belongs to.
        phase: Phase being entered.
        operation: Human-readable description.
        percentage: Progress 0-100.
        elapsed_ms: Time since the scan started.
        estimated_remaining_ms: elapsed * (100 - pct) / pct, 0 when pct is 0.
    """
    scan_id: str
    phase: OCRPhase
    operation: str
    percentage: float
    elapsed_ms: int
    estimated_remaining_ms: int

    @classmethod
    def create(
        cls,
        scan_id: str,
        phase: OCRPhase,
        operation: str,
        percentage: float,
        elapsed_ms: int,
    ) -> 'ProgressEvent':
        remaining = int(elapsed_ms * (100 - percentage) / percentage) if percentage > 0 else 0
        return cls(scan_id, phase, operation, percentage, elapsed_ms, remaining)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scan_id': self.scan_id,
            'phase': self.phase.value,
            'operation': self.operation,
            'percentage': self.percentage,
            'elapsed_ms': self.elapsed_ms,
            'estimated_remaining_ms': self.estimated_remaining_ms,
        }


ProgressCallback = Callable[[ProgressEvent], None]


class ProgressChannel:
    """
    Broadcasts ProgressEvents to any number of subscribers.

    Example:
        >>> channel = ProgressChannel()
        >>> unsubscribe = channel.subscribe(lambda e: print(e.phase, e.percentage))
        >>> unsubscribe()
    """

    def __init__(self) -> None:
        self._subscribers: List[ProgressCallback] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register a callback; returns a function that removes it again."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: ProgressEvent) -> None:
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Progress subscriber failed on {event.phase.value}: {e}")


class CancellationToken:
    """Thread-safe cancellation flag shared between a caller and a scan."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, phase: str) -> None:
        """
        Raises:
            ScanCancelledError: If cancel() has been called.
        """
        if self._event.is_set():
            raise ScanCancelledError(phase)
