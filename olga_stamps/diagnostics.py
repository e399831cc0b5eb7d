"""Structured diagnostics channel for fallback and deprecation notices.

Codec functions accept an optional :class:`Diagnostics` instance.  Events
are recorded, forwarded to subscribers and logged; nothing is printed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)

COMPRESSION_SKIPPED = "compression.skipped"
COMPRESSION_FAILED = "compression.failed"
PRECISION_LOSS = "numeric.precision_loss"
NAMED_ASSET_BURN = "asset.named_requires_burn"
SUBASSET_PARENT = "asset.subasset_parent"
DECODE_FALLBACK = "decode.fallback"


@dataclass(frozen=True)
class DiagnosticEvent:
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


Subscriber = Callable[[DiagnosticEvent], None]


class Diagnostics:
    """Collects :class:`DiagnosticEvent` records and fans them out."""

    def __init__(self) -> None:
        self.events: list[DiagnosticEvent] = []
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback* and return a function that removes it."""

        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, code: str, message: str, **details: Any) -> DiagnosticEvent:
        event = DiagnosticEvent(code=code, message=message, details=details)
        self.events.append(event)
        logger.warning("%s: %s", code, message)
        for callback in list(self._subscribers):
            callback(event)
        return event

    def codes(self) -> list[str]:
        return [event.code for event in self.events]


def emit(
    diagnostics: Diagnostics | None, code: str, message: str, **details: Any
) -> None:
    """Emit on *diagnostics* when given, otherwise only log at debug level."""

    if diagnostics is None:
        logger.debug("%s: %s", code, message)
        return
    diagnostics.emit(code, message, **details)
