"""
Best-effort event emission.

Events (badge earned, streak milestone) are fire-and-forget: a failing
notifier is logged and never interrupts the caller.
"""

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)

BADGE_EARNED = "badge_earned"
STREAK_MILESTONE = "streak_milestone"


class Notifier(Protocol):
    def emit(self, event_type: str, payload: dict[str, Any]) -> None:
        ...


class NullNotifier:
    """Notifier that drops every event."""

    def emit(self, event_type: str, payload: dict[str, Any]) -> None:
        logger.debug("Dropping %s event: %s", event_type, payload)


def emit_best_effort(notifier: Notifier | None, event_type: str, payload: dict[str, Any]) -> bool:
    """
    Emit an event, swallowing any failure.

    Returns:
        True if the notifier accepted the event, False otherwise
    """
    if notifier is None:
        return False
    try:
        notifier.emit(event_type, payload)
    except Exception as e:  # notifier failures must never reach the caller
        logger.warning("Failed to emit %s event: %s", event_type, e)
        return False
    return True
