"""Journey events.

Controllers publish when a form is submitted or a session is saved for later.
Each event is logged, kept in a bounded buffer and passed to any subscribed
listeners; a failing listener is logged and does not affect the journey.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, List

logger = logging.getLogger(__name__)

FORM_SUBMITTED = "form.submitted"
SESSION_SAVED_AND_EXITED = "session.saved_and_exited"

BUFFER_SIZE = 500

Listener = Callable[[str, Dict[str, Any]], None]

EVENT_BUFFER: Deque[Dict[str, Any]] = deque(maxlen=BUFFER_SIZE)
_LISTENERS: List[Listener] = []


def subscribe(listener: Listener) -> Callable[[], None]:
    """Register ``listener``; the returned callable removes it again."""
    _LISTENERS.append(listener)

    def unsubscribe() -> None:
        if listener in _LISTENERS:
            _LISTENERS.remove(listener)

    return unsubscribe


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    logger.info("journey_event type=%s form=%s", event_type, payload.get("form"))
    EVENT_BUFFER.append({"type": event_type, "payload": dict(payload)})
    for listener in list(_LISTENERS):
        try:
            listener(event_type, payload)
        except Exception:
            logger.error("journey_event_listener_failed type=%s", event_type, exc_info=True)


def get_buffered_events(clear: bool = True) -> List[Dict[str, Any]]:
    events = list(EVENT_BUFFER)
    if clear:
        EVENT_BUFFER.clear()
    return events


__all__ = [
    "EVENT_BUFFER",
    "FORM_SUBMITTED",
    "Listener",
    "SESSION_SAVED_AND_EXITED",
    "get_buffered_events",
    "publish",
    "subscribe",
]
