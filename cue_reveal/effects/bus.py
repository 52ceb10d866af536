"""In-process publish/subscribe bus for fired cues.

WHY: The reveal engine must not know who draws an effect. Renderers,
audio players, analytics and tests all want to hear about fired cues,
and a slow or broken listener must never stall the reveal.

HOW: EffectBus keeps a list of handler callables. publish() delivers
each CueFiredEvent to a snapshot of that list, in subscription order.
A handler that raises is logged with its traceback and skipped.

RULES:
- Fire-and-forget: publish() never raises because of a handler
- subscribe() returns a zero-argument callable that unsubscribes
- Subscribing the same handler twice delivers twice
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List

from cue_reveal.core.ir import CueFiredEvent

logger = logging.getLogger(__name__)

EffectHandler = Callable[[CueFiredEvent], None]


class EffectBus:
    def __init__(self) -> None:
        self._handlers: List[EffectHandler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: EffectHandler) -> Callable[[], bool]:
        with self._lock:
            self._handlers.append(handler)
        return lambda: self.unsubscribe(handler)

    def unsubscribe(self, handler: EffectHandler) -> bool:
        """Remove one registration of ``handler``; False if it was not subscribed."""
        with self._lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                return False
        return True

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def publish(self, event: CueFiredEvent) -> int:
        """Deliver ``event`` to every handler.

        Returns:
            Number of handlers that completed without raising.
        """
        with self._lock:
            handlers = list(self._handlers)
        delivered = 0
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Effect handler failed for cue %s", event.cue.label)
                continue
            delivered += 1
        return delivered
