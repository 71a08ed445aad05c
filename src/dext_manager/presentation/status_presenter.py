from __future__ import annotations

import logging
from typing import Callable, Optional

from dext_manager.activation.activation_coordinator import ActivationStatus
from dext_manager.messaging.message_bus import MessageBus
from dext_manager.messaging.message_priority import SubscriberPriority

logger = logging.getLogger(__name__)


class StatusPresenter:
    """Re-renders the activation status sentence whenever a new ActivationStatus arrives.

    The presenter stands in for a UI: it remembers the sentence currently shown and the
    history of everything it rendered, and hands each sentence to $sink.
    """

    def __init__(self, message_bus: MessageBus, topic: str, sink: Optional[Callable[[str], None]] = None, initial_text: str = ""):
        """Subscribe to $topic on $message_bus.

        Args:
            message_bus: Bus on which `ActivationStatus` messages are published.
            topic: Status topic to follow (wildcard topics are allowed).
            sink: Receives every rendered sentence. Logs at INFO when None.
            initial_text: Sentence shown before the first status arrives.
        """
        self._message_bus = message_bus
        self._topic = topic
        self._sink = sink if sink is not None else self._log_status
        self._current_text = initial_text
        self._rendered: list[str] = []
        self._closed = False

        self._message_bus.subscribe(self._topic, self._on_status, SubscriberPriority.MEDIUM)

    @property
    def current_text(self) -> str:
        return self._current_text

    @property
    def rendered(self) -> list[str]:
        """Sentences rendered so far, oldest first."""
        return list(self._rendered)

    def close(self) -> None:
        """Stop following the status topic. Idempotent."""
        if self._closed:
            return
        self._message_bus.unsubscribe(self._topic, self._on_status)
        self._closed = True

    def _on_status(self, status: ActivationStatus) -> None:
        self._current_text = status.status_text
        self._rendered.append(status.status_text)
        self._sink(status.status_text)

    @staticmethod
    def _log_status(text: str) -> None:
        logger.info(f"Driver status: {text}")
