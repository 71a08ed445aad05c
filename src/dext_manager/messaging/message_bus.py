from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple
import re
from threading import Lock

from dext_manager.messaging.message_priority import SubscriberPriority
from dext_manager.messaging.topic_factory import TopicFactory


class MessageBus:
    """Topic based publish/subscribe with ordered, synchronous delivery.

    This implementation provides:
    - Direct topic subscriptions
    - Wildcard topic subscriptions (using * as wildcard)
    - Priority-based callback ordering (ties keep subscription order)
    - Synchronous invocation on the publishing thread

    The subscriber registry is guarded by a lock, so activators may publish from their
    delivery thread while other threads subscribe. Callbacks are invoked outside the lock,
    which lets a callback subscribe or unsubscribe without deadlocking.
    """

    def __init__(self):
        # Callbacks with their priorities for each topic
        self._callbacks: Dict[str, List[Tuple[Callable, SubscriberPriority]]] = {}
        # Compiled regex patterns for wildcard topics
        self._wildcard_patterns: Dict[str, Pattern] = {}
        self._lock = Lock()

    def publish(self, topic: str, data: Any, min_subscribers: int = 0, max_subscribers: Optional[int] = None):
        """
        Publish data to a specific topic with subscriber validation.

        This will invoke all callbacks registered for:
        - The exact topic
        - Any wildcard topic that matches

        Args:
            topic (str): The topic to publish to
            data (Any): The data to publish
            min_subscribers (int): Minimum required subscribers (default: 0)
            max_subscribers (Optional[int]): Maximum allowed subscribers (default: unlimited)

        Raises:
            ValueError: If the topic has an invalid structure or subscriber count is outside the specified range
        """
        TopicFactory.validate_topic(topic)

        with self._lock:
            callbacks_to_invoke = list(self._callbacks.get(topic, []))
            for pattern_topic, pattern in self._wildcard_patterns.items():
                if pattern_topic != topic and pattern.match(topic):
                    callbacks_to_invoke.extend(self._callbacks.get(pattern_topic, []))

        subscriber_count = len(callbacks_to_invoke)
        if subscriber_count < min_subscribers:
            raise ValueError(f"Topic '{topic}' has {subscriber_count} subscribers, but minimum {min_subscribers} required")
        if max_subscribers is not None and subscriber_count > max_subscribers:
            raise ValueError(f"Topic '{topic}' has {subscriber_count} subscribers, but maximum {max_subscribers} allowed")

        # Stable sort: equal priorities keep subscription order
        callbacks_to_invoke.sort(key=lambda x: x[1], reverse=True)
        for callback, _ in callbacks_to_invoke:
            callback(data)

    def subscribe(self, topic: str, callback: Callable, priority: SubscriberPriority = SubscriberPriority.MEDIUM):
        """
        Subscribe a callback to a specific topic with priority.

        Args:
            topic (str): The topic to subscribe to
            callback (Callable): The callback function to invoke when the topic is published
            priority (SubscriberPriority): The priority level for this subscription (default: MEDIUM)

        Raises:
            ValueError: If the topic has an invalid structure
        """
        TopicFactory.validate_topic(topic)

        with self._lock:
            callbacks = self._callbacks.setdefault(topic, [])
            callbacks.append((callback, priority))
            callbacks.sort(key=lambda x: x[1], reverse=True)

            if TopicFactory.WILDCARD_CHAR in topic and topic not in self._wildcard_patterns:
                pattern_str = ".*".join(re.escape(chunk) for chunk in topic.split(TopicFactory.WILDCARD_CHAR))
                self._wildcard_patterns[topic] = re.compile(f"^{pattern_str}$")

    def unsubscribe(self, topic: str, callback: Callable):
        """
        Unsubscribe a callback from a specific topic.

        Args:
            topic (str): The topic to unsubscribe from
            callback (Callable): The callback function to unsubscribe

        Raises:
            ValueError: If the topic has an invalid structure
        """
        TopicFactory.validate_topic(topic)

        with self._lock:
            if topic not in self._callbacks:
                return

            self._callbacks[topic] = [(cb, prio) for cb, prio in self._callbacks[topic] if cb != callback]

            if not self._callbacks[topic]:
                del self._callbacks[topic]
                self._wildcard_patterns.pop(topic, None)

    def list_listeners(self, topic: str) -> List[Callable]:
        """
        List callbacks registered for exactly this topic, highest priority first.

        Args:
            topic (str): The topic to get callbacks for

        Returns:
            List[Callable]: A list of callback functions

        Raises:
            ValueError: If the topic has an invalid structure
        """
        TopicFactory.validate_topic(topic)

        with self._lock:
            return [callback for callback, _ in self._callbacks.get(topic, [])]
