from dext_manager.messaging.message_bus import MessageBus
from dext_manager.messaging.message_priority import SubscriberPriority
from dext_manager.messaging.topic_factory import TopicFactory

__all__ = ["MessageBus", "SubscriberPriority", "TopicFactory"]
