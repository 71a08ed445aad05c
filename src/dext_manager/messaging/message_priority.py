from enum import IntEnum


class SubscriberPriority(IntEnum):
    """Priority levels for message subscribers.

    Higher values indicate higher priority (processed first).
    """

    LOW = -1  # Low priority - logging, auditing
    MEDIUM = 0  # Medium priority (default) - presentation layers
    HIGH = 1  # High priority - components that must react before anything is rendered
    SYSTEM_HIGHEST = 2  # System highest - reserved for internal components
