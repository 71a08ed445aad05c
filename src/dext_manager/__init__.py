__version__ = "0.1.0"

from dext_manager.activation.activation_coordinator import ActivationCoordinator, ActivationStatus
from dext_manager.activation.activation_state_machine import ActivationEvent, ActivationState, transition
from dext_manager.messaging.message_bus import MessageBus

__all__ = ["ActivationCoordinator", "ActivationStatus", "ActivationEvent", "ActivationState", "transition", "MessageBus"]
