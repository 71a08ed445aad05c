from dext_manager.platform.activators.activator_factory import ActivatorKind, create_extension_activator
from dext_manager.platform.activators.extension_activator import (
    ActivationRequestDelegate,
    ActivationResult,
    ActivationSubmitError,
    ExtensionActivationError,
    ExtensionActivator,
    ExtensionErrorCode,
    ExtensionProperties,
    ExtensionRequest,
    ReplacementAction,
    RequestKind,
)
from dext_manager.platform.activators.simulated_activator import SimulatedExtensionActivator
from dext_manager.platform.activators.unsupported_activator import UnsupportedPlatformActivator

__all__ = [
    "ActivatorKind",
    "create_extension_activator",
    "ActivationRequestDelegate",
    "ActivationResult",
    "ActivationSubmitError",
    "ExtensionActivationError",
    "ExtensionActivator",
    "ExtensionErrorCode",
    "ExtensionProperties",
    "ExtensionRequest",
    "ReplacementAction",
    "RequestKind",
    "SimulatedExtensionActivator",
    "UnsupportedPlatformActivator",
]
