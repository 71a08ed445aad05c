import logging
import sys
from enum import Enum

from dext_manager.platform.activators.extension_activator import ExtensionActivator
from dext_manager.platform.activators.simulated_activator import SimulatedExtensionActivator
from dext_manager.platform.activators.unsupported_activator import UnsupportedPlatformActivator

logger = logging.getLogger(__name__)

SYSTEM_EXTENSION_PLATFORM = "darwin"


class ActivatorKind(Enum):
    """Which ExtensionActivator implementation to use.

    AUTO selects SYSTEM on macOS and UNSUPPORTED everywhere else.
    """

    AUTO = "auto"
    SYSTEM = "system"
    SIMULATED = "simulated"
    UNSUPPORTED = "unsupported"


def resolve_activator_kind(kind: ActivatorKind, platform: str = sys.platform) -> ActivatorKind:
    """Replace AUTO by the concrete kind for $platform; other kinds are returned unchanged."""
    if kind != ActivatorKind.AUTO:
        return kind
    return ActivatorKind.SYSTEM if platform == SYSTEM_EXTENSION_PLATFORM else ActivatorKind.UNSUPPORTED


def create_extension_activator(kind: ActivatorKind = ActivatorKind.AUTO, platform: str = sys.platform) -> ExtensionActivator:
    """Create the ExtensionActivator for $kind.

    Args:
        kind (ActivatorKind): Requested implementation.
        platform (str): Platform name used to resolve AUTO (defaults to `sys.platform`).

    Returns:
        ExtensionActivator: A ready-to-use activator.

    Raises:
        ValueError: If SYSTEM is requested on a platform other than macOS.
    """
    resolved = resolve_activator_kind(kind, platform)

    if resolved == ActivatorKind.SYSTEM:
        if platform != SYSTEM_EXTENSION_PLATFORM:
            raise ValueError(f"Cannot create SYSTEM activator because $platform ('{platform}') is not '{SYSTEM_EXTENSION_PLATFORM}'. Use SIMULATED or UNSUPPORTED instead.")
        # Imported here: the PyObjC bindings exist only on macOS
        from dext_manager.platform.activators.system_activator import SystemExtensionActivator

        activator = SystemExtensionActivator()
    elif resolved == ActivatorKind.SIMULATED:
        activator = SimulatedExtensionActivator()
    else:
        activator = UnsupportedPlatformActivator(platform)

    logger.debug(f"Created extension activator (class {activator.__class__.__name__}) for $kind {kind.name} on platform '{platform}'")
    return activator
