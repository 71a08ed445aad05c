import logging
import sys

from dext_manager.platform.activators.extension_activator import ActivationRequestDelegate, ActivationSubmitError, ExtensionErrorCode, ExtensionRequest

logger = logging.getLogger(__name__)


class UnsupportedPlatformActivator:
    """ExtensionActivator for platforms without an extension-management service.

    Every submission is rejected with `ActivationSubmitError`, so a coordinator using it
    ends in ACTIVATION_ERROR instead of waiting for callbacks that never come.
    """

    def __init__(self, platform: str = sys.platform):
        self._platform = platform

    def submit_request(self, request: ExtensionRequest, delegate: ActivationRequestDelegate) -> None:
        logger.warning(f"Rejected {request}: driver extensions cannot be managed on platform '{self._platform}'")
        raise ActivationSubmitError(ExtensionErrorCode.UNKNOWN, f"Driver extensions are not supported on platform '{self._platform}'")

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(platform='{self._platform}')"
