"""ExtensionActivator backed by the macOS system extension service.

Requires macOS and the PyObjC SystemExtensions and libdispatch bindings
(install the `macos` extra). Import this module only on macOS;
`create_extension_activator` does that for you.
"""

from __future__ import annotations

import logging
from threading import Lock

import dispatch
import objc
import SystemExtensions
from Foundation import NSObject

from dext_manager.platform.activators.extension_activator import (
    ActivationRequestDelegate,
    ActivationResult,
    ActivationSubmitError,
    ExtensionActivationError,
    ExtensionErrorCode,
    ExtensionProperties,
    ExtensionRequest,
    ReplacementAction,
    RequestKind,
)

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_LABEL = "dext_manager.activation"


def _to_properties(os_properties) -> ExtensionProperties:
    return ExtensionProperties(
        bundle_identifier=str(os_properties.bundleIdentifier()),
        bundle_version=str(os_properties.bundleVersion()),
        bundle_short_version=str(os_properties.bundleShortVersion()),
    )


def _to_result(raw_result: int) -> ActivationResult:
    if raw_result == SystemExtensions.OSSystemExtensionRequestWillCompleteAfterReboot:
        return ActivationResult.WILL_COMPLETE_AFTER_REBOOT
    if raw_result != SystemExtensions.OSSystemExtensionRequestCompleted:
        logger.warning(f"Unrecognized request result {raw_result}; treating it as COMPLETED")
    return ActivationResult.COMPLETED


class _RequestDelegateBridge(NSObject, protocols=[objc.protocolNamed("OSSystemExtensionRequestDelegate")]):
    """Receives platform callbacks for one request and forwards them as package types."""

    @objc.python_method
    def bind(self, request: ExtensionRequest, delegate: ActivationRequestDelegate, owner: SystemExtensionActivator) -> _RequestDelegateBridge:
        self._request = request
        self._delegate = delegate
        self._owner = owner
        return self

    def request_actionForReplacingExtension_withExtension_(self, os_request, existing, ext):
        action = self._delegate.on_replacement_requested(self._request, _to_properties(existing), _to_properties(ext))
        if action == ReplacementAction.REPLACE:
            return SystemExtensions.OSSystemExtensionReplacementActionReplace
        return SystemExtensions.OSSystemExtensionReplacementActionCancel

    def requestNeedsUserApproval_(self, os_request):
        self._delegate.on_needs_user_approval(self._request)

    def request_didFinishWithResult_(self, os_request, result):
        try:
            self._delegate.on_finished(self._request, _to_result(result))
        finally:
            self._owner._release(self._request)

    def request_didFailWithError_(self, os_request, error):
        try:
            self._delegate.on_failed(self._request, ExtensionActivationError(error.code(), str(error.localizedDescription())))
        finally:
            self._owner._release(self._request)


class SystemExtensionActivator:
    """Submits requests to `OSSystemExtensionManager` and bridges its delegate callbacks.

    Callbacks are delivered on one serial dispatch queue owned by this activator. The
    platform only keeps a weak reference to a request's delegate, so the bridge objects
    are kept here until their request finishes or fails.
    """

    def __init__(self, queue_label: str = DEFAULT_QUEUE_LABEL):
        self._queue = dispatch.dispatch_queue_create(queue_label.encode("utf-8"), None)
        self._lock = Lock()
        self._bridges_by_request_id: dict[int, _RequestDelegateBridge] = {}

    def submit_request(self, request: ExtensionRequest, delegate: ActivationRequestDelegate) -> None:
        if request.kind == RequestKind.ACTIVATE:
            os_request = SystemExtensions.OSSystemExtensionRequest.activationRequestForExtension_queue_(request.extension_identifier, self._queue)
        else:
            os_request = SystemExtensions.OSSystemExtensionRequest.deactivationRequestForExtension_queue_(request.extension_identifier, self._queue)

        if os_request is None:
            raise ActivationSubmitError(ExtensionErrorCode.UNKNOWN, f"Cannot submit {request} because the system refused to create the request")

        bridge = _RequestDelegateBridge.alloc().init().bind(request, delegate, self)
        with self._lock:
            self._bridges_by_request_id[request.request_id] = bridge
        os_request.setDelegate_(bridge)

        SystemExtensions.OSSystemExtensionManager.sharedManager().submitRequest_(os_request)
        logger.info(f"Submitted {request} to OSSystemExtensionManager")

    def _release(self, request: ExtensionRequest) -> None:
        with self._lock:
            self._bridges_by_request_id.pop(request.request_id, None)
