from __future__ import annotations

import logging
from queue import SimpleQueue
from threading import Condition, Lock, Thread
from typing import Callable, Optional

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

_STOP = object()


class SimulatedExtensionActivator:
    """In-process model of the extension-management service.

    Typical usage:
    - Tests and demos that need realistic, asynchronous callbacks without a real OS service.

    Behavior:
    - Keeps a registry of installed extensions, keyed by extension identifier.
    - Activating an identifier that is installed in a different version first asks the
      delegate for a replacement decision; anything but REPLACE ends the request with
      REQUEST_CANCELED. Activating the exact installed version finishes right away.
    - If $failure_code is set, every activation fails with that code.
    - If $requires_approval is set, the first activation of an identifier delivers the
      approval notice and waits until `approve()` is called for it.
    - Deactivation removes an installed extension, or fails with EXTENSION_NOT_FOUND.

    Threading:
    - All callbacks run on one daemon delivery thread, in submission order.
    - `wait_until_idle()` blocks until every queued job has been delivered.

    Example:
        activator = SimulatedExtensionActivator()
        coordinator = ActivationCoordinator("com.example.app.Driver", activator)
        coordinator.request_activation()
        activator.wait_until_idle()   # state is NEEDS_APPROVAL
        activator.approve("com.example.app.Driver")
        activator.wait_until_idle()   # state is ACTIVATED
    """

    # region Init

    def __init__(
        self,
        requires_approval: bool = True,
        result: ActivationResult = ActivationResult.COMPLETED,
        failure_code: Optional[int] = None,
        bundle_version: str = "1",
        bundle_short_version: str = "1.0",
    ) -> None:
        """Create the activator and start its delivery thread.

        Args:
            requires_approval (bool): Whether the user has to approve an identifier before its first activation finishes.
            result (ActivationResult): Result reported with every finished activation.
            failure_code (Optional[int]): When set, every activation fails with this code.
            bundle_version (str): Version of the extension that activation installs.
            bundle_short_version (str): Short (marketing) version of the extension that activation installs.
        """
        # Configuration
        self._requires_approval = requires_approval
        self._result = result
        self._failure_code = failure_code
        self._bundle_version = bundle_version
        self._bundle_short_version = bundle_short_version

        # Model of the service
        self._lock = Lock()
        self._installed: dict[str, ExtensionProperties] = {}
        self._approved: set[str] = set()
        self._awaiting_approval: dict[str, list[tuple[ExtensionRequest, ActivationRequestDelegate]]] = {}

        # Delivery
        self._jobs: SimpleQueue = SimpleQueue()
        self._idle = Condition()
        self._pending_job_count = 0
        self._closed = False
        self._thread = Thread(target=self._run_delivery_loop, name=f"{self.__class__.__name__}-delivery", daemon=True)
        self._thread.start()

    # endregion

    # region ExtensionActivator protocol

    def submit_request(self, request: ExtensionRequest, delegate: ActivationRequestDelegate) -> None:
        """Queue $request; its callbacks are delivered later on the delivery thread.

        Raises:
            ActivationSubmitError: If this activator is closed or $request has no extension identifier.
        """
        if not request.extension_identifier:
            raise ActivationSubmitError(ExtensionErrorCode.EXTENSION_MISSING_IDENTIFIER, f"Cannot submit {request} because $extension_identifier is empty")

        if request.kind == RequestKind.ACTIVATE:
            job = lambda: self._process_activation(request, delegate)
        else:
            job = lambda: self._process_deactivation(request, delegate)

        if not self._enqueue(job):
            raise ActivationSubmitError(ExtensionErrorCode.UNKNOWN, f"Cannot submit {request} because {self.__class__.__name__} is closed")
        logger.info(f"Simulated service accepted {request}")

    # endregion

    # region Simulation controls

    def approve(self, extension_identifier: str) -> None:
        """Simulate the user approving $extension_identifier.

        Requests waiting for approval of this identifier are finished (in submission order).
        Later activations of the identifier no longer ask for approval.

        Raises:
            ValueError: If this activator is closed.
        """
        if not self._enqueue(lambda: self._process_approval(extension_identifier)):
            raise ValueError(f"Cannot call `approve` because {self.__class__.__name__} is closed")

    def install_existing(self, properties: ExtensionProperties) -> None:
        """Register $properties as already installed, e.g. an older version from a previous run."""
        with self._lock:
            self._installed[properties.bundle_identifier] = properties
            self._approved.add(properties.bundle_identifier)

    def get_installed(self, extension_identifier: str) -> Optional[ExtensionProperties]:
        """Return the installed extension with $extension_identifier, or None."""
        with self._lock:
            return self._installed.get(extension_identifier)

    def list_awaiting_approval(self) -> list[str]:
        """List identifiers that have at least one request waiting for approval."""
        with self._lock:
            return [identifier for identifier, waiting in self._awaiting_approval.items() if waiting]

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until all queued jobs were delivered.

        Args:
            timeout (Optional[float]): Maximum seconds to wait; None waits forever.

        Returns:
            bool: True when idle, False if $timeout elapsed first.
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._pending_job_count == 0, timeout)

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the delivery thread after the already queued jobs.

        Requirements:
        - Idempotent: Safe to call multiple times.
        """
        with self._idle:
            if self._closed:
                return
            self._closed = True
            self._jobs.put(_STOP)
        self._thread.join(timeout)

    def __enter__(self) -> SimulatedExtensionActivator:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # endregion

    # region Service model (delivery thread only)

    def _process_activation(self, request: ExtensionRequest, delegate: ActivationRequestDelegate) -> None:
        identifier = request.extension_identifier
        replacement = ExtensionProperties(identifier, self._bundle_version, self._bundle_short_version)

        with self._lock:
            existing = self._installed.get(identifier)

        if existing is not None and existing != replacement:
            action = delegate.on_replacement_requested(request, existing, replacement)
            if action != ReplacementAction.REPLACE:
                delegate.on_failed(request, ExtensionActivationError(ExtensionErrorCode.REQUEST_CANCELED, f"Replacement of {existing} was declined"))
                return

        if self._failure_code is not None:
            delegate.on_failed(request, ExtensionActivationError(self._failure_code, f"Simulated failure for extension '{identifier}'"))
            return

        with self._lock:
            needs_approval = self._requires_approval and identifier not in self._approved
            if needs_approval:
                self._awaiting_approval.setdefault(identifier, []).append((request, delegate))

        if needs_approval:
            delegate.on_needs_user_approval(request)
            return

        self._install(replacement)
        delegate.on_finished(request, self._result)

    def _process_approval(self, extension_identifier: str) -> None:
        with self._lock:
            self._approved.add(extension_identifier)
            waiting = self._awaiting_approval.pop(extension_identifier, [])

        if not waiting:
            logger.debug(f"Approved extension '{extension_identifier}' with no request waiting for approval")
            return

        self._install(ExtensionProperties(extension_identifier, self._bundle_version, self._bundle_short_version))
        for request, delegate in waiting:
            delegate.on_finished(request, self._result)

    def _process_deactivation(self, request: ExtensionRequest, delegate: ActivationRequestDelegate) -> None:
        with self._lock:
            removed = self._installed.pop(request.extension_identifier, None)

        if removed is None:
            delegate.on_failed(request, ExtensionActivationError(ExtensionErrorCode.EXTENSION_NOT_FOUND, f"Extension '{request.extension_identifier}' is not installed"))
            return

        logger.info(f"Simulated service removed extension {removed}")
        delegate.on_finished(request, ActivationResult.COMPLETED)

    def _install(self, properties: ExtensionProperties) -> None:
        with self._lock:
            self._installed[properties.bundle_identifier] = properties
        logger.info(f"Simulated service installed extension {properties}")

    # endregion

    # region Delivery thread

    def _enqueue(self, job: Callable[[], None]) -> bool:
        """Queue $job unless closed. Returns False (and queues nothing) when closed."""
        # Under the same lock as `close`, so no job lands behind _STOP
        with self._idle:
            if self._closed:
                return False
            self._pending_job_count += 1
            self._jobs.put(job)
        return True

    def _run_delivery_loop(self) -> None:
        while True:
            job = self._jobs.get()
            if job is _STOP:
                return
            try:
                job()
            except Exception as e:
                logger.error(f"Error while delivering simulated callback in {self.__class__.__name__}: {e}")
            finally:
                with self._idle:
                    self._pending_job_count -= 1
                    self._idle.notify_all()

    # endregion

    # region String representations

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(requires_approval={self._requires_approval}, result={self._result.name}, failure_code={self._failure_code})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(requires_approval={self._requires_approval!r}, result={self._result!r}, failure_code={self._failure_code!r})"

    # endregion
