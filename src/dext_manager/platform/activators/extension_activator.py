from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Protocol, runtime_checkable

from dext_manager.utils.id_generator import get_next_id


# region Value types


class RequestKind(Enum):
    """Kind of request submitted to the extension-management service."""

    ACTIVATE = "ACTIVATE"
    DEACTIVATE = "DEACTIVATE"


class ReplacementAction(IntEnum):
    """Answer to the service when a request would replace an installed extension.

    Values match the platform's raw values.
    """

    CANCEL = 0
    REPLACE = 1


class ActivationResult(IntEnum):
    """Result delivered with a finished request.

    Values match the platform's raw values.
    """

    COMPLETED = 0
    WILL_COMPLETE_AFTER_REBOOT = 1


class ExtensionErrorCode(IntEnum):
    """Error codes reported by the extension-management service."""

    UNKNOWN = 1
    MISSING_ENTITLEMENT = 2
    UNSUPPORTED_PARENT_BUNDLE_LOCATION = 3
    EXTENSION_NOT_FOUND = 4
    EXTENSION_MISSING_IDENTIFIER = 5
    DUPLICATE_EXTENSION_IDENTIFIER = 6
    UNKNOWN_EXTENSION_CATEGORY = 7
    CODE_SIGNATURE_INVALID = 8
    VALIDATION_FAILED = 9
    FORBIDDEN_BY_SYSTEM_POLICY = 10
    REQUEST_CANCELED = 11
    REQUEST_SUPERSEDED = 12
    AUTHORIZATION_REQUIRED = 13


@dataclass(frozen=True)
class ExtensionRequest:
    """One request submitted to the extension-management service.

    Attributes:
        request_id: Process-unique identifier used for logging and bookkeeping.
        kind: Whether the extension is activated or deactivated.
        extension_identifier: Identifier of the driver extension.
    """

    request_id: int
    kind: RequestKind
    extension_identifier: str

    @classmethod
    def activation(cls, extension_identifier: str) -> ExtensionRequest:
        return cls(get_next_id(), RequestKind.ACTIVATE, extension_identifier)

    @classmethod
    def deactivation(cls, extension_identifier: str) -> ExtensionRequest:
        return cls(get_next_id(), RequestKind.DEACTIVATE, extension_identifier)

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.request_id}, kind={self.kind.name}, extension_identifier='{self.extension_identifier}')"


@dataclass(frozen=True)
class ExtensionProperties:
    """Describes an installed extension or the one about to replace it."""

    bundle_identifier: str
    bundle_version: str
    bundle_short_version: str

    def __str__(self) -> str:
        return f"{self.bundle_identifier} {self.bundle_short_version} ({self.bundle_version})"


# endregion

# region Errors


class ExtensionActivationError(Exception):
    """Failure reported by (or while talking to) the extension-management service.

    Attributes:
        code: Raw numeric error code. Codes known to this package are listed in `ExtensionErrorCode`.
    """

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = int(code)

    @property
    def known_code(self) -> Optional[ExtensionErrorCode]:
        """Return the code as `ExtensionErrorCode`, or None when the code is not known."""
        if self.code in {member.value for member in ExtensionErrorCode}:
            return ExtensionErrorCode(self.code)
        return None

    def __str__(self) -> str:
        known_code = self.known_code
        code_name = known_code.name if known_code is not None else "UNRECOGNIZED"
        return f"[{self.code} {code_name}] {self.args[0]}"


class ActivationSubmitError(ExtensionActivationError):
    """The request could not be submitted to the extension-management service."""

    pass


# endregion

# region Protocols


@runtime_checkable
class ActivationRequestDelegate(Protocol):
    """Receiver of the callbacks that belong to one submitted request.

    Activators invoke these methods one at a time, in the order the service reports them,
    on a single delivery thread owned by the activator.
    """

    def on_replacement_requested(self, request: ExtensionRequest, existing: ExtensionProperties, replacement: ExtensionProperties) -> ReplacementAction:
        """Decide whether $replacement may replace the installed $existing extension.

        Returns:
            ReplacementAction: Exactly one decision for the service.
        """
        ...

    def on_needs_user_approval(self, request: ExtensionRequest) -> None:
        """The user has to approve the extension before the request can continue."""
        ...

    def on_finished(self, request: ExtensionRequest, result: ActivationResult) -> None:
        """The request completed with $result."""
        ...

    def on_failed(self, request: ExtensionRequest, error: ExtensionActivationError) -> None:
        """The request failed with $error."""
        ...


@runtime_checkable
class ExtensionActivator(Protocol):
    """Capability to submit requests to an extension-management service.

    Implementations exist for the real platform service (macOS only), for an in-process
    simulation, and for platforms where activation is not supported at all.
    """

    def submit_request(self, request: ExtensionRequest, delegate: ActivationRequestDelegate) -> None:
        """Submit $request and report its progress to $delegate.

        Returns immediately; callbacks arrive later on the activator's delivery thread.

        Args:
            request (ExtensionRequest): The request to submit.
            delegate (ActivationRequestDelegate): Receiver of the request's callbacks.

        Raises:
            ActivationSubmitError: If the request cannot be submitted.
        """
        ...


# endregion
