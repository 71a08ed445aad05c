from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Optional

from bidict import bidict

from dext_manager.activation.activation_state_machine import ActivationEvent, ActivationState, create_activation_state_machine
from dext_manager.activation.status_text import DEFAULT_DRIVER_NAME, create_status_texts
from dext_manager.messaging.message_bus import MessageBus
from dext_manager.messaging.topic_factory import TopicFactory
from dext_manager.platform.activators.extension_activator import (
    ActivationResult,
    ExtensionActivationError,
    ExtensionActivator,
    ExtensionErrorCode,
    ExtensionProperties,
    ExtensionRequest,
    ReplacementAction,
    RequestKind,
)
from dext_manager.utils.state_machine import StateMachine

logger = logging.getLogger(__name__)

# Hints logged next to service errors that usually come from project setup
ERROR_HINTS: dict[ExtensionErrorCode, str] = {
    ExtensionErrorCode.EXTENSION_NOT_FOUND: "The extension identifier must match the identifier of the driver embedded in the host application.",
    ExtensionErrorCode.CODE_SIGNATURE_INVALID: "The driver is not signed correctly. During development, sign it to run locally.",
}


@dataclass(frozen=True)
class ActivationStatus:
    """Published after every event applied by an ActivationCoordinator.

    Attributes:
        extension_identifier: Identifier of the driver extension.
        event: The event that was applied.
        previous_state: State before the event.
        state: State after the event.
        status_text: Sentence for $state, ready to be rendered.
    """

    extension_identifier: str
    event: ActivationEvent
    previous_state: ActivationState
    state: ActivationState
    status_text: str


class ActivationCoordinator:
    """Drives activation of one driver extension and reports its progress.

    The coordinator owns the activation StateMachine. It submits requests to an
    ExtensionActivator, acts as the delegate for their callbacks, turns each callback
    into exactly one ActivationEvent, and publishes an `ActivationStatus` on
    `status_topic` after every applied event.

    Failures never propagate out of the coordinator. Whatever goes wrong (the request
    cannot be submitted, the service reports an error, an event arrives that makes no
    sense after success) ends in ACTIVATION_ERROR, and the details go to the log. Errors
    raised by status subscribers are logged too.

    Callbacks of deactivation requests are only logged; deactivation has no states.
    """

    # region Init

    def __init__(
        self,
        extension_identifier: str,
        activator: ExtensionActivator,
        message_bus: Optional[MessageBus] = None,
        driver_name: str = DEFAULT_DRIVER_NAME,
    ):
        """Create a coordinator in UNLOADED state.

        Args:
            extension_identifier: Identifier of the driver extension, fixed for the lifetime of this coordinator.
            activator: Service used to submit requests.
            message_bus: Bus on which status changes are published. A private bus is created when None.
            driver_name: Driver name used in the status sentences.

        Raises:
            ValueError: If $extension_identifier is empty.
        """
        if not extension_identifier:
            raise ValueError(f"$extension_identifier cannot be empty, but provided value is: '{extension_identifier}'")

        # Configuration
        self._extension_identifier = extension_identifier
        self._activator = activator
        self._message_bus = message_bus if message_bus is not None else MessageBus()
        self._status_texts: bidict[ActivationState, str] = create_status_texts(driver_name)
        self._status_topic = TopicFactory.create_topic_for_activation_status(extension_identifier)

        # Current state
        self._state_machine: StateMachine[ActivationState, ActivationEvent] = create_activation_state_machine()
        # Serializes "apply event + publish"; re-entrant so subscribers may read `status_text`
        self._apply_lock = RLock()

    # endregion

    # region State

    @property
    def extension_identifier(self) -> str:
        return self._extension_identifier

    @property
    def state(self) -> ActivationState:
        """Get the current activation state."""
        return self._state_machine.current_state

    @property
    def status_text(self) -> str:
        """Get the sentence describing the current state."""
        return self._status_texts[self.state]

    @property
    def status_topic(self) -> str:
        """Get the MessageBus topic on which `ActivationStatus` messages are published."""
        return self._status_topic

    @property
    def message_bus(self) -> MessageBus:
        return self._message_bus

    # endregion

    # region Requests

    def request_activation(self) -> ExtensionRequest:
        """Submit an activation request for the extension.

        ACTIVATION_STARTED is applied before the request is submitted, so callbacks
        delivered by the activator always find the machine in ACTIVATING. If the request
        cannot be submitted, ACTIVATION_FAILED is applied right away.

        Returns:
            ExtensionRequest: The request that was (or could not be) submitted.
        """
        request = ExtensionRequest.activation(self._extension_identifier)
        logger.info(f"Requesting activation: {request}")

        self._apply_event(ActivationEvent.ACTIVATION_STARTED, request)
        try:
            self._activator.submit_request(request, self)
        except ExtensionActivationError as e:
            logger.error(f"Cannot submit {request} to {self._activator.__class__.__name__}: {e}")
            self._apply_event(ActivationEvent.ACTIVATION_FAILED, request)

        return request

    def request_deactivation(self) -> ExtensionRequest:
        """Submit a deactivation request for the extension.

        The activation state is not changed, neither now nor by the request's callbacks.

        Returns:
            ExtensionRequest: The request that was (or could not be) submitted.
        """
        request = ExtensionRequest.deactivation(self._extension_identifier)
        logger.info(f"Requesting deactivation: {request}")

        try:
            self._activator.submit_request(request, self)
        except ExtensionActivationError as e:
            logger.error(f"Cannot submit {request} to {self._activator.__class__.__name__}: {e}")

        return request

    # endregion

    # region ActivationRequestDelegate protocol

    def on_replacement_requested(self, request: ExtensionRequest, existing: ExtensionProperties, replacement: ExtensionProperties) -> ReplacementAction:
        """Always replace the installed extension; the request starts over."""
        logger.info(f"Replacing installed extension {existing} with {replacement} for {request}")
        if request.kind == RequestKind.ACTIVATE:
            self._apply_event(ActivationEvent.ACTIVATION_STARTED, request)
        return ReplacementAction.REPLACE

    def on_needs_user_approval(self, request: ExtensionRequest) -> None:
        logger.info(f"User approval needed for {request}")
        if request.kind == RequestKind.ACTIVATE:
            self._apply_event(ActivationEvent.PROMPT_FOR_APPROVAL, request)

    def on_finished(self, request: ExtensionRequest, result: ActivationResult) -> None:
        # A pending reboot counts as success
        if result == ActivationResult.WILL_COMPLETE_AFTER_REBOOT:
            logger.warning(f"{request} finished with result {result.name}; the extension becomes active only after a reboot")
        else:
            logger.info(f"{request} finished with result {result.name}")

        if request.kind == RequestKind.ACTIVATE:
            self._apply_event(ActivationEvent.ACTIVATION_FINISHED, request)

    def on_failed(self, request: ExtensionRequest, error: ExtensionActivationError) -> None:
        logger.error(f"{request} failed: {error}")
        hint = ERROR_HINTS.get(error.known_code)
        if hint is not None:
            logger.error(f"Hint for error {error.code}: {hint}")

        if request.kind == RequestKind.ACTIVATE:
            self._apply_event(ActivationEvent.ACTIVATION_FAILED, request)

    # endregion

    # region Event application

    def _apply_event(self, event: ActivationEvent, request: ExtensionRequest) -> ActivationState:
        with self._apply_lock:
            previous_state = self._state_machine.current_state
            new_state = self._state_machine.execute_action(event)

            if new_state == ActivationState.ACTIVATION_ERROR and event != ActivationEvent.ACTIVATION_FAILED:
                logger.error(f"Unexpected event {event.name} in state {previous_state.name} for {request}")
            logger.debug(f"Applied {event.name} for {request}: {previous_state.name} -> {new_state.name}")

            status = ActivationStatus(
                extension_identifier=self._extension_identifier,
                event=event,
                previous_state=previous_state,
                state=new_state,
                status_text=self._status_texts[new_state],
            )
            # A failing subscriber must not leave the state without a request behind it
            try:
                self._message_bus.publish(self._status_topic, status)
            except Exception as e:
                logger.error(f"Error while publishing {status} on '{self._status_topic}': {e}")
            return new_state

    # endregion

    # region String representations

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(extension_identifier='{self._extension_identifier}', state={self.state.name})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(extension_identifier={self._extension_identifier!r}, state={self.state!r}, activator={self._activator!r})"

    # endregion
