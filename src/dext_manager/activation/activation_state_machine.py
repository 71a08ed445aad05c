from __future__ import annotations

from dext_manager.utils.state_machine import State, Action, StateMachine


class ActivationState(State):
    """Lifecycle states of a driver extension activation request.

    States:
        UNLOADED: No activation was requested yet by this process.
        ACTIVATING: A request was submitted (or restarted) and is being processed.
        NEEDS_APPROVAL: The system is waiting for the user to approve the extension.
        ACTIVATED: The extension is installed and enabled.
        ACTIVATION_ERROR: The request failed, or an event arrived that makes no sense
            after success. Details are only available in the logs.

    Terminal vs non-terminal:
        There is no terminal state. ACTIVATION_STARTED leaves every state, including
        ACTIVATED (re-activation / upgrade) and ACTIVATION_ERROR (new attempt).
    """

    UNLOADED = "UNLOADED"
    ACTIVATING = "ACTIVATING"
    NEEDS_APPROVAL = "NEEDS_APPROVAL"
    ACTIVATED = "ACTIVATED"
    ACTIVATION_ERROR = "ACTIVATION_ERROR"


class ActivationEvent(Action):
    """Events reported while an activation request is processed.

    Events:
        ACTIVATION_STARTED: A new request was submitted, or the system asked to replace an
            installed version (the request starts over).
        PROMPT_FOR_APPROVAL: The system needs the user to approve the extension.
        ACTIVATION_FINISHED: The request completed (with or without a pending reboot).
        ACTIVATION_FAILED: The request failed, or could not be submitted.
    """

    ACTIVATION_STARTED = "ACTIVATION_STARTED"
    PROMPT_FOR_APPROVAL = "PROMPT_FOR_APPROVAL"
    ACTIVATION_FINISHED = "ACTIVATION_FINISHED"
    ACTIVATION_FAILED = "ACTIVATION_FAILED"


# Every (state, event) pair is listed; the table is total
ACTIVATION_TRANSITIONS: dict[tuple[ActivationState, ActivationEvent], ActivationState] = {
    # UNLOADED: only a start makes sense
    (ActivationState.UNLOADED, ActivationEvent.ACTIVATION_STARTED): ActivationState.ACTIVATING,
    (ActivationState.UNLOADED, ActivationEvent.PROMPT_FOR_APPROVAL): ActivationState.ACTIVATION_ERROR,
    (ActivationState.UNLOADED, ActivationEvent.ACTIVATION_FINISHED): ActivationState.ACTIVATION_ERROR,
    (ActivationState.UNLOADED, ActivationEvent.ACTIVATION_FAILED): ActivationState.ACTIVATION_ERROR,
    # ACTIVATING
    (ActivationState.ACTIVATING, ActivationEvent.ACTIVATION_STARTED): ActivationState.ACTIVATING,
    (ActivationState.ACTIVATING, ActivationEvent.PROMPT_FOR_APPROVAL): ActivationState.NEEDS_APPROVAL,
    (ActivationState.ACTIVATING, ActivationEvent.ACTIVATION_FINISHED): ActivationState.ACTIVATED,
    (ActivationState.ACTIVATING, ActivationEvent.ACTIVATION_FAILED): ActivationState.ACTIVATION_ERROR,
    # NEEDS_APPROVAL behaves like ACTIVATING
    (ActivationState.NEEDS_APPROVAL, ActivationEvent.ACTIVATION_STARTED): ActivationState.ACTIVATING,
    (ActivationState.NEEDS_APPROVAL, ActivationEvent.PROMPT_FOR_APPROVAL): ActivationState.NEEDS_APPROVAL,
    (ActivationState.NEEDS_APPROVAL, ActivationEvent.ACTIVATION_FINISHED): ActivationState.ACTIVATED,
    (ActivationState.NEEDS_APPROVAL, ActivationEvent.ACTIVATION_FAILED): ActivationState.ACTIVATION_ERROR,
    # ACTIVATED: repeated completion is fine, anything else but a restart is an anomaly
    (ActivationState.ACTIVATED, ActivationEvent.ACTIVATION_STARTED): ActivationState.ACTIVATING,
    (ActivationState.ACTIVATED, ActivationEvent.PROMPT_FOR_APPROVAL): ActivationState.ACTIVATION_ERROR,
    (ActivationState.ACTIVATED, ActivationEvent.ACTIVATION_FINISHED): ActivationState.ACTIVATED,
    (ActivationState.ACTIVATED, ActivationEvent.ACTIVATION_FAILED): ActivationState.ACTIVATION_ERROR,
    # ACTIVATION_ERROR is sticky until a new start
    (ActivationState.ACTIVATION_ERROR, ActivationEvent.ACTIVATION_STARTED): ActivationState.ACTIVATING,
    (ActivationState.ACTIVATION_ERROR, ActivationEvent.PROMPT_FOR_APPROVAL): ActivationState.ACTIVATION_ERROR,
    (ActivationState.ACTIVATION_ERROR, ActivationEvent.ACTIVATION_FINISHED): ActivationState.ACTIVATION_ERROR,
    (ActivationState.ACTIVATION_ERROR, ActivationEvent.ACTIVATION_FAILED): ActivationState.ACTIVATION_ERROR,
}

INITIAL_ACTIVATION_STATE: ActivationState = ActivationState.UNLOADED


def transition(state: ActivationState, event: ActivationEvent) -> ActivationState:
    """Return the state reached from $state when $event is delivered.

    Pure and total: every (state, event) pair has exactly one target state.

    Args:
        state (ActivationState): Current state.
        event (ActivationEvent): Incoming event.

    Returns:
        ActivationState: Next state.
    """
    return ACTIVATION_TRANSITIONS[(state, event)]


def create_activation_state_machine() -> StateMachine[ActivationState, ActivationEvent]:
    """Create a StateMachine for driver activation, starting in UNLOADED.

    Returns:
        StateMachine[ActivationState, ActivationEvent]: Machine backed by `ACTIVATION_TRANSITIONS`,
        with totality verified.
    """
    return StateMachine(INITIAL_ACTIVATION_STATE, ACTIVATION_TRANSITIONS, require_total=True)
