import pytest

from dext_manager.activation.activation_state_machine import (
    ACTIVATION_TRANSITIONS,
    ActivationEvent,
    ActivationState,
    create_activation_state_machine,
    transition,
)

S = ActivationState
E = ActivationEvent

# Rows: current state; columns: STARTED, PROMPT, FINISHED, FAILED
EXPECTED_TABLE = {
    S.UNLOADED: (S.ACTIVATING, S.ACTIVATION_ERROR, S.ACTIVATION_ERROR, S.ACTIVATION_ERROR),
    S.ACTIVATING: (S.ACTIVATING, S.NEEDS_APPROVAL, S.ACTIVATED, S.ACTIVATION_ERROR),
    S.NEEDS_APPROVAL: (S.ACTIVATING, S.NEEDS_APPROVAL, S.ACTIVATED, S.ACTIVATION_ERROR),
    S.ACTIVATED: (S.ACTIVATING, S.ACTIVATION_ERROR, S.ACTIVATED, S.ACTIVATION_ERROR),
    S.ACTIVATION_ERROR: (S.ACTIVATING, S.ACTIVATION_ERROR, S.ACTIVATION_ERROR, S.ACTIVATION_ERROR),
}
EVENT_COLUMNS = (E.ACTIVATION_STARTED, E.PROMPT_FOR_APPROVAL, E.ACTIVATION_FINISHED, E.ACTIVATION_FAILED)


def run_events(state, *events):
    for event in events:
        state = transition(state, event)
    return state


@pytest.mark.parametrize(
    "state, event, expected",
    [(state, event, row[i]) for state, row in EXPECTED_TABLE.items() for i, event in enumerate(EVENT_COLUMNS)],
)
def test_transition_table(state, event, expected):
    assert transition(state, event) == expected


def test_transition_is_total():
    assert len(ACTIVATION_TRANSITIONS) == len(ActivationState) * len(ActivationEvent) == 20
    for state in ActivationState:
        for event in ActivationEvent:
            assert isinstance(transition(state, event), ActivationState)


@pytest.mark.parametrize("state", list(ActivationState))
def test_activation_started_always_resets_to_activating(state):
    assert transition(state, E.ACTIVATION_STARTED) == S.ACTIVATING


def test_finished_while_activated_is_idempotent():
    assert transition(S.ACTIVATED, E.ACTIVATION_FINISHED) == S.ACTIVATED


@pytest.mark.parametrize("event", [e for e in ActivationEvent if e != E.ACTIVATION_STARTED])
def test_error_is_sticky(event):
    assert transition(S.ACTIVATION_ERROR, event) == S.ACTIVATION_ERROR


def test_repeated_approval_prompt_keeps_waiting():
    assert transition(S.NEEDS_APPROVAL, E.PROMPT_FOR_APPROVAL) == S.NEEDS_APPROVAL


def test_scenario_start():
    assert run_events(S.UNLOADED, E.ACTIVATION_STARTED) == S.ACTIVATING


def test_scenario_approval_then_finish():
    state = run_events(S.UNLOADED, E.ACTIVATION_STARTED, E.PROMPT_FOR_APPROVAL)
    assert state == S.NEEDS_APPROVAL

    assert transition(state, E.ACTIVATION_FINISHED) == S.ACTIVATED


def test_scenario_failure_then_new_attempt():
    state = run_events(S.UNLOADED, E.ACTIVATION_STARTED, E.ACTIVATION_FAILED)
    assert state == S.ACTIVATION_ERROR

    assert transition(state, E.ACTIVATION_STARTED) == S.ACTIVATING


def test_scenario_failure_after_success():
    assert transition(S.ACTIVATED, E.ACTIVATION_FAILED) == S.ACTIVATION_ERROR


def test_created_machine_starts_unloaded_and_has_no_terminal_state():
    sm = create_activation_state_machine()

    assert sm.current_state == S.UNLOADED
    assert sm.is_total()
    for state in ActivationState:
        assert sm.next_state(state, E.ACTIVATION_STARTED) == S.ACTIVATING


def test_created_machine_follows_transition_function():
    sm = create_activation_state_machine()

    for event in (E.ACTIVATION_STARTED, E.PROMPT_FOR_APPROVAL, E.PROMPT_FOR_APPROVAL, E.ACTIVATION_FINISHED, E.ACTIVATION_FAILED):
        expected = transition(sm.current_state, event)
        assert sm.execute_action(event) == expected

    assert sm.current_state == S.ACTIVATION_ERROR
