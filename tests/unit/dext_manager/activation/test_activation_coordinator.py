import logging

import pytest

from dext_manager.activation.activation_coordinator import ActivationCoordinator
from dext_manager.activation.activation_state_machine import ActivationEvent, ActivationState
from dext_manager.activation.status_text import status_text_for
from dext_manager.messaging.message_bus import MessageBus
from dext_manager.platform.activators.extension_activator import (
    ActivationResult,
    ExtensionActivationError,
    ExtensionErrorCode,
    ExtensionProperties,
    ReplacementAction,
    RequestKind,
)
from tests.helpers.helper_activation import EXTENSION_IDENTIFIER, RecordingActivator, create_coordinator

OLD_VERSION = ExtensionProperties(EXTENSION_IDENTIFIER, "1", "1.0")
NEW_VERSION = ExtensionProperties(EXTENSION_IDENTIFIER, "2", "2.0")


def test_new_coordinator_is_unloaded():
    coordinator, activator, recorder = create_coordinator()

    assert coordinator.state == ActivationState.UNLOADED
    assert coordinator.status_text == "SimpleAudioDriver isn't loaded."
    assert coordinator.status_topic == "activation_status::com.example.apple-samplecode.simpleaudio.driver"
    assert activator.submitted == []
    assert recorder.statuses == []


def test_empty_extension_identifier_is_rejected():
    with pytest.raises(ValueError, match=r"\$extension_identifier cannot be empty"):
        ActivationCoordinator("", RecordingActivator())


def test_request_activation_submits_and_starts():
    coordinator, activator, recorder = create_coordinator()

    request = coordinator.request_activation()

    assert request.kind == RequestKind.ACTIVATE
    assert request.extension_identifier == EXTENSION_IDENTIFIER
    assert activator.submitted == [(request, coordinator)]
    assert coordinator.state == ActivationState.ACTIVATING
    assert coordinator.status_text == "Activating SimpleAudioDriver, please wait."
    assert recorder.states == [ActivationState.ACTIVATING]


def test_approval_then_finish():
    coordinator, activator, recorder = create_coordinator()
    request = coordinator.request_activation()

    coordinator.on_needs_user_approval(request)
    assert coordinator.state == ActivationState.NEEDS_APPROVAL

    coordinator.on_finished(request, ActivationResult.COMPLETED)
    assert coordinator.state == ActivationState.ACTIVATED
    assert recorder.states == [ActivationState.ACTIVATING, ActivationState.NEEDS_APPROVAL, ActivationState.ACTIVATED]


def test_replacement_is_always_accepted_and_restarts():
    coordinator, activator, recorder = create_coordinator()
    request = coordinator.request_activation()
    coordinator.on_needs_user_approval(request)

    action = coordinator.on_replacement_requested(request, OLD_VERSION, NEW_VERSION)

    assert action == ReplacementAction.REPLACE
    assert coordinator.state == ActivationState.ACTIVATING
    assert recorder.statuses[-1].event == ActivationEvent.ACTIVATION_STARTED


def test_downgrade_is_replaced_too():
    coordinator, activator, recorder = create_coordinator()
    request = coordinator.request_activation()

    assert coordinator.on_replacement_requested(request, NEW_VERSION, OLD_VERSION) == ReplacementAction.REPLACE


def test_reboot_result_counts_as_activated(caplog):
    coordinator, activator, recorder = create_coordinator()
    request = coordinator.request_activation()

    with caplog.at_level(logging.WARNING):
        coordinator.on_finished(request, ActivationResult.WILL_COMPLETE_AFTER_REBOOT)

    assert coordinator.state == ActivationState.ACTIVATED
    assert "WILL_COMPLETE_AFTER_REBOOT" in caplog.text


def test_service_failure_collapses_to_error_and_logs_details(caplog):
    coordinator, activator, recorder = create_coordinator()
    request = coordinator.request_activation()

    with caplog.at_level(logging.ERROR):
        coordinator.on_failed(request, ExtensionActivationError(ExtensionErrorCode.CODE_SIGNATURE_INVALID, "Invalid code signature"))

    assert coordinator.state == ActivationState.ACTIVATION_ERROR
    assert coordinator.status_text == status_text_for(ActivationState.ACTIVATION_ERROR)
    assert "Invalid code signature" in caplog.text
    assert "not signed correctly" in caplog.text


def test_unknown_error_code_still_collapses_to_error():
    coordinator, activator, recorder = create_coordinator()
    request = coordinator.request_activation()

    coordinator.on_failed(request, ExtensionActivationError(999, "Something new"))

    assert coordinator.state == ActivationState.ACTIVATION_ERROR


def test_submission_failure_ends_in_error_without_raising():
    coordinator, activator, recorder = create_coordinator(RecordingActivator(fail_submissions=True))

    coordinator.request_activation()

    assert coordinator.state == ActivationState.ACTIVATION_ERROR
    assert [status.event for status in recorder.statuses] == [ActivationEvent.ACTIVATION_STARTED, ActivationEvent.ACTIVATION_FAILED]


def test_new_attempt_after_error():
    coordinator, activator, recorder = create_coordinator()
    first = coordinator.request_activation()
    coordinator.on_failed(first, ExtensionActivationError(ExtensionErrorCode.EXTENSION_NOT_FOUND, "Not found"))

    second = coordinator.request_activation()

    assert second.request_id != first.request_id
    assert coordinator.state == ActivationState.ACTIVATING


def test_approval_prompt_after_success_is_an_error():
    coordinator, activator, recorder = create_coordinator()
    request = coordinator.request_activation()
    coordinator.on_finished(request, ActivationResult.COMPLETED)

    coordinator.on_needs_user_approval(request)

    assert coordinator.state == ActivationState.ACTIVATION_ERROR


def test_redundant_finish_keeps_activated():
    coordinator, activator, recorder = create_coordinator()
    request = coordinator.request_activation()
    coordinator.on_finished(request, ActivationResult.COMPLETED)

    coordinator.on_finished(request, ActivationResult.COMPLETED)

    assert coordinator.state == ActivationState.ACTIVATED
    assert recorder.states[-2:] == [ActivationState.ACTIVATED, ActivationState.ACTIVATED]


def test_deactivation_does_not_touch_state():
    coordinator, activator, recorder = create_coordinator()
    activation = coordinator.request_activation()
    coordinator.on_finished(activation, ActivationResult.COMPLETED)

    deactivation = coordinator.request_deactivation()
    coordinator.on_finished(deactivation, ActivationResult.COMPLETED)
    coordinator.on_failed(deactivation, ExtensionActivationError(ExtensionErrorCode.EXTENSION_NOT_FOUND, "Not found"))

    assert deactivation.kind == RequestKind.DEACTIVATE
    assert activator.last_request == deactivation
    assert coordinator.state == ActivationState.ACTIVATED
    assert len(recorder.statuses) == 2


def test_deactivation_submission_failure_is_not_raised():
    coordinator, activator, recorder = create_coordinator(RecordingActivator(fail_submissions=True))

    coordinator.request_deactivation()

    assert coordinator.state == ActivationState.UNLOADED
    assert recorder.statuses == []


def test_published_status_matches_coordinator():
    coordinator, activator, recorder = create_coordinator()
    request = coordinator.request_activation()
    coordinator.on_needs_user_approval(request)

    status = recorder.statuses[-1]
    assert status.extension_identifier == EXTENSION_IDENTIFIER
    assert status.event == ActivationEvent.PROMPT_FOR_APPROVAL
    assert status.previous_state == ActivationState.ACTIVATING
    assert status.state == ActivationState.NEEDS_APPROVAL
    assert status.status_text == coordinator.status_text


def test_subscriber_reads_updated_status_text():
    message_bus = MessageBus()
    coordinator = ActivationCoordinator(EXTENSION_IDENTIFIER, RecordingActivator(), message_bus)
    seen = []
    message_bus.subscribe(coordinator.status_topic, lambda status: seen.append((status.status_text, coordinator.status_text)))

    coordinator.request_activation()

    assert seen == [("Activating SimpleAudioDriver, please wait.", "Activating SimpleAudioDriver, please wait.")]


def test_coordinators_are_independent():
    message_bus = MessageBus()
    first = ActivationCoordinator("com.example.first.Driver", RecordingActivator(), message_bus)
    second = ActivationCoordinator("com.example.second.Driver", RecordingActivator(), message_bus)

    first.request_activation()

    assert first.state == ActivationState.ACTIVATING
    assert second.state == ActivationState.UNLOADED
    assert first.status_topic != second.status_topic


def test_failing_subscriber_does_not_stop_activation(caplog):
    message_bus = MessageBus()
    activator = RecordingActivator()
    coordinator = ActivationCoordinator(EXTENSION_IDENTIFIER, activator, message_bus)

    def failing_sink(status):
        raise RuntimeError("render failed")

    message_bus.subscribe(coordinator.status_topic, failing_sink)

    with caplog.at_level(logging.ERROR):
        request = coordinator.request_activation()

    assert [submitted for submitted, _ in activator.submitted] == [request]
    assert coordinator.state == ActivationState.ACTIVATING
    assert "render failed" in caplog.text

    coordinator.on_finished(request, ActivationResult.COMPLETED)

    assert coordinator.state == ActivationState.ACTIVATED
