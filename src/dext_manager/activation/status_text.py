from __future__ import annotations

from bidict import bidict

from dext_manager.activation.activation_state_machine import ActivationState

DEFAULT_DRIVER_NAME = "SimpleAudioDriver"


def create_status_texts(driver_name: str = DEFAULT_DRIVER_NAME) -> bidict[ActivationState, str]:
    """Create the fixed status sentence for each ActivationState.

    The mapping is a bidict, so two states can never share a sentence.

    Args:
        driver_name (str): Display name of the driver used inside the sentences.

    Returns:
        bidict[ActivationState, str]: One sentence per state.

    Raises:
        ValueError: If $driver_name is empty.
    """
    if not driver_name:
        raise ValueError(f"$driver_name cannot be empty, but provided value is: '{driver_name}'")

    return bidict(
        {
            ActivationState.UNLOADED: f"{driver_name} isn't loaded.",
            ActivationState.ACTIVATING: f"Activating {driver_name}, please wait.",
            ActivationState.NEEDS_APPROVAL: f"Please follow the prompt to approve {driver_name}.",
            ActivationState.ACTIVATED: f"{driver_name} has been activated and is ready to use.",
            ActivationState.ACTIVATION_ERROR: f"{driver_name} has experienced an error during activation.\nPlease check the logs to find the error.",
        },
    )


STATUS_TEXTS: bidict[ActivationState, str] = create_status_texts()


def status_text_for(state: ActivationState) -> str:
    """Return the default status sentence for $state."""
    return STATUS_TEXTS[state]
