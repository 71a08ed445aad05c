from __future__ import annotations

import logging
import time

from dext_manager.activation.activation_coordinator import ActivationCoordinator
from dext_manager.activation.activation_state_machine import ActivationState
from dext_manager.config import load_config
from dext_manager.messaging.message_bus import MessageBus
from dext_manager.platform.activators.activator_factory import create_extension_activator
from dext_manager.platform.activators.simulated_activator import SimulatedExtensionActivator
from dext_manager.presentation.status_presenter import StatusPresenter


logger = logging.getLogger(__name__)

PENDING_STATES = (ActivationState.ACTIVATING, ActivationState.NEEDS_APPROVAL)
POLL_INTERVAL_SECONDS = 0.5


def run_demo() -> None:
    # Settings come from the environment or a `.env` file
    config = load_config()
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    message_bus = MessageBus()
    activator = create_extension_activator(config.activator_kind)
    coordinator = ActivationCoordinator(config.extension_identifier, activator, message_bus, driver_name=config.driver_name)

    # The "UI": prints every status sentence it is asked to render
    presenter = StatusPresenter(message_bus, coordinator.status_topic, sink=print, initial_text=coordinator.status_text)
    print(presenter.current_text)

    # Equivalent of pressing "Install Dext"
    coordinator.request_activation()

    # With the simulated service we play the user who approves the driver
    if isinstance(activator, SimulatedExtensionActivator):
        activator.wait_until_idle()
        activator.approve(coordinator.extension_identifier)
        activator.wait_until_idle()
        activator.close()
    else:
        # Callbacks of the system service arrive on its own dispatch queue
        while coordinator.state in PENDING_STATES:
            time.sleep(POLL_INTERVAL_SECONDS)

    presenter.close()
    logger.info(f"Final state: {coordinator.state.name}")


if __name__ == "__main__":
    run_demo()
