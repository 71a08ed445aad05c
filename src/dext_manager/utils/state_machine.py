from __future__ import annotations

from enum import Enum
from itertools import product
from threading import Lock
from typing import TypeVar, Generic


class State(Enum):
    """Base class for defining states in a state machine.

    Subclass this enum to define your specific states.
    """

    pass


class Action(Enum):
    """Base class for defining actions in a state machine.

    Subclass this enum to define your specific actions.
    """

    pass


S = TypeVar("S", bound=State)
A = TypeVar("A", bound=Action)


class StateMachine(Generic[S, A]):
    """Table-driven state machine with atomic state replacement.

    The machine owns a dictionary mapping (from_state, action) tuples to target states
    and the single current state. Next states are always looked up in the table, so
    `next_state` is a pure function of its arguments and `execute_action` is nothing more
    than "look up, then replace" done under a lock.

    A table may be partial (undefined pairs raise ValueError) or total (every state of the
    state enum combined with every action of the action enum is defined). Pass
    `require_total=True` to have totality verified when the machine is created.

    Example:
        ```python
        class DoorState(State):
            CLOSED = "CLOSED"
            OPEN = "OPEN"

        class DoorAction(Action):
            PUSH = "PUSH"

        transitions = {
            (DoorState.CLOSED, DoorAction.PUSH): DoorState.OPEN,
            (DoorState.OPEN, DoorAction.PUSH): DoorState.CLOSED,
        }

        sm = StateMachine(DoorState.CLOSED, transitions, require_total=True)
        sm.execute_action(DoorAction.PUSH)  # State becomes OPEN
        ```
    """

    def __init__(self, initial_state: S, transitions: dict[tuple[S, A], S], require_total: bool = False):
        """Initialize the state machine.

        Args:
            initial_state (S): The initial state of the machine.
            transitions (dict[tuple[S, A], S]): Dictionary mapping
                (from_state, action) tuples to target states.
            require_total (bool): When True, every (state, action) pair must be defined.

        Raises:
            ValueError: If $transitions is empty, or if $require_total is set and some
                (state, action) pairs are missing.
        """
        if not transitions:
            raise ValueError("$transitions cannot be empty. At least one transition must be defined.")

        self._transitions = dict(transitions)
        self._current_state = initial_state
        self._lock = Lock()

        if require_total:
            missing = self.list_missing_transitions()
            if missing:
                missing_str = ", ".join(f"({state.value}, {action.value})" for state, action in missing)
                raise ValueError(f"Cannot create total StateMachine because $transitions is missing {len(missing)} pair(s): {missing_str}")

    # region Table

    def _state_type(self) -> type[S]:
        return type(self._current_state)

    def _action_type(self) -> type[A]:
        _, action = next(iter(self._transitions))
        return type(action)

    def list_missing_transitions(self) -> list[tuple[S, A]]:
        """List (state, action) pairs that have no target state.

        Returns:
            list[tuple[S, A]]: Missing pairs in enum declaration order.
        """
        return [key for key in product(self._state_type(), self._action_type()) if key not in self._transitions]

    def is_total(self) -> bool:
        """Check whether every (state, action) pair has a target state."""
        return not self.list_missing_transitions()

    def next_state(self, state: S, action: A) -> S:
        """Look up the state reached from $state by $action without changing the machine.

        Args:
            state (S): The state to transition from.
            action (A): The action to apply.

        Returns:
            S: The target state.

        Raises:
            ValueError: If no transition is defined for ($state, $action).
        """
        key = (state, action)
        if key not in self._transitions:
            valid_actions = [a.value for (s, a) in self._transitions if s == state]
            raise ValueError(
                f"Invalid $action '{action.value}' from $state '{state.value}'. Valid actions are: {valid_actions}",
            )
        return self._transitions[key]

    # endregion

    # region Current state

    @property
    def current_state(self) -> S:
        """Get the current state of the machine.

        Returns:
            S: The current state.
        """
        with self._lock:
            return self._current_state

    def execute_action(self, action: A) -> S:
        """Execute an action and transition to the new state.

        The lookup and the replacement happen under one lock, so concurrent readers never
        observe a partially applied transition.

        Args:
            action (A): The action to execute.

        Returns:
            S: The new state after transition.

        Raises:
            ValueError: If the action is not valid from the current state. The current
                state is left unchanged.
        """
        with self._lock:
            self._current_state = self.next_state(self._current_state, action)
            return self._current_state

    # endregion
