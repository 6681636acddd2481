"""State manager holding the agent's current state."""

from typing import Optional
import logging

from updateagent.services.states import IdleState, State


class StateManager:
    """Singleton holder of the current update state.

    Read by the HTTP surface (GET /state) while the agent loop writes it.
    """

    _instance: Optional["StateManager"] = None

    def __new__(cls):
        """Implement singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize state manager (only once due to singleton)."""
        if self._initialized:
            return

        self.logger = logging.getLogger("updateagent.state_manager")
        self._current_state: State = IdleState()

        self._initialized = True
        self.logger.info("StateManager initialized")

    def get_state(self) -> State:
        return self._current_state

    def set_state(self, state: State) -> None:
        """Replace the current state.

        Args:
            state: State the agent just entered
        """
        self._current_state = state
        self.logger.debug(f"Current state: {state.to_map()['status']}")

    def get_status(self) -> dict:
        """Get the reportable snapshot of the current state.

        Returns:
            The current state's ``to_map()``
        """
        return self._current_state.to_map()

    def reset(self) -> None:
        """Reset to idle state."""
        self._current_state = IdleState()
        self.logger.info("State reset to idle")
