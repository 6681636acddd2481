"""Update agent: the context states run against and the loop driving them."""

import asyncio
import logging
from typing import Optional

from updateagent.installmodes.registry import InstallModeRegistry
from updateagent.models.settings import AgentSettings
from updateagent.services.activation import Activator, Rebooter
from updateagent.services.download import DownloadService
from updateagent.services.reporter import ReportService
from updateagent.services.state_manager import StateManager
from updateagent.services.states import State


class UpdateAgent:
    """Drives the update state machine one state at a time.

    Holds the collaborators states need (install modes, activation,
    reboot, downloader) and the cancellation flag they check.
    """

    def __init__(
        self,
        settings: AgentSettings,
        install_modes: InstallModeRegistry,
        activator: Activator,
        rebooter: Rebooter,
        downloader: Optional[DownloadService] = None,
        state_manager: Optional[StateManager] = None,
        reporter: Optional[ReportService] = None,
    ):
        self.logger = logging.getLogger("updateagent.agent")
        self.settings = settings
        self.install_modes = install_modes
        self.activator = activator
        self.rebooter = rebooter
        self.downloader = downloader or DownloadService(settings)
        self.state_manager = state_manager or StateManager()
        self.reporter = reporter or ReportService(settings.report_url)
        self._cancel_event = asyncio.Event()
        self._running = False
        self._pending = False

    @property
    def is_busy(self) -> bool:
        return self._running or self._pending

    def reserve(self) -> None:
        """Mark the agent busy for a run that has been scheduled but not started."""
        self._pending = True

    def cancel(self) -> None:
        """Ask the running update to stop at the next safe point."""
        self.logger.info("Cancellation requested")
        self._cancel_event.set()

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    async def run(self, state: State) -> State:
        """Advance from ``state`` until a state reports an interruption.

        Args:
            state: State to start from

        Returns:
            The state the agent stopped in

        Raises:
            RuntimeError: If a run is already in progress
        """
        if self._running:
            raise RuntimeError("An update is already in progress")

        self._pending = False
        self._running = True
        self._cancel_event.clear()
        try:
            while True:
                await self._enter(state)
                next_state, interrupted = await state.handle(self)
                self.logger.info(
                    f"Transition: {state.to_map()['status']} -> "
                    f"{next_state.to_map()['status']}"
                    + (" (interrupted)" if interrupted else "")
                )
                if interrupted:
                    if next_state != state:
                        await self._enter(next_state)
                    return next_state
                state = next_state
        finally:
            self._running = False

    async def _enter(self, state: State) -> None:
        self.state_manager.set_state(state)
        await self.reporter.report_state(state)
