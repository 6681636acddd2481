"""Active/inactive partition switch and reboot capabilities."""

import logging
from typing import Protocol

from updateagent.utils.command import CommandExecutor


class Activator(Protocol):
    """Switches the freshly installed (inactive) bank to active."""

    async def activate(self) -> None: ...


class Rebooter(Protocol):
    async def reboot(self) -> None: ...


class CommandActivator:
    """Activates the inactive bank by running a board-specific command."""

    def __init__(self, executor: CommandExecutor, command: str):
        """Initialize command activator.

        Args:
            executor: Executor used to run the command
            command: Command line performing the switch
                (e.g., "fw_setenv active_bank 1")
        """
        self.logger = logging.getLogger("updateagent.activation")
        self.executor = executor
        self.command = command

    async def activate(self) -> None:
        self.logger.info(f"Activating inactive partition: {self.command}")
        await self.executor.execute(self.command)


class CommandRebooter:
    def __init__(self, executor: CommandExecutor, command: str = "reboot"):
        self.logger = logging.getLogger("updateagent.activation")
        self.executor = executor
        self.command = command

    async def reboot(self) -> None:
        self.logger.info(f"Rebooting: {self.command}")
        await self.executor.execute(self.command)
