"""External command execution for install backends."""

import asyncio
import logging
import shlex
import shutil
from typing import Optional


class ExecutableNotFoundError(FileNotFoundError):
    """Raised when a program cannot be resolved on $PATH."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'exec: "{name}": executable file not found in $PATH')

    def __str__(self) -> str:
        return self.args[0]


class CommandError(RuntimeError):
    """Raised when a spawned command exits with a non-zero status."""

    def __init__(self, command_line: str, returncode: int, output: bytes):
        self.command_line = command_line
        self.returncode = returncode
        self.output = output
        program = command_line.split(" ", 1)[0]
        text = output.decode(errors="replace").strip()
        message = f"{program} exited with status {returncode}"
        if text:
            message = f"{message}: {text}"
        super().__init__(message)


def find_executable(name: str) -> str:
    """Resolve a program on $PATH.

    Returns:
        Absolute path of the program

    Raises:
        ExecutableNotFoundError: If the program is not on $PATH
    """
    path = shutil.which(name)
    if path is None:
        raise ExecutableNotFoundError(name)
    return path


class CommandExecutor:
    """Runs command lines and returns their combined output."""

    def __init__(self, cwd: Optional[str] = None):
        """Initialize command executor.

        Args:
            cwd: Working directory for spawned commands (inherited if None)
        """
        self.logger = logging.getLogger("updateagent.command")
        self.cwd = cwd

    async def execute(self, command_line: str) -> bytes:
        """Run a command line, word-split the way a shell would.

        Args:
            command_line: Program name followed by its arguments

        Returns:
            Combined stdout/stderr bytes

        Raises:
            ExecutableNotFoundError: If the program cannot be found
            CommandError: If the command exits with a non-zero status
        """
        argv = shlex.split(command_line)
        if not argv:
            raise ValueError("Empty command line")

        self.logger.info(f"Executing: {command_line}")

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=self.cwd,
            )
        except FileNotFoundError:
            raise ExecutableNotFoundError(argv[0]) from None

        output, _ = await process.communicate()
        if output:
            self.logger.debug(f"Output of {argv[0]}: {output.decode(errors='replace').strip()}")

        if process.returncode != 0:
            error = CommandError(command_line, process.returncode, output)
            self.logger.error(f"Command failed: {error}")
            raise error

        return output
