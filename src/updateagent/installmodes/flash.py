"""Flash install mode: writes objects to NAND/NOR MTD devices.

The device is erased with ``flash_erase`` and then written with
``nandwrite`` (NAND) or ``flashcp`` (NOR and anything else). The payload
is referenced by its sha256sum, which is the filename of the downloaded
object inside the executor's working directory.
"""

import logging
from pathlib import Path
from typing import Optional

from updateagent.installmodes.registry import InstallModeRegistry
from updateagent.models.metadata import ObjectMetadata
from updateagent.utils.command import CommandExecutor, find_executable
from updateagent.utils.mtd import MtdUtils

MODE_NAME = "flash"
REQUIRED_TOOLS = ("nandwrite", "flashcp", "flash_erase")
SUPPORTED_TARGET_TYPES = ("device", "mtdname")


class UnsupportedTargetTypeError(ValueError):
    """Raised when an object's target-type is not handled by a backend."""


def check_requirements() -> None:
    """Ensure the MTD tools are on $PATH.

    Raises:
        ExecutableNotFoundError: Naming the first missing tool
    """
    for tool in REQUIRED_TOOLS:
        find_executable(tool)


class FlashObject:
    """Install backend for raw flash (MTD) devices."""

    def __init__(
        self,
        executor: Optional[CommandExecutor] = None,
        mtd_utils: Optional[MtdUtils] = None,
        fs_root: Path = Path("/"),
        target_type: str = "",
        target: str = "",
        sha256sum: str = "",
    ):
        self.logger = logging.getLogger("updateagent.installmodes.flash")
        self.executor = executor or CommandExecutor()
        self.mtd_utils = mtd_utils or MtdUtils(fs_root)
        self.fs_root = Path(fs_root)
        self.target_type = target_type
        self.target = target
        self.sha256sum = sha256sum
        self._target_device = ""

    @property
    def target_device(self) -> str:
        """Device path resolved by setup(), empty until then."""
        return self._target_device

    def load_object(self, obj: ObjectMetadata) -> None:
        if self._target_device:
            raise RuntimeError("flash object already set up, target cannot change")
        self.target_type = obj.target_type or ""
        self.target = obj.target or ""
        self.sha256sum = obj.sha256sum

    async def setup(self) -> None:
        """Resolve the device to write from target-type and target.

        Raises:
            UnsupportedTargetTypeError: If target-type is neither 'device' nor 'mtdname'
            ValueError: If no target is given
            MtdError: If an mtdname cannot be resolved
        """
        if self.target_type not in SUPPORTED_TARGET_TYPES:
            raise UnsupportedTargetTypeError(
                f"target-type '{self.target_type}' is not supported for the "
                f"'{MODE_NAME}' handler. Its value must be either 'device' or 'mtdname'"
            )
        if not self.target:
            raise ValueError(
                f"target is required for the '{MODE_NAME}' handler "
                f"with target-type '{self.target_type}'"
            )

        if self.target_type == "device":
            device = self.target
        else:
            device = self.mtd_utils.get_target_device_from_mtd_name(self.fs_root, self.target)

        self._target_device = device
        self.logger.info(f"Flash target resolved: {self.target_type}={self.target} -> {device}")

    async def install(self) -> None:
        """Erase the resolved device and write the payload onto it.

        Errors from classification or from the tools propagate unchanged;
        nothing is written if the erase fails.
        """
        device = self._target_device
        if not device:
            raise RuntimeError("flash install called before a successful setup")

        is_nand = self.mtd_utils.is_nand(device)

        await self.executor.execute(f"flash_erase {device} 0 0")

        if is_nand:
            await self.executor.execute(f"nandwrite -p {device} {self.sha256sum}")
        else:
            await self.executor.execute(f"flashcp {self.sha256sum} {device}")

        self.logger.info(f"Wrote {self.sha256sum} to {device} ({'NAND' if is_nand else 'NOR'})")

    async def cleanup(self) -> None:
        pass


def register(
    registry: InstallModeRegistry,
    executor: Optional[CommandExecutor] = None,
    fs_root: Path = Path("/"),
) -> None:
    """Make the flash backend available under the 'flash' mode."""
    registry.register(
        MODE_NAME,
        lambda: FlashObject(executor=executor, fs_root=fs_root),
        check_requirements,
    )
