"""MTD device lookups backed by procfs and sysfs.

/proc/mtd lists every partition as:

    dev:    size   erasesize  name
    mtd0: 00040000 00020000 "u-boot"
    mtd1: 00800000 00020000 "system0"

and /sys/class/mtd/mtdN/type names the flash technology
("nand", "mlc-nand", "nor", "ubi", ...).
"""

import logging
import re
from pathlib import Path

NAND_TYPES = ("nand", "mlc-nand")

_PROC_MTD_LINE = re.compile(r'^(mtd\d+):\s+[0-9a-fA-F]+\s+[0-9a-fA-F]+\s+"(.*)"\s*$')


class MtdError(OSError):
    """Raised when an MTD device cannot be resolved or classified."""

    def __str__(self) -> str:
        return self.args[0]


class MtdUtils:
    """Resolves and classifies MTD devices."""

    def __init__(self, root: Path = Path("/")):
        """Initialize MTD utilities.

        Args:
            root: Filesystem root holding /sys (default: /)
        """
        self.logger = logging.getLogger("updateagent.mtd")
        self.root = Path(root)

    def get_target_device_from_mtd_name(self, fs_root: Path, name: str) -> str:
        """Translate a symbolic MTD partition name into its device path.

        Args:
            fs_root: Filesystem root holding /proc/mtd
            name: Partition name as listed in /proc/mtd (e.g., "system0")

        Returns:
            Device path (e.g., "/dev/mtd1")

        Raises:
            MtdError: If no partition carries that name
            OSError: If /proc/mtd cannot be read
        """
        proc_mtd = Path(fs_root) / "proc" / "mtd"
        for line in proc_mtd.read_text().splitlines():
            match = _PROC_MTD_LINE.match(line)
            if match and match.group(2) == name:
                device = f"/dev/{match.group(1)}"
                self.logger.debug(f"mtdname '{name}' resolved to {device}")
                return device

        raise MtdError(f"Couldn't find a flash device corresponding to the mtdname '{name}'")

    def is_nand(self, device_path: str) -> bool:
        """Tell whether an MTD device is NAND flash.

        Raises:
            MtdError: If the device type cannot be read
        """
        type_file = self.root / "sys" / "class" / "mtd" / Path(device_path).name / "type"
        try:
            flash_type = type_file.read_text().strip()
        except OSError as e:
            raise MtdError(f"Error opening {device_path}: {e.strerror or e}") from e

        self.logger.debug(f"{device_path} flash type: {flash_type}")
        return flash_type in NAND_TYPES
