"""Global pytest fixtures and configuration."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from updateagent.models.metadata import UpdateMetadata  # noqa: E402
from updateagent.services.state_manager import StateManager  # noqa: E402

SHA256SUM = "8e29c9df2bc3c417b460b02b566edc668195da9c75a1fcf2f63829a7c59fc07d"


@pytest.fixture(autouse=True)
def reset_state_manager():
    """Reset the StateManager singleton around every test."""
    StateManager._instance = None
    yield
    StateManager._instance = None


@pytest.fixture
def sha256sum():
    return SHA256SUM


@pytest.fixture
def sample_metadata_dict():
    """Sample update metadata as received over the wire."""
    return {
        "product-uid": "0123456789",
        "version": "2.1.0",
        "objects": [
            {
                "mode": "flash",
                "filename": "rootfs.img",
                "sha256sum": SHA256SUM,
                "size": 4096,
                "target-type": "device",
                "target": "/dev/mtd9",
            }
        ],
    }


@pytest.fixture
def sample_metadata(sample_metadata_dict):
    return UpdateMetadata(**sample_metadata_dict)


@pytest.fixture
def mock_executor():
    """CommandExecutor whose commands all succeed."""
    executor = MagicMock()
    executor.execute = AsyncMock(return_value=b"combinedOutput")
    return executor


@pytest.fixture
def mock_mtd_utils():
    return MagicMock()


@pytest.fixture
def fake_mtd_root(tmp_path):
    """Filesystem root with /proc/mtd and /sys/class/mtd entries."""
    proc = tmp_path / "proc"
    proc.mkdir()
    (proc / "mtd").write_text(
        "dev:    size   erasesize  name\n"
        'mtd0: 00040000 00020000 "u-boot"\n'
        'mtd5: 00800000 00020000 "system0"\n'
        'mtd9: 00800000 00010000 "system1"\n'
    )
    for device, flash_type in (("mtd0", "nor"), ("mtd5", "nand"), ("mtd9", "mlc-nand")):
        sysfs = tmp_path / "sys" / "class" / "mtd" / device
        sysfs.mkdir(parents=True)
        (sysfs / "type").write_text(f"{flash_type}\n")
    return tmp_path
