"""Status enums for the update agent."""

from enum import Enum


class StageEnum(str, Enum):
    """Update lifecycle stages.

    State transitions:
    idle → downloading → installing → installed → rebooting → idle
                ↓             ↓           ↓           ↓
              error ─────────────────────────────────→ idle
    """

    IDLE = "idle"
    DOWNLOADING = "downloading"
    INSTALLING = "installing"
    INSTALLED = "installed"
    REBOOTING = "rebooting"
    ERROR = "error"
