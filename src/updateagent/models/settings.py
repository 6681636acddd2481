"""Agent settings loaded from a JSON file."""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

DEFAULT_CONFIG_PATH = "/etc/updateagent.json"
CONFIG_ENV_VAR = "UPDATEAGENT_CONFIG"


class AgentSettings(BaseModel):
    """Runtime configuration of the update agent.

    Example (/etc/updateagent.json):
        {
            "server_address": "https://api.updatehub.io",
            "download_dir": "/tmp/updateagent",
            "activate_command": "fw_setenv active_bank 1"
        }
    """

    server_address: str = Field(
        default="http://localhost:8080",
        pattern=r"^https?://.+",
        description="Base URL objects are downloaded from",
    )
    report_url: Optional[str] = Field(
        None, description="Endpoint receiving state reports (disabled if None)"
    )
    download_dir: str = Field(
        default="./tmp", description="Directory holding downloaded objects"
    )
    log_file: str = Field(
        default="./logs/updateagent.log", description="Rotating log file (console only if empty)"
    )
    log_level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR)$")
    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=8088, gt=0, lt=65536, description="HTTP bind port")
    activate_command: str = Field(
        default="updatehub-active-set 1",
        description="Command switching the active/inactive partition",
    )
    reboot_command: str = Field(default="reboot", description="Command rebooting the device")
    fs_root: str = Field(default="/", description="Root holding /proc and /sys")


def load_settings(path: Optional[str] = None) -> AgentSettings:
    """Load settings from a JSON file.

    Args:
        path: Settings file; falls back to $UPDATEAGENT_CONFIG, then
            /etc/updateagent.json

    Returns:
        AgentSettings (defaults if the file does not exist)

    Raises:
        ValueError: If the file is not valid JSON or holds invalid values
    """
    logger = logging.getLogger("updateagent.settings")
    config_path = Path(path or os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH))

    if not config_path.exists():
        logger.info(f"No settings file at {config_path}, using defaults")
        return AgentSettings()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        settings = AgentSettings(**data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Invalid settings file {config_path}: {e}") from e

    logger.info(f"Loaded settings from {config_path}")
    return settings
