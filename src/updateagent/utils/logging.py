"""Logging setup for the update agent.

All modules log through children of the ``updateagent`` logger
(``updateagent.installmodes.flash``, ``updateagent.agent`` ...), so the
handlers installed here see every component.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from updateagent.models.settings import AgentSettings

LOGGER_NAME = "updateagent"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"  # ISO 8601
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 2


def setup_logger(settings: AgentSettings, name: str = LOGGER_NAME) -> logging.Logger:
    """Configure the agent logger from settings.

    Logs go to the console and, unless ``settings.log_file`` is empty, to
    a rotating file. Calling it again replaces the handlers, so a new
    level or log file takes effect without duplicating output.

    Args:
        settings: Agent settings (``log_file``, ``log_level``)
        name: Root logger name of the agent

    Returns:
        The configured logger
    """
    level = logging.getLevelName(settings.log_level)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler()]

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
            )
        )

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
