"""Update lifecycle states.

Each state is an immutable value. ``handle`` does the state's work
against the agent and returns ``(next_state, interrupted)``; the agent
loop stops advancing as soon as ``interrupted`` is true. ``to_map``
is the snapshot handed to state reporting.

    Idle ──(update request)──→ Downloading → Installing → Installed → Reboot
                                    │             │            │         │
                                    └─────────────┴────────────┴─────────┴──→ Error
"""

import logging
from typing import TYPE_CHECKING, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from updateagent.models.metadata import UpdateMetadata
from updateagent.models.status import StageEnum

if TYPE_CHECKING:
    from updateagent.services.agent import UpdateAgent

logger = logging.getLogger("updateagent.states")


class IdleState(BaseModel):
    """Nothing in progress; waits for an update request."""

    model_config = ConfigDict(frozen=True)

    async def handle(self, agent: "UpdateAgent") -> tuple["State", bool]:
        return IdleState(), True

    def to_map(self) -> dict:
        return {"status": StageEnum.IDLE.value}

    def update_metadata(self) -> Optional[UpdateMetadata]:
        return None


class DownloadingState(BaseModel):
    """Fetches every object of the package."""

    model_config = ConfigDict(frozen=True)

    metadata: UpdateMetadata

    async def handle(self, agent: "UpdateAgent") -> tuple["State", bool]:
        for obj in self.metadata.objects:
            if agent.is_cancelled():
                logger.info("Download cancelled")
                return IdleState(), True

            try:
                await agent.downloader.download_object(self.metadata, obj)
            except Exception as e:
                logger.error(f"Failed to download {obj.filename}: {e}")
                return ErrorState(message=str(e), metadata=self.metadata), False

        return InstallingState(metadata=self.metadata), False

    def to_map(self) -> dict:
        return {"status": StageEnum.DOWNLOADING.value}

    def update_metadata(self) -> Optional[UpdateMetadata]:
        return self.metadata


class InstallingState(BaseModel):
    """Writes every object through the install mode it names.

    Objects are installed one after another; each gets a fresh backend
    driven through setup → install → cleanup. Cancellation is honoured
    between objects, never in the middle of one.
    """

    model_config = ConfigDict(frozen=True)

    metadata: UpdateMetadata

    async def handle(self, agent: "UpdateAgent") -> tuple["State", bool]:
        for obj in self.metadata.objects:
            if agent.is_cancelled():
                logger.info("Installation cancelled")
                return IdleState(), True

            try:
                backend = agent.install_modes.get_object(obj.mode)
                backend.load_object(obj)
                await _install_object(backend)
            except Exception as e:
                logger.error(f"Failed to install {obj.filename} ({obj.mode}): {e}")
                return ErrorState(message=str(e), metadata=self.metadata), False

            logger.info(f"Installed {obj.filename} ({obj.mode})")

        return InstalledState(metadata=self.metadata), False

    def to_map(self) -> dict:
        return {"status": StageEnum.INSTALLING.value}

    def update_metadata(self) -> Optional[UpdateMetadata]:
        return self.metadata


async def _install_object(backend) -> None:
    try:
        await backend.setup()
        await backend.install()
    except Exception:
        # Report the install failure, not a follow-up cleanup failure
        try:
            await backend.cleanup()
        except Exception as cleanup_error:
            logger.error(f"Cleanup after failed install also failed: {cleanup_error}")
        raise

    await backend.cleanup()


class InstalledState(BaseModel):
    """Installation finished; activates the newly written bank."""

    model_config = ConfigDict(frozen=True)

    metadata: Optional[UpdateMetadata] = None

    async def handle(self, agent: "UpdateAgent") -> tuple["State", bool]:
        try:
            await agent.activator.activate()
        except Exception as e:
            logger.error(f"Activation failed: {e}")
            return ErrorState(message=str(e), metadata=self.metadata), False

        return RebootState(), False

    def to_map(self) -> dict:
        return {"status": StageEnum.INSTALLED.value}

    def update_metadata(self) -> Optional[UpdateMetadata]:
        return self.metadata


class RebootState(BaseModel):
    """Restarts the device into the activated bank.

    The agent stops advancing here; what happens after the restart is
    decided by the next boot.
    """

    model_config = ConfigDict(frozen=True)

    async def handle(self, agent: "UpdateAgent") -> tuple["State", bool]:
        try:
            await agent.rebooter.reboot()
        except Exception as e:
            logger.error(f"Reboot failed: {e}")
            return ErrorState(message=str(e)), False

        return IdleState(), True

    def to_map(self) -> dict:
        return {"status": StageEnum.REBOOTING.value}

    def update_metadata(self) -> Optional[UpdateMetadata]:
        return None


class ErrorState(BaseModel):
    """A state failed; carries the failure message verbatim.

    The agent stops here so the failure stays visible until the next
    update request starts a new run.
    """

    model_config = ConfigDict(frozen=True)

    message: str = Field(..., description="Error message of the failed step")
    metadata: Optional[UpdateMetadata] = None

    async def handle(self, agent: "UpdateAgent") -> tuple["State", bool]:
        logger.error(f"Update failed: {self.message}")
        return self, True

    def to_map(self) -> dict:
        return {"status": StageEnum.ERROR.value, "error-message": self.message}

    def update_metadata(self) -> Optional[UpdateMetadata]:
        return self.metadata


State = Union[
    IdleState,
    DownloadingState,
    InstallingState,
    InstalledState,
    RebootState,
    ErrorState,
]
