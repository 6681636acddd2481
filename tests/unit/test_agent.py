"""Unit tests for UpdateAgent (the driving loop)."""

import pytest
from unittest.mock import AsyncMock, MagicMock, call

from updateagent.installmodes import flash
from updateagent.installmodes.registry import InstallModeRegistry
from updateagent.models.settings import AgentSettings
from updateagent.services.agent import UpdateAgent
from updateagent.services.state_manager import StateManager
from updateagent.services.states import (
    DownloadingState,
    ErrorState,
    IdleState,
    InstalledState,
    InstallingState,
    RebootState,
)
from updateagent.utils.command import CommandError


@pytest.fixture
def install_modes(mock_executor, mock_mtd_utils):
    registry = InstallModeRegistry()
    registry.register(
        "flash",
        lambda: flash.FlashObject(executor=mock_executor, mtd_utils=mock_mtd_utils),
    )
    return registry


@pytest.fixture
def activator():
    activator = MagicMock()
    activator.activate = AsyncMock()
    return activator


@pytest.fixture
def rebooter():
    rebooter = MagicMock()
    rebooter.reboot = AsyncMock()
    return rebooter


@pytest.fixture
def downloader():
    downloader = MagicMock()
    downloader.download_object = AsyncMock()
    return downloader


@pytest.fixture
def reporter():
    reporter = MagicMock()
    reporter.report_state = AsyncMock()
    return reporter


@pytest.fixture
def agent(install_modes, activator, rebooter, downloader, reporter):
    return UpdateAgent(
        settings=AgentSettings(),
        install_modes=install_modes,
        activator=activator,
        rebooter=rebooter,
        downloader=downloader,
        reporter=reporter,
    )


def _reported_statuses(reporter):
    return [c.args[0].to_map()["status"] for c in reporter.report_state.await_args_list]


@pytest.mark.unit
class TestUpdateAgent:
    """End-to-end runs of the state machine with mocked collaborators."""

    @pytest.mark.asyncio
    async def test_full_update_with_nand(
        self, agent, sample_metadata, mock_executor, mock_mtd_utils, activator, rebooter, reporter, sha256sum
    ):
        mock_mtd_utils.is_nand.return_value = True

        final_state = await agent.run(DownloadingState(metadata=sample_metadata))

        assert final_state == IdleState()
        assert mock_executor.execute.await_args_list == [
            call("flash_erase /dev/mtd9 0 0"),
            call(f"nandwrite -p /dev/mtd9 {sha256sum}"),
        ]
        activator.activate.assert_awaited_once()
        rebooter.reboot.assert_awaited_once()
        assert _reported_statuses(reporter) == [
            "downloading",
            "installing",
            "installed",
            "rebooting",
            "idle",
        ]

    @pytest.mark.asyncio
    async def test_activation_precedes_reboot(self, agent, sample_metadata, activator, rebooter):
        order = []
        activator.activate.side_effect = lambda: order.append("activate")
        rebooter.reboot.side_effect = lambda: order.append("reboot")

        await agent.run(InstalledState(metadata=sample_metadata))

        assert order == ["activate", "reboot"]

    @pytest.mark.asyncio
    async def test_install_failure_stops_in_error(
        self, agent, sample_metadata, mock_executor, mock_mtd_utils, activator, reporter
    ):
        mock_mtd_utils.is_nand.return_value = False
        mock_executor.execute.side_effect = CommandError("flash_erase /dev/mtd9 0 0", 1, b"")

        final_state = await agent.run(InstallingState(metadata=sample_metadata))

        expected = {"status": "error", "error-message": "flash_erase exited with status 1"}
        assert final_state == ErrorState(
            message="flash_erase exited with status 1", metadata=sample_metadata
        )
        assert mock_executor.execute.await_count == 1
        activator.activate.assert_not_awaited()
        assert _reported_statuses(reporter) == ["installing", "error"]
        assert StateManager().get_status() == expected

    @pytest.mark.asyncio
    async def test_next_run_clears_error(self, agent, sample_metadata, activator):
        activator.activate.side_effect = [CommandError("fw_setenv active_bank 1", 1, b""), None]

        first = await agent.run(InstalledState(metadata=sample_metadata))
        second = await agent.run(InstalledState(metadata=sample_metadata))

        assert isinstance(first, ErrorState)
        assert second == IdleState()
        assert StateManager().get_status() == {"status": "idle"}

    @pytest.mark.asyncio
    async def test_states_are_recorded_in_state_manager(self, agent, sample_metadata):
        seen = []
        manager = StateManager()
        record = manager.set_state
        manager.set_state = lambda state: (seen.append(type(state)), record(state))

        await agent.run(InstalledState(metadata=sample_metadata))

        assert seen == [InstalledState, RebootState, IdleState]
        assert manager.get_status() == {"status": "idle"}

    @pytest.mark.asyncio
    async def test_idle_stops_immediately(self, agent, downloader, reporter):
        final_state = await agent.run(IdleState())

        assert final_state == IdleState()
        assert _reported_statuses(reporter) == ["idle"]
        downloader.download_object.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancel_during_download(self, agent, sample_metadata, downloader, activator):
        downloader.download_object.side_effect = lambda metadata, obj: agent.cancel()
        two = sample_metadata.model_copy(update={"objects": sample_metadata.objects * 2})

        final_state = await agent.run(DownloadingState(metadata=two))

        assert final_state == IdleState()
        assert downloader.download_object.await_count == 1
        activator.activate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancel_flag_cleared_on_new_run(self, agent, sample_metadata, rebooter):
        agent.cancel()

        await agent.run(RebootState())

        assert agent.is_cancelled() is False
        rebooter.reboot.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_busy_while_running(self, agent, sample_metadata, activator):
        observed = []

        async def activate():
            observed.append(agent.is_busy)
            with pytest.raises(RuntimeError, match="already in progress"):
                await agent.run(IdleState())

        activator.activate.side_effect = activate

        await agent.run(InstalledState(metadata=sample_metadata))

        assert observed == [True]
        assert agent.is_busy is False

    def test_reserve_marks_busy(self, agent):
        agent.reserve()

        assert agent.is_busy is True

    @pytest.mark.asyncio
    async def test_run_releases_reservation(self, agent, sample_metadata, activator):
        observed = []
        activator.activate.side_effect = lambda: observed.append(agent.is_busy)
        agent.reserve()

        await agent.run(InstalledState(metadata=sample_metadata))

        assert observed == [True]
        assert agent.is_busy is False
