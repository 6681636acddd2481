"""FastAPI application for the update agent."""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
import uvicorn

from updateagent.api.routes import router
from updateagent.installmodes import flash
from updateagent.installmodes.registry import InstallModeRegistry
from updateagent.models.settings import AgentSettings, load_settings
from updateagent.services.activation import CommandActivator, CommandRebooter
from updateagent.services.agent import UpdateAgent
from updateagent.services.download import DownloadService
from updateagent.services.reporter import ReportService
from updateagent.services.state_manager import StateManager
from updateagent.utils.command import CommandExecutor
from updateagent.utils.logging import setup_logger


def build_agent(settings: AgentSettings) -> UpdateAgent:
    """Wire the agent and its install modes from settings.

    Raises:
        ExecutableNotFoundError: If a registered install mode lacks a tool
    """
    # Payloads are referenced by sha256sum relative to the download dir
    executor = CommandExecutor(cwd=settings.download_dir)

    install_modes = InstallModeRegistry()
    flash.register(install_modes, executor=executor, fs_root=Path(settings.fs_root))
    install_modes.check_requirements()

    return UpdateAgent(
        settings=settings,
        install_modes=install_modes,
        activator=CommandActivator(executor, settings.activate_command),
        rebooter=CommandRebooter(executor, settings.reboot_command),
        downloader=DownloadService(settings),
        state_manager=StateManager(),
        reporter=ReportService(settings.report_url),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown hooks.

    Startup:
    - Load settings and initialize logger
    - Create the download directory
    - Register install modes and check their requirements
    - Build the agent

    Shutdown:
    - Cancel any running update at its next safe point
    """
    settings = load_settings()
    logger = setup_logger(settings)
    logger.info("Update agent starting up...")

    Path(settings.download_dir).mkdir(parents=True, exist_ok=True)

    try:
        agent = build_agent(settings)
    except FileNotFoundError as e:
        logger.error(f"Install mode requirements not met: {e}")
        raise

    app.state.agent = agent
    logger.info(
        f"Install modes: {', '.join(agent.install_modes.names())}; "
        f"ready on port {settings.port}"
    )

    yield

    logger.info("Update agent shutting down...")
    if agent.is_busy:
        agent.cancel()


app = FastAPI(
    title="Update Agent",
    description="Over-the-air update agent for embedded Linux devices",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "updateagent", "version": "1.0.0"}


def main():
    """Main entry point for running the server."""
    settings = load_settings()
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
