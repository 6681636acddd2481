"""API route handlers for the update agent."""

import logging

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import JSONResponse

from updateagent.api.models import StateResponse, SuccessResponse
from updateagent.models.metadata import UpdateMetadata
from updateagent.services.agent import UpdateAgent
from updateagent.services.state_manager import StateManager
from updateagent.services.states import DownloadingState

router = APIRouter(prefix="/api/v1.0")
logger = logging.getLogger("updateagent.api")


@router.get("/state", response_model=StateResponse)
async def get_state():
    """GET /api/v1.0/state - Query the current update state.

    Response format:
        {
            "code": 200,
            "msg": "success",
            "data": {"status": "error", "error-message": "flash_erase exited with status 1"}
        }
    """
    state_manager = StateManager()
    return StateResponse(data=state_manager.get_status())


@router.post("/update", response_model=SuccessResponse)
async def post_update(
    metadata: UpdateMetadata, request: Request, background_tasks: BackgroundTasks
):
    """POST /api/v1.0/update - Start downloading and installing a package.

    Args:
        metadata: UpdateMetadata of the package to install
        request: Incoming request (carries the agent on app.state)
        background_tasks: FastAPI background tasks

    Returns:
        SuccessResponse if the update starts, code 409 if one is running
    """
    agent: UpdateAgent = request.app.state.agent

    if agent.is_busy:
        status = StateManager().get_status()["status"]
        return JSONResponse(
            status_code=200,
            content={
                "code": 409,
                "msg": f"Update already in progress: {status}",
                "status": status,
            },
        )

    # Busy before the task starts
    agent.reserve()
    background_tasks.add_task(_update_workflow, agent, metadata)

    return JSONResponse(
        status_code=200,
        content={"code": 200, "msg": "success", "data": {"version": metadata.version}},
    )


@router.post("/cancel", response_model=SuccessResponse)
async def post_cancel(request: Request):
    """POST /api/v1.0/cancel - Stop the running update at the next safe point."""
    agent: UpdateAgent = request.app.state.agent
    agent.cancel()
    return SuccessResponse()


async def _update_workflow(agent: UpdateAgent, metadata: UpdateMetadata) -> None:
    """Background task driving the agent from download onwards."""
    try:
        final_state = await agent.run(DownloadingState(metadata=metadata))
    except RuntimeError as e:
        logger.warning(f"Update {metadata.version} not started: {e}")
        return

    logger.info(f"Update {metadata.version} stopped in state {final_state.to_map()['status']}")
