from fastapi import APIRouter, Depends

from tasklist_api.config.settings import Settings
from tasklist_api.dependencies import get_app_settings, get_task_store
from tasklist_api.schemas import HealthResponse
from tasklist_api.store import TaskStore

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_app_settings),
    store: TaskStore = Depends(get_task_store),
):
    """
    Health check endpoint for monitoring API status.

    Returns the deployment mode and how many tasks the process currently holds.
    """
    return HealthResponse(
        status="ok",
        app_name=settings.app_name,
        deployment_mode=settings.deployment_mode,
        task_count=len(store),
    )
