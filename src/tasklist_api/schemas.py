from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Response model for `GET /health`."""
    status: str = Field(description="Overall API status.")
    app_name: str
    deployment_mode: str
    task_count: int = Field(description="Number of tasks held in memory.")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "ok",
                "app_name": "tasklist-app",
                "deployment_mode": "local-dev",
                "task_count": 2,
            }
        }
    )


# `GET /tasks` returns the raw sequence; a form post without a `task` field
# is stored as null.
TaskListResponse = list[Optional[str]]
