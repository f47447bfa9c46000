from fastapi import Request

from tasklist_api.config.settings import Settings
from tasklist_api.store import TaskStore


def get_task_store(request: Request) -> TaskStore:
    """Task store dependency, owned by the running app."""
    return request.app.state.task_store


def get_app_settings(request: Request) -> Settings:
    """Settings dependency, as passed to ``create_app``."""
    return request.app.state.settings
