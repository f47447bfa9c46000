from textwrap import dedent
import logging
import pydantic
from fastapi import FastAPI
from fastapi.routing import APIRoute

from tasklist_api.errors import (
    handle_broad_exceptions,
    handle_pydantic_validation_errors,
)
from tasklist_api.routers.tasks import router as tasks_router
from tasklist_api.routers.health import router as health_router
from tasklist_api.config.settings import Settings
from tasklist_api.store import TaskStore

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, store: TaskStore | None = None) -> FastAPI:
    """Create a FastAPI application.

    Each app owns its own task store; pass one in to share or inspect it.
    """
    settings = settings or Settings()

    app = FastAPI(
        title="Tasklist API",
        summary="Keep a to-do list in memory",
        version="v1",
        description=dedent(
            """\
        A single-page to-do list. Tasks are free text, kept in submission
        order, and discarded when the process restarts.

        | Endpoint | Notes |
        | --- | --- |
        | `GET /` | HTML page with the list and an add form |
        | `POST /add` | form field `task`, redirects to `/` |
        | `GET /tasks` | JSON array of tasks |
        """
        ),
        docs_url="/docs",  # "/" is the task page
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.state.settings = settings
    app.state.task_store = store if store is not None else TaskStore()
    logger.info(f"Created {settings.app_name} in {settings.deployment_mode} mode")

    app.include_router(tasks_router, tags=["tasks"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    settings = Settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
