from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from tasklist_api.dependencies import get_task_store
from tasklist_api.rendering import render_task_page
from tasklist_api.schemas import TaskListResponse
from tasklist_api.store import TaskStore

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def show_tasks_page(store: TaskStore = Depends(get_task_store)):
    """Render the task list with a form for adding another task."""
    return HTMLResponse(content=render_task_page(store.list()))


@router.post("/add")
async def add_task(request: Request, store: TaskStore = Depends(get_task_store)):
    """
    Append the submitted task and send the browser back to the page.

    The raw form is read so an empty `task` stays an empty string, while a
    post without the field at all appends null.
    """
    form = await request.form()
    store.submit(form.get("task"))
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/tasks", response_model=TaskListResponse)
async def list_tasks(store: TaskStore = Depends(get_task_store)):
    """Return every task in submission order."""
    return store.list()
