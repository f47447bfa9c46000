"""HTML rendering of the task page."""
from typing import Optional, Sequence

from jinja2 import Environment

PAGE_TITLE = "To-Do List"

_environment = Environment(autoescape=True)

PAGE_TEMPLATE = _environment.from_string(
    """\
<!doctype html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ title }}</title>
</head>
<body>
    <h1>{{ title }}</h1>
    <form action="/add" method="POST">
        <input type="text" name="task" placeholder="Enter a new task">
        <button type="submit">Add</button>
    </form>
    <ul>
    {% for task in tasks %}
        <li>{{ task if task is not none else "" }}</li>
    {% endfor %}
    </ul>
</body>
</html>
"""
)


def render_task_page(tasks: Sequence[Optional[str]]) -> str:
    return PAGE_TEMPLATE.render(title=PAGE_TITLE, tasks=tasks)
