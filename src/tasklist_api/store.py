"""In-memory task storage owned by a single application instance."""
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


class TaskStore:
    """Ordered, unbounded sequence of free-text tasks.

    Tasks have no identifier and no uniqueness constraint. The sequence lives
    as long as the store object, so a restart discards everything.
    """

    def __init__(self):
        self._tasks: List[Optional[str]] = []

    def submit(self, text: Optional[str]) -> None:
        """Append a task. Nothing is validated, ``None`` included."""
        self._tasks.append(text)
        logger.debug(f"Task appended, {len(self._tasks)} task(s) stored")

    def list(self) -> List[Optional[str]]:
        """Return the tasks in insertion order."""
        return list(self._tasks)

    def clear(self) -> None:
        self._tasks.clear()

    def __len__(self) -> int:
        return len(self._tasks)
