# issuetracker/services/board.py
"""
Kanban projection of tasks and board moves with rollback.

A board is built from the task list the API returns. A move is applied to
the in-memory columns first and then persisted; if persisting fails the
columns are restored from the last snapshot the server confirmed.
"""

import copy
import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from issuetracker.models.task import TaskStatus

logger = logging.getLogger(__name__)

COLUMN_DEFINITIONS = [
    (TaskStatus.TODO, "To Do"),
    (TaskStatus.IN_PROGRESS, "In Progress"),
    (TaskStatus.DONE, "Done"),
]


def _status_of(task: Mapping) -> str:
    status = task.get("status")
    return status.value if isinstance(status, TaskStatus) else str(status)


def _key_of(task: Mapping) -> str:
    return task.get("id") or task.get("task_key")


def build_columns(tasks: Iterable[Mapping]) -> List[Dict]:
    """Partition tasks into the three fixed columns, preserving input order."""
    columns = [
        {"key": status.value, "name": name, "status": status.value, "tasks": []}
        for status, name in COLUMN_DEFINITIONS
    ]
    by_status = {column["status"]: column for column in columns}
    for task in tasks:
        column = by_status.get(_status_of(task))
        if column is not None:
            column["tasks"].append(task)
    return columns


class KanbanBoard:
    def __init__(self, tasks: Iterable[Mapping]):
        self.columns = build_columns(dict(task) for task in tasks)
        self._snapshot = copy.deepcopy(self.columns)

    def column(self, status) -> Dict:
        status = TaskStatus(status).value
        for column in self.columns:
            if column["status"] == status:
                return column
        raise KeyError(status)

    def locate(self, task_key: str):
        """Return (column, index) of a task, or (None, -1)."""
        for column in self.columns:
            for index, task in enumerate(column["tasks"]):
                if _key_of(task) == task_key:
                    return column, index
        return None, -1

    def task_keys(self, status) -> List[str]:
        return [_key_of(task) for task in self.column(status)["tasks"]]

    def move_local(self, task_key: str, target, position: Optional[int] = None) -> Dict:
        source, index = self.locate(task_key)
        if source is None:
            raise KeyError(task_key)
        destination = self.column(target)

        task = source["tasks"].pop(index)
        task["status"] = destination["status"]
        if position is None:
            destination["tasks"].append(task)
        else:
            destination["tasks"].insert(position, task)
        return task

    def commit(self):
        """Accept the current columns as the last known-good state."""
        self._snapshot = copy.deepcopy(self.columns)

    def rollback(self):
        self.columns = copy.deepcopy(self._snapshot)


class MoveCommand:
    """
    Move one task to another column.

    ``persist(task_key, status)`` performs the server write and raises on
    failure. ``execute`` returns True when the move stuck, False when it
    was rolled back; the exception is kept on ``error``.
    """

    def __init__(self, board: KanbanBoard, task_key: str, target,
                 persist: Callable[[str, str], object], position: Optional[int] = None):
        self.board = board
        self.task_key = task_key
        self.target = TaskStatus(target)
        self.persist = persist
        self.position = position
        self.error: Optional[Exception] = None

    def execute(self) -> bool:
        source, _ = self.board.locate(self.task_key)
        if source is None:
            raise KeyError(self.task_key)

        if source["status"] == self.target.value:
            # Reorder inside a column never reaches the server
            self.board.move_local(self.task_key, self.target, self.position)
            self.board.commit()
            return True

        self.board.move_local(self.task_key, self.target, self.position)
        try:
            self.persist(self.task_key, self.target.value)
        except Exception as exc:
            logger.warning("Move of %s to %s failed, restoring board: %s",
                           self.task_key, self.target.value, exc)
            self.error = exc
            self.board.rollback()
            return False

        self.board.commit()
        return True
