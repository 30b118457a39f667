# issuetracker/services/workflow.py
"""
Task status state machine.

Every status change goes through ``TRANSITIONS``; anything not listed
there is rejected with ``InvalidTransitionError``.
"""

import enum
from datetime import datetime
from typing import Optional

from issuetracker.models.task import Task, TaskStatus
from issuetracker.utils.time import utc_now


class TaskAction(str, enum.Enum):
    START_FIXING = "start_fixing"
    MARK_FIXED = "mark_fixed"
    QA_PASS = "qa_pass"
    QA_REOPEN = "qa_reopen"


# action -> (statuses it may start from, resulting status)
TRANSITIONS = {
    TaskAction.START_FIXING: ({TaskStatus.TODO}, TaskStatus.IN_PROGRESS),
    TaskAction.MARK_FIXED: ({TaskStatus.TODO, TaskStatus.IN_PROGRESS}, TaskStatus.DONE),
    TaskAction.QA_PASS: ({TaskStatus.DONE}, TaskStatus.DONE),
    TaskAction.QA_REOPEN: ({TaskStatus.DONE}, TaskStatus.TODO),
}

# Plain status moves (board drags, developer updates) that map onto an action
_MOVES = {
    (source, target): action
    for action, (sources, target) in TRANSITIONS.items()
    for source in sources
    if source != target
}


class InvalidTransitionError(ValueError):
    def __init__(self, current: TaskStatus, target: Optional[TaskStatus] = None,
                 action: Optional[TaskAction] = None):
        self.current = TaskStatus(current)
        self.target = TaskStatus(target) if target is not None else None
        self.action = action
        if action is not None:
            message = f"Cannot {action.value.replace('_', ' ')} a task in status '{self.current.value}'"
        else:
            message = f"Cannot move a task from '{self.current.value}' to '{self.target.value}'"
        super().__init__(message)


def check_transition(action: TaskAction, current: TaskStatus) -> TaskStatus:
    """Return the status ``action`` leads to from ``current``."""
    action = TaskAction(action)
    sources, target = TRANSITIONS[action]
    if TaskStatus(current) not in sources:
        raise InvalidTransitionError(current, target, action)
    return target


def action_for_move(current: TaskStatus, target: TaskStatus) -> TaskAction:
    """Find the action behind a raw status change."""
    current, target = TaskStatus(current), TaskStatus(target)
    try:
        return _MOVES[(current, target)]
    except KeyError:
        raise InvalidTransitionError(current, target) from None


def allowed_targets(current: TaskStatus):
    current = TaskStatus(current)
    return [target for (source, target) in _MOVES if source == current]


def apply_status(task: Task, target: TaskStatus, resolved_at: Optional[datetime] = None) -> Task:
    """Write ``target`` onto ``task`` keeping ``resolved_at`` consistent."""
    target = TaskStatus(target)
    previous = TaskStatus(task.status) if task.status is not None else None

    task.status = target
    if target == TaskStatus.DONE:
        if previous != TaskStatus.DONE or task.resolved_at is None:
            task.resolved_at = resolved_at or utc_now()
    else:
        task.resolved_at = None
    return task
