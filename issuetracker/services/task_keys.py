# issuetracker/services/task_keys.py
import logging
import re

from sqlalchemy import update
from sqlalchemy.orm import Session

from issuetracker.models.project import Project

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "TASK"

_KEY_NUMBER_RE = re.compile(r"(\d+)$")


class TaskKeyConflictError(Exception):
    def __init__(self, task_key: str):
        self.task_key = task_key
        super().__init__(f"Task key conflict: {task_key}")


def project_prefix(name: str) -> str:
    """Upper-cased initials of the project name, e.g. "Website Redesign" -> "WR"."""
    initials = "".join(word[0] for word in re.findall(r"[A-Za-z0-9]+", name or ""))
    return initials.upper()[:10] or DEFAULT_PREFIX


def key_number(task_key: str) -> int:
    """Trailing number of a task key, 0 when there is none."""
    match = _KEY_NUMBER_RE.search(task_key or "")
    return int(match.group(1)) if match else 0


def format_task_key(prefix: str, number: int) -> str:
    return f"{prefix}-{number}"


def next_task_key(db: Session, project: Project) -> str:
    """
    Reserve the next key for ``project``.

    The counter lives on the project row and is bumped with a single
    UPDATE ... RETURNING, so two creators in flight for the same project
    serialize on that row instead of reading the same "latest" task.
    """
    stmt = (
        update(Project)
        .where(Project.id == project.id)
        .values(last_task_number=Project.last_task_number + 1)
        .returning(Project.last_task_number)
        .execution_options(synchronize_session=False)
    )
    number = db.execute(stmt).scalar_one()
    task_key = format_task_key(project.key, number)
    logger.debug("Reserved task key %s for project %s", task_key, project.id)
    return task_key


def sync_task_counter(db: Session, project: Project) -> int:
    """Move the counter past keys that were imported with explicit numbers."""
    highest = max((key_number(task.task_key) for task in project.tasks), default=0)
    if highest > (project.last_task_number or 0):
        project.last_task_number = highest
        db.flush()
    return project.last_task_number
