# issuetracker/services/task_service.py
"""
Task lifecycle operations shared by the task, project-manager and
dashboard routers.

Routers own HTTP concerns (auth, status codes); this module owns the
state machine, the comment log and key assignment, and raises typed
errors (``InvalidTransitionError``, ``TaskKeyConflictError``,
``AssigneeError``) that routers translate.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, Query

from issuetracker.models import (
    CommentType, Project, Task, TaskComment, TaskPriority, TaskStatus, User, UserRole,
)
from issuetracker.services.task_keys import TaskKeyConflictError, next_task_key
from issuetracker.services.workflow import (
    InvalidTransitionError, TaskAction, action_for_move, apply_status, check_transition,
)
from issuetracker.utils.comment_log import (
    CommentEvent, append_comment, decode_comments, extract_expected_result,
    recent_events, render_comment_lines, synthesize_pass_event,
)
from issuetracker.utils.time import utc_now

logger = logging.getLogger(__name__)


class AssigneeError(ValueError):
    pass


# ── Queries ──────────────────────────────────────────────────────────────

def tasks_query(db: Session, user: User) -> Query:
    """Tasks visible to ``user``: own tenant, or everything for MasterAdmin."""
    query = db.query(Task).join(Project, Task.project_id == Project.id)
    if user.role != UserRole.MASTER_ADMIN.value:
        query = query.filter(Project.company_code == user.company_code)
    return query


def find_task(db: Session, identifier: str, user: User) -> Optional[Task]:
    """Look a task up by key (exact, then case-insensitive) or numeric id."""
    identifier = (identifier or "").strip()
    query = tasks_query(db, user)

    task = query.filter(Task.task_key == identifier).order_by(Task.id).first()
    if task is None:
        task = query.filter(func.upper(Task.task_key) == identifier.upper()).order_by(Task.id).first()
    if task is None and identifier.isdigit():
        task = query.filter(Task.id == int(identifier)).first()
    return task


def tasks_for_user(db: Session, user: User) -> List[Task]:
    """Role-scoped "my tasks" list."""
    query = tasks_query(db, user)
    role = user.role
    if role == UserRole.DEVELOPER.value:
        query = query.filter(Task.developer_id == user.id)
    elif role == UserRole.QA_TESTER.value:
        query = query.filter(Task.qa_id == user.id)
    elif role == UserRole.PROJECT_MANAGER.value:
        query = query.filter(Project.manager_id == user.id)
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def bugs_for_user(db: Session, user: User) -> List[Task]:
    """Developers see what is still theirs to fix; QA sees everything they verify."""
    query = tasks_query(db, user)
    if user.role == UserRole.DEVELOPER.value:
        query = query.filter(Task.developer_id == user.id, Task.status != TaskStatus.DONE)
    elif user.role == UserRole.QA_TESTER.value:
        query = query.filter(Task.qa_id == user.id)
    else:
        return []
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def tests_for_user(db: Session, user: User) -> List[Task]:
    """QA work queue: assigned tasks that have not reached done."""
    if user.role != UserRole.QA_TESTER.value:
        return []
    return (
        tasks_query(db, user)
        .filter(Task.qa_id == user.id, Task.status != TaskStatus.DONE)
        .order_by(Task.created_at.desc(), Task.id.desc())
        .all()
    )


# ── Permissions ──────────────────────────────────────────────────────────

def manages_project(user: User, project: Project) -> bool:
    return user.is_admin or project.manager_id == user.id


def can_work_as(user: User, task: Task, slot: str) -> bool:
    """``slot`` is "developer" or "qa"."""
    if user.is_admin or task.project.manager_id == user.id:
        return True
    assigned_id = task.developer_id if slot == "developer" else task.qa_id
    return assigned_id is not None and assigned_id == user.id


# ── Creation ─────────────────────────────────────────────────────────────

def resolve_assignee(db: Session, user_id: Optional[int], role: UserRole, company_code: str,
                     project: Optional[Project] = None) -> Optional[User]:
    if user_id is None:
        return None
    user = db.query(User).filter(User.id == user_id, User.company_code == company_code).first()
    if user is None or not user.is_active:
        raise AssigneeError(f"User {user_id} not found or inactive")
    if user.role != role.value:
        raise AssigneeError(f"User {user.name} is not a {role.value}")
    if project is not None and user not in project.members:
        raise AssigneeError(f"User {user.name} is not a member of project {project.name}")
    return user


def create_task(
    db: Session,
    project: Project,
    reporter: User,
    title: str,
    description: str = "",
    steps: Optional[str] = None,
    priority: TaskPriority = TaskPriority.MEDIUM,
    browser: Optional[str] = None,
    os: Optional[str] = None,
    developer: Optional[User] = None,
    qa: Optional[User] = None,
) -> Task:
    task_key = next_task_key(db, project)
    task = Task(
        task_key=task_key,
        title=title.strip(),
        description=description or "",
        steps=steps,
        priority=TaskPriority(priority),
        status=TaskStatus.TODO,
        browser=browser or "",
        os=os or "",
        project_id=project.id,
        project_name=project.name,
        developer_id=developer.id if developer else None,
        developer_name=developer.name if developer else None,
        qa_id=qa.id if qa else None,
        qa_name=qa.name if qa else None,
        reported_by_id=reporter.id,
        reported_by_name=reporter.name,
    )
    db.add(task)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Task key %s already taken", task_key)
        raise TaskKeyConflictError(task_key)

    db.refresh(task)
    logger.info("Created task %s in project %s by user %s", task.task_key, project.id, reporter.id)
    return task


def set_assignee(task: Task, slot: str, user: Optional[User]):
    if slot == "developer":
        task.developer_id = user.id if user else None
        task.developer_name = user.name if user else None
    else:
        task.qa_id = user.id if user else None
        task.qa_name = user.name if user else None


# ── Workflow actions ─────────────────────────────────────────────────────

def _save(db: Session, task: Task) -> Task:
    task.updated_at = utc_now()
    db.commit()
    db.refresh(task)
    return task


def start_fixing(db: Session, task: Task) -> Task:
    target = check_transition(TaskAction.START_FIXING, task.status)
    apply_status(task, target)
    logger.info("Task %s: start fixing", task.task_key)
    return _save(db, task)


def mark_fixed(db: Session, task: Task, resolved_at: Optional[datetime] = None) -> Task:
    target = check_transition(TaskAction.MARK_FIXED, task.status)
    apply_status(task, target, resolved_at=resolved_at)
    logger.info("Task %s: marked fixed", task.task_key)
    return _save(db, task)


def developer_update(db: Session, task: Task, status: TaskStatus,
                     resolved_at: Optional[datetime] = None) -> Task:
    """Raw status write from the developer views, limited to developer actions."""
    action = action_for_move(task.status, status)
    if action == TaskAction.START_FIXING:
        return start_fixing(db, task)
    if action == TaskAction.MARK_FIXED:
        return mark_fixed(db, task, resolved_at=resolved_at)
    raise InvalidTransitionError(task.status, status)


def record_comment(task: Task, comment_type: CommentType, message: str,
                   author: Optional[User] = None, when: Optional[datetime] = None) -> TaskComment:
    """Add a structured comment and render its line into the description."""
    # The text log only carries whole seconds
    when = (when or utc_now()).replace(microsecond=0)
    message = (message or "").strip()
    comment = TaskComment(
        comment_type=comment_type,
        message=message,
        author_id=author.id if author else None,
        author_name=author.name if author else None,
        created_at=when,
    )
    task.comments.append(comment)
    task.description = append_comment(task.description, comment_type, message, when)
    return comment


def qa_pass(db: Session, task: Task, author: User, comment: str = "",
            when: Optional[datetime] = None) -> Task:
    target = check_transition(TaskAction.QA_PASS, task.status)
    record_comment(task, CommentType.PASS, comment, author, when)
    apply_status(task, target)
    logger.info("Task %s: QA pass by %s", task.task_key, author.id)
    return _save(db, task)


def qa_reopen(db: Session, task: Task, author: User, comment: str = "",
              when: Optional[datetime] = None) -> Task:
    target = check_transition(TaskAction.QA_REOPEN, task.status)
    record_comment(task, CommentType.REOPEN, comment, author, when)
    apply_status(task, target)
    logger.info("Task %s: QA reopen by %s", task.task_key, author.id)
    return _save(db, task)


def change_status(db: Session, task: Task, status: TaskStatus) -> Task:
    """Board/PM status write: any legal move, without a comment."""
    action = action_for_move(task.status, status)
    apply_status(task, TaskStatus(status))
    logger.info("Task %s: %s via status update", task.task_key, action.value)
    return _save(db, task)


# ── History ──────────────────────────────────────────────────────────────

def task_history(task: Task) -> List[CommentEvent]:
    """
    Comment events of one task in append order.

    Structured comments win; tasks that only carry the text log (imported
    or written before comments were stored) are decoded from their
    description. A task that reached done with no comment at all gets one
    implicit pass event at ``resolved_at``.
    """
    if task.comments:
        events = [
            CommentEvent(
                comment_type=CommentType(comment.comment_type),
                timestamp=comment.created_at,
                message=comment.message,
                author_name=comment.author_name,
            )
            for comment in task.comments
        ]
    else:
        events = decode_comments(task.description)

    if not events and task.resolved_at is not None and task.status == TaskStatus.DONE:
        events = [synthesize_pass_event(task.resolved_at)]

    for event in events:
        event.task_key = task.task_key
        event.task_title = task.title
    return events


def recent_activity(tasks: Iterable[Task], limit: Optional[int] = None) -> List[CommentEvent]:
    pooled = []
    for task in tasks:
        pooled.extend(task_history(task))
    return recent_events(pooled, limit)


# ── QA test-case view ────────────────────────────────────────────────────

def is_qa_case(task: Task) -> bool:
    return task.qa_id is not None or bool(task_history(task))


def qa_case_view(task: Task) -> dict:
    history = [event for event in task_history(task) if not event.synthesized]
    last = history[-1] if history else None

    display_status = "Not Run"
    if task.status == TaskStatus.DONE:
        display_status = "Pass"
    if last is not None and last.comment_type == CommentType.REOPEN:
        display_status = "Fail"

    steps = [line.strip() for line in (task.steps or "").split("\n") if line.strip()]
    return {
        "task_key": task.task_key,
        "title": task.title,
        "priority": task.priority,
        "status": display_status,
        "task_status": task.status,
        "steps": steps,
        "expected_result": extract_expected_result(task.description),
        "notes": render_comment_lines(history),
        "executed_by": task.qa_name or task.reported_by_name or "Unknown",
        "last_executed_on": last.timestamp if last else task.resolved_at,
        "assigned_to": task.qa_id,
    }


def execute_qa_case(db: Session, task: Task, author: User, result: str, notes: str = "") -> Task:
    if result == "Pass":
        return qa_pass(db, task, author, notes)
    # Fail and Blocked both send the task back
    return qa_reopen(db, task, author, notes)


def kanban_card(task: Task) -> dict:
    return {
        "id": task.task_key,
        "title": task.title,
        "description": task.description or "",
        "assignee": " & ".join(name for name in (task.developer_name, task.qa_name) if name),
        "priority": task.priority,
        "project_id": task.project_id,
        "project_name": task.project_name,
        "status": task.status,
    }
