# issuetracker/routers/tasks.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from issuetracker.database import get_db
from issuetracker.models.project import Project
from issuetracker.models.task import Task, TaskPriority, TaskStatus
from issuetracker.models.user import User, UserRole
from issuetracker.schemas.task import (
    TaskCreate, TaskUpdate, TaskOut, DeveloperStatusUpdate, QAComment,
    TaskCommentOut, CommentEventOut, QATestCaseOut, QATestExecution,
)
from issuetracker.services import task_service
from issuetracker.services.task_keys import TaskKeyConflictError
from issuetracker.services.task_service import AssigneeError
from issuetracker.services.workflow import InvalidTransitionError
from issuetracker.utils.auth import get_current_user, require_roles

logger = logging.getLogger(__name__)

router = APIRouter()

REPORTER_ROLES = (UserRole.MASTER_ADMIN, UserRole.ADMIN, UserRole.PROJECT_MANAGER, UserRole.QA_TESTER)

# Columns that stay NOT NULL; an explicit null in an update leaves them unchanged
NON_NULL_FIELDS = ("title", "description", "priority")


def domain_error(exc: Exception) -> HTTPException:
    """Translate a service-layer error into its HTTP response."""
    if isinstance(exc, (InvalidTransitionError, TaskKeyConflictError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def get_task_or_404(db: Session, identifier: str, current_user: User) -> Task:
    task = task_service.find_task(db, identifier, current_user)
    if not task:
        raise HTTPException(status_code=404, detail=f"Task {identifier} not found")
    return task


def require_slot(current_user: User, task: Task, slot: str):
    if not task_service.can_work_as(current_user, task, slot):
        label = "developer" if slot == "developer" else "QA tester"
        raise HTTPException(status_code=403, detail=f"Only the assigned {label} can do this")


@router.get("/", response_model=List[TaskOut])
def list_tasks(
    project_id: Optional[int] = None,
    status_filter: Optional[TaskStatus] = Query(default=None, alias="status"),
    priority: Optional[TaskPriority] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = task_service.tasks_query(db, current_user)
    if project_id is not None:
        query = query.filter(Task.project_id == project_id)
    if status_filter is not None:
        query = query.filter(Task.status == status_filter)
    if priority is not None:
        query = query.filter(Task.priority == priority)
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


@router.post("/", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*REPORTER_ROLES)),
):
    project = db.query(Project).filter(Project.id == task.project_id).first()
    if not project or (current_user.role != UserRole.MASTER_ADMIN.value
                       and project.company_code != current_user.company_code):
        raise HTTPException(status_code=404, detail="Project not found")
    if not (task_service.manages_project(current_user, project) or current_user in project.members):
        raise HTTPException(status_code=403, detail="You are not part of this project")

    try:
        developer = task_service.resolve_assignee(db, task.developer_id, UserRole.DEVELOPER, project.company_code)
        qa = task_service.resolve_assignee(db, task.qa_id, UserRole.QA_TESTER, project.company_code)
        return task_service.create_task(
            db,
            project,
            current_user,
            title=task.title,
            description=task.description,
            steps=task.steps,
            priority=task.priority,
            browser=task.browser,
            os=task.os,
            developer=developer,
            qa=qa,
        )
    except (AssigneeError, TaskKeyConflictError) as exc:
        raise domain_error(exc)


# Literal paths go before /{task_key}
@router.get("/test-cases", response_model=List[QATestCaseOut])
def list_test_cases(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Tasks presented as QA test cases"""
    query = task_service.tasks_query(db, current_user)
    if current_user.role == UserRole.QA_TESTER.value:
        query = query.filter(Task.qa_id == current_user.id)
    tasks = query.order_by(Task.created_at.desc(), Task.id.desc()).all()
    return [task_service.qa_case_view(task) for task in tasks if task_service.is_qa_case(task)]


@router.post("/test-cases/{task_key}/execute", response_model=QATestCaseOut)
def execute_test_case(
    task_key: str,
    execution: QATestExecution,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = get_task_or_404(db, task_key, current_user)
    require_slot(current_user, task, "qa")
    try:
        task = task_service.execute_qa_case(db, task, current_user, execution.result, execution.notes)
    except InvalidTransitionError as exc:
        raise domain_error(exc)
    return task_service.qa_case_view(task)


@router.put("/dev/update/{identifier}", response_model=TaskOut)
def developer_update(
    identifier: str,
    update: DeveloperStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Developer status write by task key or numeric id"""
    task = get_task_or_404(db, identifier, current_user)
    require_slot(current_user, task, "developer")
    try:
        return task_service.developer_update(db, task, update.status, update.resolved_at)
    except InvalidTransitionError as exc:
        raise domain_error(exc)


@router.get("/{task_key}", response_model=TaskOut)
def get_task(task_key: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return get_task_or_404(db, task_key, current_user)


@router.put("/{task_key}", response_model=TaskOut)
def update_task(
    task_key: str,
    task_update: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Edit descriptive fields and assignees; status has its own actions"""
    task = get_task_or_404(db, task_key, current_user)
    if not (task_service.manages_project(current_user, task.project) or task.reported_by_id == current_user.id):
        raise HTTPException(status_code=403, detail="Only the reporter, the project manager or an admin can edit this task")

    update_data = task_update.model_dump(exclude_unset=True)
    try:
        if "developer_id" in update_data:
            developer = task_service.resolve_assignee(
                db, update_data.pop("developer_id"), UserRole.DEVELOPER, task.project.company_code)
            task_service.set_assignee(task, "developer", developer)
        if "qa_id" in update_data:
            qa = task_service.resolve_assignee(
                db, update_data.pop("qa_id"), UserRole.QA_TESTER, task.project.company_code)
            task_service.set_assignee(task, "qa", qa)
    except AssigneeError as exc:
        db.rollback()
        raise domain_error(exc)

    for field, value in update_data.items():
        if field in NON_NULL_FIELDS and value is None:
            continue
        setattr(task, field, value)

    db.commit()
    db.refresh(task)
    return task


@router.delete("/{task_key}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_key: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.MASTER_ADMIN, UserRole.ADMIN)),
):
    task = get_task_or_404(db, task_key, current_user)
    db.delete(task)
    db.commit()
    logger.info("Task %s deleted by %s", task_key, current_user.id)
    return None


@router.post("/{task_key}/start-fixing", response_model=TaskOut)
def start_fixing(task_key: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    task = get_task_or_404(db, task_key, current_user)
    require_slot(current_user, task, "developer")
    try:
        return task_service.start_fixing(db, task)
    except InvalidTransitionError as exc:
        raise domain_error(exc)


@router.post("/{task_key}/mark-fixed", response_model=TaskOut)
def mark_fixed(task_key: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    task = get_task_or_404(db, task_key, current_user)
    require_slot(current_user, task, "developer")
    try:
        return task_service.mark_fixed(db, task)
    except InvalidTransitionError as exc:
        raise domain_error(exc)


@router.post("/{task_key}/qa/pass", response_model=TaskOut)
def qa_pass(
    task_key: str,
    payload: QAComment,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = get_task_or_404(db, task_key, current_user)
    require_slot(current_user, task, "qa")
    try:
        return task_service.qa_pass(db, task, current_user, payload.comment)
    except InvalidTransitionError as exc:
        raise domain_error(exc)


@router.post("/{task_key}/qa/reopen", response_model=TaskOut)
def qa_reopen(
    task_key: str,
    payload: QAComment,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = get_task_or_404(db, task_key, current_user)
    require_slot(current_user, task, "qa")
    try:
        return task_service.qa_reopen(db, task, current_user, payload.comment)
    except InvalidTransitionError as exc:
        raise domain_error(exc)


@router.get("/{task_key}/comments", response_model=List[TaskCommentOut])
def get_comments(task_key: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return get_task_or_404(db, task_key, current_user).comments


@router.get("/{task_key}/history", response_model=List[CommentEventOut])
def get_history(task_key: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Comment events in append order, including the implicit pass of silently closed tasks"""
    return task_service.task_history(get_task_or_404(db, task_key, current_user))
