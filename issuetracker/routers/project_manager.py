# issuetracker/routers/project_manager.py
"""Project-manager views: task list, Kanban board and task assignment."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from issuetracker.database import get_db
from issuetracker.models.project import Project
from issuetracker.models.task import Task
from issuetracker.models.user import User, UserRole
from issuetracker.schemas.project import TaskMembersOut
from issuetracker.schemas.task import (
    BoardColumnOut, KanbanTaskOut, PMTaskCreate, PMTaskUpdate, StatusUpdate,
)
from issuetracker.services import task_service
from issuetracker.services.board import build_columns
from issuetracker.services.task_keys import TaskKeyConflictError
from issuetracker.services.task_service import AssigneeError
from issuetracker.services.workflow import InvalidTransitionError
from issuetracker.utils.auth import require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/project-manager", tags=["project-manager"])

get_manager = require_roles(UserRole.PROJECT_MANAGER, UserRole.ADMIN, UserRole.MASTER_ADMIN)


def managed_tasks_query(db: Session, current_user: User, project_id: Optional[int] = None):
    query = task_service.tasks_query(db, current_user)
    if current_user.role == UserRole.PROJECT_MANAGER.value:
        query = query.filter(Project.manager_id == current_user.id)
    if project_id is not None:
        query = query.filter(Task.project_id == project_id)
    return query


def get_managed_task(db: Session, task_key: str, current_user: User) -> Task:
    task = task_service.find_task(db, task_key, current_user)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    if not task_service.manages_project(current_user, task.project):
        raise HTTPException(status_code=403, detail="You do not manage this task's project")
    return task


def get_managed_project(db: Session, project_id: int, current_user: User) -> Project:
    project = db.query(Project).filter(Project.id == project_id).first()
    if not project or (current_user.role != UserRole.MASTER_ADMIN.value
                       and project.company_code != current_user.company_code):
        raise HTTPException(status_code=404, detail="Project not found")
    if not task_service.manages_project(current_user, project):
        raise HTTPException(status_code=403, detail="You do not manage this project")
    return project


@router.get("/tasks", response_model=List[KanbanTaskOut])
def get_tasks(
    project_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_manager),
):
    tasks = managed_tasks_query(db, current_user, project_id).order_by(Task.created_at.desc(), Task.id.desc()).all()
    return [task_service.kanban_card(task) for task in tasks]


@router.post("/tasks", response_model=KanbanTaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: PMTaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_manager),
):
    project = get_managed_project(db, payload.project_id, current_user)
    try:
        developer = task_service.resolve_assignee(
            db, payload.developer_id, UserRole.DEVELOPER, project.company_code, project=project)
        qa = task_service.resolve_assignee(
            db, payload.qa_id, UserRole.QA_TESTER, project.company_code, project=project)
        task = task_service.create_task(
            db,
            project,
            current_user,
            title=payload.title,
            description=payload.description,
            priority=payload.priority,
            developer=developer,
            qa=qa,
        )
    except AssigneeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except TaskKeyConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return task_service.kanban_card(task)


@router.put("/tasks/{task_key}", response_model=KanbanTaskOut)
def update_task(
    task_key: str,
    payload: PMTaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_manager),
):
    task = get_managed_task(db, task_key, current_user)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(task, field, value)
    db.commit()
    db.refresh(task)
    return task_service.kanban_card(task)


@router.put("/tasks/{task_key}/status", response_model=KanbanTaskOut)
def update_task_status(
    task_key: str,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_manager),
):
    """Board moves land here; illegal moves answer 409 so the board can roll back"""
    task = get_managed_task(db, task_key, current_user)
    try:
        task = task_service.change_status(db, task, payload.status)
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return task_service.kanban_card(task)


@router.get("/board", response_model=List[BoardColumnOut])
def get_board(
    project_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_manager),
):
    tasks = managed_tasks_query(db, current_user, project_id).order_by(Task.created_at.asc(), Task.id.asc()).all()
    return build_columns(task_service.kanban_card(task) for task in tasks)


@router.get("/projects/{project_id}/task-members", response_model=TaskMembersOut)
def get_task_members(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_manager),
):
    """Project members that can fill the developer and QA slots"""
    project = get_managed_project(db, project_id, current_user)
    members = [user for user in project.members if user.is_active]
    return {
        "developers": [
            {"user_id": user.id, "name": user.name}
            for user in members if user.role == UserRole.DEVELOPER.value
        ],
        "qa_testers": [
            {"user_id": user.id, "name": user.name}
            for user in members if user.role == UserRole.QA_TESTER.value
        ],
    }
