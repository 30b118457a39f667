# issuetracker/routers/dashboard.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from issuetracker.config.settings import settings
from issuetracker.database import get_db
from issuetracker.models import User
from issuetracker.schemas.task import TaskOut, CommentEventOut
from issuetracker.services import task_service
from issuetracker.utils.auth import get_current_user

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/my-tasks", response_model=List[TaskOut])
def get_my_tasks(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Tasks in the caller's slot, managed projects, or tenant depending on role"""
    return task_service.tasks_for_user(db, current_user)


@router.get("/my-bugs", response_model=List[TaskOut])
def get_my_bugs(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return task_service.bugs_for_user(db, current_user)


@router.get("/my-tests", response_model=List[TaskOut])
def get_my_tests(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return task_service.tests_for_user(db, current_user)


@router.get("/recent-activity", response_model=List[CommentEventOut])
def get_recent_activity(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Newest QA comments across the caller's tasks"""
    tasks = task_service.tasks_for_user(db, current_user)
    return task_service.recent_activity(tasks, limit or settings.RECENT_ACTIVITY_LIMIT)
