# issuetracker/routers/projects.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from issuetracker.database import get_db
from issuetracker.models.project import Project, PROJECT_STATUSES
from issuetracker.models.user import User, UserRole
from issuetracker.schemas.project import ProjectCreate, ProjectOut, ProjectMemberAdd
from issuetracker.schemas.user import UserBasic
from issuetracker.services.task_keys import project_prefix
from issuetracker.services.task_service import manages_project
from issuetracker.utils.auth import get_current_user, require_roles

logger = logging.getLogger(__name__)

router = APIRouter()

MEMBER_ROLES = {UserRole.DEVELOPER.value, UserRole.QA_TESTER.value}


def get_project_or_404(db: Session, project_id: int, current_user: User) -> Project:
    query = db.query(Project).filter(Project.id == project_id)
    if current_user.role != UserRole.MASTER_ADMIN.value:
        query = query.filter(Project.company_code == current_user.company_code)
    project = query.first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.get("/", response_model=List[ProjectOut])
def get_projects(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Projects visible to the caller, newest first"""
    query = db.query(Project)
    if current_user.role != UserRole.MASTER_ADMIN.value:
        query = query.filter(Project.company_code == current_user.company_code)
    if current_user.role == UserRole.PROJECT_MANAGER.value:
        query = query.filter(Project.manager_id == current_user.id)
    elif current_user.role in MEMBER_ROLES:
        query = query.filter(Project.members.any(User.id == current_user.id))
    return query.order_by(Project.id.desc()).all()


@router.get("/{project_id}", response_model=ProjectOut)
def get_project(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return get_project_or_404(db, project_id, current_user)


@router.post("/", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.MASTER_ADMIN, UserRole.ADMIN, UserRole.PROJECT_MANAGER)),
):
    """Create a project; project managers always manage what they create"""
    company_code = current_user.company_code
    name = project_data.name.strip()
    key = (project_data.key or project_prefix(name)).upper()

    if project_data.status not in PROJECT_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status. Expected one of: {', '.join(PROJECT_STATUSES)}")

    existing = db.query(Project).filter(Project.company_code == company_code, Project.name == name).first()
    if existing:
        raise HTTPException(status_code=409, detail="Project name already exists")
    existing = db.query(Project).filter(Project.company_code == company_code, Project.key == key).first()
    if existing:
        raise HTTPException(status_code=409, detail=f"Project key {key} already in use")

    if current_user.role == UserRole.PROJECT_MANAGER.value:
        manager = current_user
    else:
        manager_id = project_data.manager_id or current_user.id
        manager = db.query(User).filter(User.id == manager_id, User.company_code == company_code).first()
        if not manager:
            raise HTTPException(status_code=400, detail="Project manager not found")
        if not manager.is_active:
            raise HTTPException(status_code=400, detail="Project manager is not active")
        if manager.role not in (UserRole.PROJECT_MANAGER.value, UserRole.ADMIN.value, UserRole.MASTER_ADMIN.value):
            raise HTTPException(status_code=400, detail="Manager must be a ProjectManager or Admin")

    members = []
    if project_data.member_ids:
        members = db.query(User).filter(
            User.id.in_(project_data.member_ids),
            User.company_code == company_code,
        ).all()
        if len(members) != len(set(project_data.member_ids)):
            raise HTTPException(status_code=400, detail="One or more members not found")
        if len(members) > project_data.members_limit:
            raise HTTPException(status_code=400, detail="Members limit exceeded")

    project = Project(
        name=name,
        key=key,
        description=project_data.description,
        status=project_data.status,
        company_code=company_code,
        manager_id=manager.id,
        members_limit=project_data.members_limit,
        last_task_number=0,
    )
    project.members = members

    db.add(project)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Project %s (%s) collided with a concurrent create in %s", name, key, company_code)
        raise HTTPException(status_code=409, detail="Project name or key already in use")
    db.refresh(project)
    logger.info("Created project %s (%s) in %s", project.id, project.key, company_code)
    return project


@router.post("/{project_id}/members", response_model=ProjectOut)
def add_member(
    project_id: int,
    payload: ProjectMemberAdd,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = get_project_or_404(db, project_id, current_user)
    if not manages_project(current_user, project):
        raise HTTPException(status_code=403, detail="Only the project manager or an admin can change members")

    user = db.query(User).filter(User.id == payload.user_id, User.company_code == project.company_code).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=400, detail="User is not active")
    if user in project.members:
        raise HTTPException(status_code=409, detail="User is already a member of this project")
    if len(project.members) >= project.members_limit:
        raise HTTPException(status_code=400, detail="Members limit reached")

    project.members.append(user)
    db.commit()
    db.refresh(project)
    return project


@router.delete("/{project_id}/members/{user_id}", response_model=ProjectOut)
def remove_member(
    project_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = get_project_or_404(db, project_id, current_user)
    if not manages_project(current_user, project):
        raise HTTPException(status_code=403, detail="Only the project manager or an admin can change members")

    member = next((user for user in project.members if user.id == user_id), None)
    if member is None:
        raise HTTPException(status_code=404, detail="User is not a member of this project")

    project.members.remove(member)
    db.commit()
    db.refresh(project)
    return project


@router.get("/{project_id}/developers", response_model=List[UserBasic])
def get_project_developers(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = get_project_or_404(db, project_id, current_user)
    return [user for user in project.members if user.role == UserRole.DEVELOPER.value and user.is_active]
