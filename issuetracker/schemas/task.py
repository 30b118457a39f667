# issuetracker/schemas/task.py
from pydantic import BaseModel, Field, computed_field
from datetime import datetime
from typing import Optional, List, Literal

from issuetracker.models.task import TaskStatus, TaskPriority, CommentType
from issuetracker.utils.comment_log import result_label


class AssigneeRef(BaseModel):
    user_id: Optional[int] = None
    name: str = ""


class Assignees(BaseModel):
    developer: Optional[AssigneeRef] = None
    qa: Optional[AssigneeRef] = None


class TaskCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    steps: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    browser: Optional[str] = None
    os: Optional[str] = None
    project_id: int
    developer_id: Optional[int] = None
    qa_id: Optional[int] = None


class TaskUpdate(BaseModel):
    """Editable fields; status only changes through workflow actions."""
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    steps: Optional[str] = None
    priority: Optional[TaskPriority] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    developer_id: Optional[int] = None
    qa_id: Optional[int] = None


class DeveloperStatusUpdate(BaseModel):
    status: TaskStatus
    resolved_at: Optional[datetime] = None


class StatusUpdate(BaseModel):
    status: TaskStatus


class QAComment(BaseModel):
    comment: str = ""


class TaskCommentOut(BaseModel):
    id: int
    comment_type: CommentType
    message: str
    author_id: Optional[int] = None
    author_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CommentEventOut(BaseModel):
    comment_type: CommentType
    timestamp: datetime
    message: str
    task_key: Optional[str] = None
    task_title: Optional[str] = None
    author_name: Optional[str] = None
    synthesized: bool = False

    @computed_field
    @property
    def result(self) -> str:
        return result_label(self.comment_type)

    class Config:
        from_attributes = True


class TaskOut(BaseModel):
    id: int
    task_key: str
    title: str
    description: str
    steps: Optional[str] = None
    priority: TaskPriority
    status: TaskStatus
    browser: Optional[str] = None
    os: Optional[str] = None
    project_id: int
    project_name: str
    assignees: Assignees
    assignee_label: str
    reported_by: Optional[AssigneeRef] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QATestCaseOut(BaseModel):
    task_key: str
    title: str
    priority: TaskPriority
    status: Literal["Not Run", "Pass", "Fail", "Blocked"]
    task_status: TaskStatus
    steps: List[str] = []
    expected_result: str
    notes: str = ""
    executed_by: str = ""
    last_executed_on: Optional[datetime] = None
    assigned_to: Optional[int] = None


class QATestExecution(BaseModel):
    result: Literal["Pass", "Fail", "Blocked"]
    notes: str = ""


# Project manager / Kanban
class KanbanTaskOut(BaseModel):
    id: str
    title: str
    description: str = ""
    assignee: str = ""
    priority: TaskPriority
    project_id: int
    project_name: str
    status: TaskStatus


class BoardColumnOut(BaseModel):
    key: str
    name: str
    status: TaskStatus
    tasks: List[KanbanTaskOut]


class PMTaskCreate(BaseModel):
    project_id: int
    title: str = Field(min_length=1)
    description: str = ""
    developer_id: int
    qa_id: int
    priority: TaskPriority = TaskPriority.MEDIUM


class PMTaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    priority: Optional[TaskPriority] = None
    description: Optional[str] = None
