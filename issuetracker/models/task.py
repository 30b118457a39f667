# issuetracker/models/task.py
import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from issuetracker.database import Base
from issuetracker.utils.time import utc_now

def _enum_values(enum_cls):
    return [member.value for member in enum_cls]

class TaskStatus(str, enum.Enum):
    TODO = "todo"
    IN_PROGRESS = "inprogress"
    DONE = "done"

class TaskPriority(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

class CommentType(str, enum.Enum):
    PASS = "Pass Comments"
    REOPEN = "Reopen Reason"

class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        UniqueConstraint("project_id", "task_key", name="uq_tasks_project_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    task_key = Column(String(32), index=True, nullable=False)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    steps = Column(Text, nullable=True)
    browser = Column(String, nullable=True)
    os = Column(String, nullable=True)

    status = Column(Enum(TaskStatus, values_callable=_enum_values), default=TaskStatus.TODO, nullable=False)
    priority = Column(Enum(TaskPriority, values_callable=_enum_values), default=TaskPriority.MEDIUM, nullable=False)

    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    project_name = Column(String, nullable=False)

    # Assignee slots: reference plus denormalized display name
    developer_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    developer_name = Column(String, nullable=True)
    qa_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    qa_name = Column(String, nullable=True)

    reported_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    reported_by_name = Column(String, nullable=True)

    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    project = relationship("Project", back_populates="tasks")
    comments = relationship(
        "TaskComment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskComment.id",
    )

    @property
    def assignees(self) -> dict:
        return {
            "developer": _slot(self.developer_id, self.developer_name),
            "qa": _slot(self.qa_id, self.qa_name),
        }

    @property
    def reported_by(self):
        return _slot(self.reported_by_id, self.reported_by_name)

    @property
    def assignee_label(self) -> str:
        """Display string used by list views, e.g. "Sam & QA: Riya"."""
        parts = []
        if self.developer_name:
            parts.append(self.developer_name)
        if self.qa_name:
            parts.append(f"QA: {self.qa_name}")
        return ", ".join(parts) if parts else "Unassigned"

def _slot(user_id, name):
    if user_id is None and not name:
        return None
    return {"user_id": user_id, "name": name or ""}

class TaskComment(Base):
    __tablename__ = "task_comments"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    comment_type = Column(Enum(CommentType, values_callable=_enum_values), nullable=False)
    message = Column(Text, nullable=False, default="")
    author_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    author_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    task = relationship("Task", back_populates="comments")
