# issuetracker/models/project.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from issuetracker.database import Base

# Association table for many-to-many relationship between projects and users
project_members = Table(
    'project_members',
    Base.metadata,
    Column('project_id', Integer, ForeignKey('projects.id', ondelete="CASCADE"), primary_key=True),
    Column('user_id', Integer, ForeignKey('users.id', ondelete="CASCADE"), primary_key=True)
)

PROJECT_STATUSES = ["Active", "In Progress", "Completed", "Pending", "Archived"]


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (
        UniqueConstraint("name", "company_code", name="uq_projects_name_company"),
        UniqueConstraint("key", "company_code", name="uq_projects_key_company"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    key = Column(String(10), nullable=False)
    description = Column(String, nullable=True)
    status = Column(String, nullable=False, default="Active")
    company_code = Column(String(12), index=True, nullable=False)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    members_limit = Column(Integer, nullable=False, default=5)

    # Highest task number handed out for this project; bumped atomically
    last_task_number = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    manager = relationship("User", foreign_keys=[manager_id], back_populates="managed_projects")
    members = relationship("User", secondary=project_members, backref="current_projects")
    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")
