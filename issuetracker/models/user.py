# issuetracker/models/user.py
import enum

from sqlalchemy import Column, Integer, String, DateTime, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship

from issuetracker.database import Base
from issuetracker.utils.time import utc_now

class UserRole(str, enum.Enum):
    MASTER_ADMIN = "MasterAdmin"
    ADMIN = "Admin"
    PROJECT_MANAGER = "ProjectManager"
    DEVELOPER = "Developer"
    QA_TESTER = "QATester"

ADMIN_ROLES = {UserRole.MASTER_ADMIN.value, UserRole.ADMIN.value}

class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", "company_code", name="uq_users_email_company"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.DEVELOPER.value)
    company_code = Column(String(12), index=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    managed_projects = relationship("Project", back_populates="manager")

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES
