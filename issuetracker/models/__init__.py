from .user import User, UserRole, ADMIN_ROLES
from .project import Project, project_members, PROJECT_STATUSES
from .task import Task, TaskComment, TaskStatus, TaskPriority, CommentType
