from .user import UserCreate, UserLogin, UserOut, UserBasic
from .tokens import Token
from .project import ProjectCreate, ProjectOut, ProjectMemberAdd, MemberRef, TaskMembersOut
from .task import (
    AssigneeRef, Assignees, TaskCreate, TaskUpdate, TaskOut, DeveloperStatusUpdate, StatusUpdate,
    QAComment, TaskCommentOut, CommentEventOut, QATestCaseOut, QATestExecution,
    KanbanTaskOut, BoardColumnOut, PMTaskCreate, PMTaskUpdate,
)
