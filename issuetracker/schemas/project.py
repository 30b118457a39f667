from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from .user import UserBasic


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1)
    key: Optional[str] = Field(default=None, max_length=10, pattern=r"^[A-Za-z][A-Za-z0-9]*$")
    description: Optional[str] = None
    manager_id: Optional[int] = None
    member_ids: List[int] = []
    members_limit: int = Field(default=5, ge=1)
    status: Optional[str] = "Active"


class ProjectOut(BaseModel):
    id: int
    name: str
    key: str
    description: Optional[str] = None
    status: str
    company_code: str
    manager_id: int
    members_limit: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    manager: UserBasic
    members: List[UserBasic] = []

    model_config = {
        "from_attributes": True
    }


class ProjectMemberAdd(BaseModel):
    user_id: int


class MemberRef(BaseModel):
    user_id: int
    name: str


class TaskMembersOut(BaseModel):
    developers: List[MemberRef]
    qa_testers: List[MemberRef]
