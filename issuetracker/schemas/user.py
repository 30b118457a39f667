from pydantic import BaseModel, EmailStr, Field, validator
from typing import Optional
from datetime import datetime

from issuetracker.models.user import UserRole


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    # bcrypt refuses more than 72 bytes; the validator below checks the encoded length
    password: str = Field(min_length=8, max_length=72)
    company_code: str = Field(min_length=3, max_length=12)
    role: UserRole = UserRole.DEVELOPER

    @validator('password')
    def password_fits_bcrypt(cls, v):
        if len(v.encode('utf-8')) > 72:
            raise ValueError('Password must be at most 72 bytes')
        return v

    @validator('company_code')
    def normalize_company_code(cls, v):
        return v.strip().upper()

    @validator('name')
    def name_must_not_be_blank(cls, v):
        if not v.strip():
            raise ValueError('Name is required')
        return v.strip()


class UserLogin(BaseModel):
    email: EmailStr
    password: str
    company_code: Optional[str] = None


class UserBasic(BaseModel):
    id: int
    name: str
    email: str
    role: str

    model_config = {
        "from_attributes": True
    }


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: str
    company_code: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
