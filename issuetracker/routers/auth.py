import logging

from fastapi import APIRouter, HTTPException, Depends, status
from sqlalchemy.orm import Session

from issuetracker.database import get_db
from issuetracker.models.user import User, UserRole
from issuetracker.schemas.user import UserCreate, UserLogin, UserOut
from issuetracker.schemas.tokens import Token
from issuetracker.utils.auth import get_current_user
from issuetracker.utils.security import hash_password, verify_password, token_for_user
from issuetracker.utils.time import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
def signup(user: UserCreate, db: Session = Depends(get_db)):
    if user.role == UserRole.MASTER_ADMIN:
        raise HTTPException(status_code=403, detail="MasterAdmin accounts cannot be self-registered")

    existing_user = db.query(User).filter(
        User.email == user.email,
        User.company_code == user.company_code,
    ).first()
    if existing_user:
        raise HTTPException(status_code=409, detail="Email already registered for this company")

    new_user = User(
        name=user.name,
        email=user.email,
        hashed_password=hash_password(user.password),
        company_code=user.company_code,
        role=user.role.value,
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    logger.info("Registered user %s (%s) in %s", new_user.id, new_user.role, new_user.company_code)

    return {
        "access_token": token_for_user(new_user),
        "token_type": "bearer",
        "user": new_user,
    }

@router.post("/login", response_model=Token)
def login(user: UserLogin, db: Session = Depends(get_db)):
    query = db.query(User).filter(User.email == user.email)
    if user.company_code:
        query = query.filter(User.company_code == user.company_code.strip().upper())

    candidates = query.all()
    if len(candidates) > 1:
        raise HTTPException(status_code=400, detail="Email is registered with several companies, company_code is required")

    db_user = candidates[0] if candidates else None
    if not db_user or not verify_password(user.password, db_user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not db_user.is_active:
        raise HTTPException(status_code=401, detail="Account has been deactivated. Please contact administrator.")

    db_user.last_login = utc_now()
    db.commit()
    db.refresh(db_user)

    return {
        "access_token": token_for_user(db_user),
        "token_type": "bearer",
        "user": db_user,
    }

@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
