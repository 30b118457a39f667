# create_tables.py
import os
import sys

from issuetracker.database import Base, SessionLocal, engine
from issuetracker.models import User, UserRole, Project, Task, TaskComment  # noqa: F401 (registers tables)
from issuetracker.utils.security import hash_password


def create_tables(drop: bool = False):
    """Create all tables, optionally dropping them first"""
    if drop:
        Base.metadata.drop_all(bind=engine)
        print("🗑️  Dropped existing tables")

    Base.metadata.create_all(bind=engine)
    print("✅ All tables created successfully!")

    create_default_admin()


def create_default_admin():
    """Create the default admin user of the default company"""
    email = os.getenv("ADMIN_EMAIL", "admin@example.com")
    password = os.getenv("ADMIN_PASSWORD", "admin12345")
    company_code = os.getenv("ADMIN_COMPANY_CODE", "DEFAULT").upper()

    db = SessionLocal()
    try:
        exists = db.query(User).filter(User.email == email, User.company_code == company_code).first()
        if exists:
            print("ℹ️  Admin user already exists")
            return

        db.add(User(
            name="System Administrator",
            email=email,
            hashed_password=hash_password(password),
            role=UserRole.ADMIN.value,
            company_code=company_code,
            is_active=True,
        ))
        db.commit()
        print("✅ Default admin user created!")
        print(f"   Email: {email}")
        print(f"   Company: {company_code}")
    finally:
        db.close()


if __name__ == "__main__":
    create_tables(drop="--drop" in sys.argv)
