from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from issuetracker.config.settings import settings

if settings.is_sqlite():
    connect_args = {"check_same_thread": False}
else:
    # If you're using PostgreSQL on Render or similar, keep sslmode=require
    connect_args = {"sslmode": settings.DB_SSLMODE}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Imported wherever a DB session is needed
def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
