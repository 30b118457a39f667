"""
Master Database Seeding Script
Creates database tables and populates with demo data
"""

import sys

from dotenv import load_dotenv

from create_tables import create_tables
from demo_data import (
    DEMO_COMPANY, DEMO_PASSWORD, DEMO_USERS, DEMO_PROJECTS, DEMO_TASKS, DEMO_IMPORTED_TASKS,
)
from issuetracker.database import SessionLocal
from issuetracker.models import Project, Task, TaskPriority, TaskStatus, User
from issuetracker.services import task_service
from issuetracker.services.task_keys import project_prefix, sync_task_counter
from issuetracker.utils.comment_log import decode_comments
from issuetracker.utils.security import hash_password
from issuetracker.utils.time import utc_now

# Load environment variables
load_dotenv()

def banner(title):
    print(f"\n{'='*60}")
    print(f"🚀 {title}")
    print(f"{'='*60}")

def seed_demo_users(session):
    """Create demo users in the database"""
    banner("Creating Demo Users")
    users = {}
    for user_data in DEMO_USERS:
        existing_user = session.query(User).filter(
            User.email == user_data["email"], User.company_code == DEMO_COMPANY
        ).first()
        if existing_user:
            print(f"[SKIP] User {user_data['email']} already exists, skipping...")
            users[user_data["email"]] = existing_user
            continue

        user = User(
            name=user_data["name"],
            email=user_data["email"],
            hashed_password=hash_password(DEMO_PASSWORD),
            role=user_data["role"],
            company_code=DEMO_COMPANY,
        )
        session.add(user)
        users[user_data["email"]] = user
        print(f"[SUCCESS] Created user: {user_data['name']} ({user_data['role']})")

    session.commit()
    return users

def seed_demo_projects(session, users):
    """Create demo projects in the database"""
    banner("Creating Demo Projects")
    projects = {}
    for project_data in DEMO_PROJECTS:
        existing_project = session.query(Project).filter(
            Project.name == project_data["name"], Project.company_code == DEMO_COMPANY
        ).first()
        if existing_project:
            print(f"[SKIP] Project {project_data['name']} already exists, skipping...")
            projects[project_data["name"]] = existing_project
            continue

        project = Project(
            name=project_data["name"],
            key=project_data.get("key") or project_prefix(project_data["name"]),
            description=project_data["description"],
            company_code=DEMO_COMPANY,
            manager_id=users[project_data["manager"]].id,
            last_task_number=0,
        )
        project.members = [users[email] for email in project_data["members"]]
        session.add(project)
        projects[project_data["name"]] = project
        print(f"[SUCCESS] Created project: {project.name} ({project.key}, Members: {len(project.members)})")

    session.commit()
    return projects

def replay_flow(session, task, steps, qa):
    for step in steps:
        action, _, comment = step.partition(":")
        if action == "start":
            task_service.start_fixing(session, task)
        elif action == "fix":
            task_service.mark_fixed(session, task)
        elif action == "pass":
            task_service.qa_pass(session, task, qa, comment)
        elif action == "reopen":
            task_service.qa_reopen(session, task, qa, comment)
        else:
            raise ValueError(f"Unknown demo step: {step}")

def manager_email(project):
    return next(data["manager"] for data in DEMO_PROJECTS if data["name"] == project.name)

def seed_demo_tasks(session, users, projects):
    """Create demo tasks through the regular workflow"""
    banner("Creating Demo Tasks")
    created = 0
    for task_data in DEMO_TASKS:
        project = projects[task_data["project"]]
        existing_task = session.query(Task).filter(
            Task.project_id == project.id, Task.title == task_data["title"]
        ).first()
        if existing_task:
            print(f"[SKIP] Task {task_data['title']} already exists, skipping...")
            continue

        qa = users[task_data["qa"]]
        task = task_service.create_task(
            session,
            project,
            users[manager_email(project)],
            title=task_data["title"],
            description=task_data["description"],
            steps=task_data.get("steps"),
            priority=TaskPriority(task_data["priority"]),
            browser=task_data.get("browser"),
            os=task_data.get("os"),
            developer=users[task_data["developer"]],
            qa=qa,
        )
        replay_flow(session, task, task_data["flow"], qa)
        created += 1
        print(f"[SUCCESS] Created task: {task.task_key} {task.title} ({task.status.value})")

    print(f"\n[SUCCESS] Successfully created {created} demo tasks!")

def seed_imported_tasks(session, users, projects):
    """Load tasks with explicit keys and move each project's counter past them"""
    banner("Importing Legacy Tasks")
    for task_data in DEMO_IMPORTED_TASKS:
        project = projects[task_data["project"]]
        if session.query(Task).filter(
                Task.project_id == project.id, Task.task_key == task_data["task_key"]).first():
            print(f"[SKIP] Task {task_data['task_key']} already exists, skipping...")
            continue

        developer = users[task_data["developer"]]
        qa = users[task_data["qa"]]
        status = TaskStatus(task_data["status"])
        events = decode_comments(task_data["description"])

        task = Task(
            task_key=task_data["task_key"],
            title=task_data["title"],
            description=task_data["description"],
            priority=TaskPriority(task_data["priority"]),
            status=status,
            project_id=project.id,
            project_name=project.name,
            developer_id=developer.id,
            developer_name=developer.name,
            qa_id=qa.id,
            qa_name=qa.name,
            resolved_at=(events[-1].timestamp if events else utc_now()) if status == TaskStatus.DONE else None,
        )
        session.add(task)
        session.flush()
        print(f"[SUCCESS] Imported {task.task_key} with {len(events)} logged comments")

    for project in projects.values():
        session.refresh(project)
        counter = sync_task_counter(session, project)
        print(f"[INFO] {project.key} counter at {counter}")
    session.commit()

def main():
    print("🌱 Issue Tracker - Database Seeding")

    create_tables(drop="--drop" in sys.argv)

    session = SessionLocal()
    try:
        users = seed_demo_users(session)
        projects = seed_demo_projects(session, users)
        seed_imported_tasks(session, users, projects)
        seed_demo_tasks(session, users, projects)
    except Exception as e:
        session.rollback()
        print(f"[ERROR] Seeding failed: {e}")
        raise
    finally:
        session.close()

    print("\n✅ Demo data ready")
    print(f"   Company: {DEMO_COMPANY}")
    print(f"   Password for every demo user: {DEMO_PASSWORD}")

if __name__ == "__main__":
    main()
