import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from issuetracker.database import Base
from issuetracker.models import Project, Task, TaskStatus, User, UserRole
from issuetracker.services import task_service
from issuetracker.services.task_keys import (
    TaskKeyConflictError, format_task_key, key_number, next_task_key, project_prefix, sync_task_counter,
)


@pytest.mark.parametrize("name, prefix", [
    ("Website Redesign", "WR"),
    ("payments revamp v2", "PRV"),
    ("  ", "TASK"),
    ("One Two Three Four Five Six Seven Eight Nine Ten Eleven", "OTTFFSSENT"),
])
def test_project_prefix(name, prefix):
    assert project_prefix(name) == prefix


def test_key_number_and_format():
    assert key_number("PRJ-12") == 12
    assert key_number("PRJ") == 0
    assert format_task_key("PRJ", 3) == "PRJ-3"


def test_keys_are_sequential_per_project(db, make_user, make_project):
    pm = make_user(UserRole.PROJECT_MANAGER)
    project = make_project(pm)
    other = make_project(pm, name="Mobile Checkout", key="MC")

    keys = [
        task_service.create_task(db, project, pm, title=f"Task {n}").task_key
        for n in range(1, 11)
    ]
    other_key = task_service.create_task(db, other, pm, title="Elsewhere").task_key

    assert keys == [f"PRJ-{n}" for n in range(1, 11)]
    assert other_key == "MC-1"


def test_next_task_key_bumps_counter_in_database(db, make_user, make_project):
    pm = make_user(UserRole.PROJECT_MANAGER)
    project = make_project(pm)

    assert next_task_key(db, project) == "PRJ-1"
    assert next_task_key(db, project) == "PRJ-2"
    db.commit()
    db.refresh(project)
    assert project.last_task_number == 2


def test_duplicate_key_violates_unique_constraint(db, make_user, make_project):
    pm = make_user(UserRole.PROJECT_MANAGER)
    project = make_project(pm)

    for _ in range(2):
        db.add(Task(
            task_key="PRJ-1", title="Race", project_id=project.id, project_name=project.name,
            status=TaskStatus.TODO,
        ))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_create_task_reports_key_conflict(db, make_user, make_project):
    pm = make_user(UserRole.PROJECT_MANAGER)
    project = make_project(pm)
    task_service.create_task(db, project, pm, title="First")

    # Simulate a counter that fell behind the stored keys
    project.last_task_number = 0
    db.commit()

    with pytest.raises(TaskKeyConflictError) as excinfo:
        task_service.create_task(db, project, pm, title="Second")
    assert excinfo.value.task_key == "PRJ-1"
    assert db.query(Task).count() == 1


def test_sync_task_counter_moves_past_imported_keys(db, make_user, make_project):
    pm = make_user(UserRole.PROJECT_MANAGER)
    project = make_project(pm)
    db.add(Task(task_key="PRJ-7", title="Imported", project_id=project.id, project_name=project.name))
    db.commit()
    db.refresh(project)

    assert sync_task_counter(db, project) == 7
    db.commit()

    task = task_service.create_task(db, project, pm, title="After import")
    assert task.task_key == "PRJ-8"


def test_two_sessions_reserve_distinct_keys(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'keys.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with Session() as setup:
        pm = User(name="Priya Shah", email="priya@acme.com", hashed_password="x",
                  role=UserRole.PROJECT_MANAGER.value, company_code="ACME")
        setup.add(pm)
        setup.flush()
        setup.add(Project(name="Payments Revamp", key="PRJ", company_code="ACME", manager_id=pm.id,
                          last_task_number=0))
        setup.commit()

    first, second = Session(), Session()
    try:
        # Both creators loaded the project while the counter was still 0
        first_project = first.query(Project).one()
        second_project = second.query(Project).one()
        assert first_project.last_task_number == second_project.last_task_number == 0

        first_key = next_task_key(first, first_project)
        first.commit()
        second_key = next_task_key(second, second_project)
        second.commit()
    finally:
        first.close()
        second.close()

    assert (first_key, second_key) == ("PRJ-1", "PRJ-2")
    with Session() as check:
        assert check.query(Project).one().last_task_number == 2
    engine.dispose()
