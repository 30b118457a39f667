from datetime import datetime

import pytest

from issuetracker.models import CommentType, Task, TaskStatus, UserRole
from issuetracker.services import task_service
from issuetracker.utils.comment_log import append_comment

pytestmark = pytest.mark.api


@pytest.fixture()
def board_tasks(db, team, make_user):
    """PRJ-1 open for Sam, PRJ-2 fixed by Sam, PRJ-3 open for another developer."""
    other_dev = make_user(UserRole.DEVELOPER, name="Lena Ortiz")
    team.project.members.append(other_dev)
    db.commit()

    first = task_service.create_task(db, team.project, team.qa, title="Login bug", developer=team.dev, qa=team.qa)
    second = task_service.create_task(db, team.project, team.qa, title="Footer", developer=team.dev, qa=team.qa)
    third = task_service.create_task(db, team.project, team.qa, title="Hero image", developer=other_dev, qa=team.qa)
    task_service.mark_fixed(db, second)
    return first, second, third


def keys(response):
    assert response.status_code == 200, response.text
    return sorted(task["task_key"] for task in response.json())


def test_my_tasks_by_role(client, team, board_tasks, auth_headers, make_user):
    outsider_pm = make_user(UserRole.PROJECT_MANAGER)

    assert keys(client.get("/api/dashboard/my-tasks", headers=auth_headers(team.dev))) == ["PRJ-1", "PRJ-2"]
    assert keys(client.get("/api/dashboard/my-tasks", headers=auth_headers(team.qa))) == ["PRJ-1", "PRJ-2", "PRJ-3"]
    assert keys(client.get("/api/dashboard/my-tasks", headers=auth_headers(team.pm))) == ["PRJ-1", "PRJ-2", "PRJ-3"]
    assert keys(client.get("/api/dashboard/my-tasks", headers=auth_headers(team.admin))) == ["PRJ-1", "PRJ-2", "PRJ-3"]
    assert keys(client.get("/api/dashboard/my-tasks", headers=auth_headers(outsider_pm))) == []


def test_my_bugs(client, team, board_tasks, auth_headers):
    assert keys(client.get("/api/dashboard/my-bugs", headers=auth_headers(team.dev))) == ["PRJ-1"]
    assert keys(client.get("/api/dashboard/my-bugs", headers=auth_headers(team.qa))) == ["PRJ-1", "PRJ-2", "PRJ-3"]
    assert keys(client.get("/api/dashboard/my-bugs", headers=auth_headers(team.pm))) == []


def test_my_tests(client, team, board_tasks, auth_headers):
    assert keys(client.get("/api/dashboard/my-tests", headers=auth_headers(team.qa))) == ["PRJ-1", "PRJ-3"]
    assert keys(client.get("/api/dashboard/my-tests", headers=auth_headers(team.dev))) == []


def test_recent_activity_newest_first(client, db, team, board_tasks, auth_headers):
    first, second, _ = board_tasks
    task_service.qa_reopen(db, second, team.qa, "broken on Safari", when=datetime(2025, 3, 1, 9, 0, 0))
    task_service.mark_fixed(db, second)
    task_service.qa_pass(db, second, team.qa, "fixed", when=datetime(2025, 3, 3, 9, 0, 0))
    task_service.mark_fixed(db, first, resolved_at=datetime(2025, 3, 2, 9, 0, 0))

    response = client.get("/api/dashboard/recent-activity", headers=auth_headers(team.qa))

    assert response.status_code == 200
    events = response.json()
    assert [(event["task_key"], event["message"]) for event in events] == [
        ("PRJ-2", "fixed"),
        ("PRJ-1", "Completed without explicit comment"),
        ("PRJ-2", "broken on Safari"),
    ]
    assert events[1]["synthesized"] is True


def test_recent_activity_limit(client, db, team, board_tasks, auth_headers):
    _, second, _ = board_tasks
    for day in range(1, 6):
        task_service.qa_reopen(db, second, team.qa, f"round {day}", when=datetime(2025, 4, day, 12, 0, 0))
        task_service.mark_fixed(db, second)

    events = client.get("/api/dashboard/recent-activity", params={"limit": 2}, headers=auth_headers(team.dev)).json()

    assert [event["message"] for event in events] == ["round 5", "round 4"]


def test_recent_activity_reads_legacy_description_log(client, db, team, auth_headers):
    description = "Totals match the cart"
    description = append_comment(description, CommentType.REOPEN, "tax missing", datetime(2025, 3, 14, 16, 5, 9))
    description = append_comment(description, CommentType.PASS, "fixed in build 412", datetime(2025, 3, 18, 10, 30, 0))
    db.add(Task(
        task_key="PRJ-7", title="Imported", description=description, status=TaskStatus.DONE,
        resolved_at=datetime(2025, 3, 18, 10, 30, 0), project_id=team.project.id,
        project_name=team.project.name, qa_id=team.qa.id, qa_name=team.qa.name,
    ))
    db.commit()

    events = client.get("/api/dashboard/recent-activity", headers=auth_headers(team.qa)).json()

    assert [(event["comment_type"], event["message"]) for event in events] == [
        ("Pass Comments", "fixed in build 412"),
        ("Reopen Reason", "tax missing"),
    ]
    assert events[1]["timestamp"] == "2025-03-14T16:05:09"
