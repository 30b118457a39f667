import pytest

from sqlalchemy import event

from issuetracker.models import Project, UserRole

pytestmark = pytest.mark.api


def test_admin_creates_project_with_default_key(client, team, auth_headers):
    response = client.post(
        "/api/projects/",
        json={"name": "Website Redesign", "manager_id": team.pm.id, "member_ids": [team.dev.id]},
        headers=auth_headers(team.admin),
    )

    assert response.status_code == 201, response.text
    project = response.json()
    assert project["key"] == "WR"
    assert project["manager"]["id"] == team.pm.id
    assert [member["id"] for member in project["members"]] == [team.dev.id]
    assert project["company_code"] == "ACME"


def test_project_manager_manages_own_projects(client, team, auth_headers):
    response = client.post(
        "/api/projects/",
        json={"name": "Mobile Checkout", "key": "mc", "manager_id": team.admin.id},
        headers=auth_headers(team.pm),
    )
    assert response.status_code == 201
    assert response.json()["key"] == "MC"
    assert response.json()["manager_id"] == team.pm.id


def test_duplicate_key_conflicts(client, team, auth_headers):
    response = client.post("/api/projects/", json={"name": "Pricing Rework", "key": "PRJ"}, headers=auth_headers(team.pm))
    assert response.status_code == 409


def test_developers_cannot_create_projects(client, team, auth_headers):
    response = client.post("/api/projects/", json={"name": "Side Project"}, headers=auth_headers(team.dev))
    assert response.status_code == 403


def test_project_visibility_by_role(client, team, auth_headers, make_user):
    outsider = make_user(UserRole.DEVELOPER)

    def names(user):
        return [project["name"] for project in client.get("/api/projects/", headers=auth_headers(user)).json()]

    assert names(team.dev) == ["Payments Revamp"]
    assert names(team.pm) == ["Payments Revamp"]
    assert names(team.admin) == ["Payments Revamp"]
    assert names(outsider) == []


def test_add_and_remove_members(client, team, auth_headers, make_user):
    newcomer = make_user(UserRole.DEVELOPER, name="Lena Ortiz")
    headers = auth_headers(team.pm)
    url = f"/api/projects/{team.project.id}/members"

    added = client.post(url, json={"user_id": newcomer.id}, headers=headers)
    again = client.post(url, json={"user_id": newcomer.id}, headers=headers)
    developers = client.get(f"/api/projects/{team.project.id}/developers", headers=headers).json()
    removed = client.delete(f"{url}/{team.dev.id}", headers=headers)

    assert added.status_code == 200
    assert again.status_code == 409
    assert sorted(dev["name"] for dev in developers) == ["Lena Ortiz", "Sam Carter"]
    assert removed.status_code == 200
    assert sorted(member["name"] for member in removed.json()["members"]) == ["Lena Ortiz", "Riya Menon"]


def test_members_limit(client, team, auth_headers, make_user, make_project):
    small = make_project(team.pm, members=[team.dev], name="Tiny", key="TY", members_limit=1)
    response = client.post(
        f"/api/projects/{small.id}/members", json={"user_id": team.qa.id}, headers=auth_headers(team.pm))
    assert response.status_code == 400


def test_other_company_project_is_404(client, team, auth_headers, make_user):
    outsider = make_user(UserRole.ADMIN, company_code="GLOBEX")
    assert client.get(f"/api/projects/{team.project.id}", headers=auth_headers(outsider)).status_code == 404


def test_concurrent_create_with_same_key_conflicts(client, db, team, auth_headers):
    def competing_create(session, flush_context, instances):
        # Another request commits the same key between our checks and our insert
        session.add(Project(
            name="Wallet Revamp", key="WR", company_code="ACME", manager_id=team.pm.id, last_task_number=0,
        ))

    event.listen(db, "before_flush", competing_create, once=True)
    response = client.post("/api/projects/", json={"name": "Website Redesign"}, headers=auth_headers(team.pm))

    assert response.status_code == 409
    assert [project.key for project in db.query(Project).all()] == ["PRJ"]
