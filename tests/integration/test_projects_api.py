"""Integration tests for project endpoints."""

import pytest

from src.sitegen.models import ProjectStatus
from tests.factories import generate_uuid7
from tests.helpers import create_agent_execution, create_project

pytestmark = pytest.mark.integration


async def test_create_project(client, auth_headers):
    response = await client.post(
        "/api/v1/projects",
        json={
            "name": "  Summit Roofing  ",
            "industry": "Auto Repair",
            "brief": {"services": ["Brakes"]},
        },
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Summit Roofing"
    assert data["industry"] == "auto_repair"
    assert data["status"] == "DRAFT"
    assert data["current_iteration"] == 0
    assert data["max_iterations"] == 3
    assert data["brief"] == {"services": ["Brakes"]}


async def test_duplicate_name_conflicts(client, auth_headers, project):
    response = await client.post(
        "/api/v1/projects", json={"name": project.name}, headers=auth_headers
    )
    assert response.status_code == 409
    assert "already exists" in response.json()["detail"]


async def test_invalid_body(client, auth_headers):
    response = await client.post(
        "/api/v1/projects", json={"name": "   ", "max_iterations": 0}, headers=auth_headers
    )
    assert response.status_code == 422


async def test_get_project(client, auth_headers, project):
    response = await client.get(f"/api/v1/projects/{project.id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["id"] == str(project.id)


async def test_get_missing_project(client, auth_headers):
    response = await client.get(f"/api/v1/projects/{generate_uuid7()}", headers=auth_headers)

    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "not_found"
    assert data["request_id"]


async def test_other_tenants_project_is_not_found(client, auth_headers, db_session, other_tenant):
    foreign = await create_project(db_session, other_tenant)
    await db_session.commit()

    response = await client.get(f"/api/v1/projects/{foreign.id}", headers=auth_headers)
    assert response.status_code == 404


async def test_list_projects_paginates(client, auth_headers, db_session, tenant, other_tenant):
    for _ in range(3):
        await create_project(db_session, tenant)
    await create_project(db_session, other_tenant)
    await db_session.commit()

    first = (await client.get("/api/v1/projects?limit=2", headers=auth_headers)).json()
    assert len(first["items"]) == 2
    assert first["has_more"] is True

    second = (
        await client.get(
            f"/api/v1/projects?limit=2&cursor={first['next_cursor']}", headers=auth_headers
        )
    ).json()
    assert len(second["items"]) == 1
    assert second["has_more"] is False
    assert second["next_cursor"] is None
    ids = {item["id"] for item in first["items"] + second["items"]}
    assert len(ids) == 3


async def test_delete_project_with_executions(client, auth_headers, db_session, project, store):
    await create_agent_execution(db_session, project)
    await db_session.commit()

    response = await client.delete(f"/api/v1/projects/{project.id}", headers=auth_headers)

    assert response.status_code == 204
    assert (await client.get(f"/api/v1/projects/{project.id}", headers=auth_headers)).status_code == 404
    assert await store.list_pending(10) == []


async def test_cannot_delete_running_project(client, auth_headers, db_session, tenant):
    running = await create_project(db_session, tenant, status=ProjectStatus.IN_PROGRESS.value)
    await db_session.commit()

    response = await client.delete(f"/api/v1/projects/{running.id}", headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "precondition_failed"
