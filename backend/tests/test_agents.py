"""Tests for the Agents router."""
import pytest
from tests.conftest import get_auth_headers


@pytest.mark.asyncio
async def test_agent_crud(client, test_user):
    headers = get_auth_headers(test_user)
    resp = await client.post("/api/v1/agents", json={
        "name": "Researcher",
        "description": "Finds market data",
        "prompt": "Be thorough.",
        "configuration": {"depth": 3},
    }, headers=headers)
    assert resp.status_code == 201
    agent = resp.json()
    assert agent["type"] == "prompt"
    assert agent["created_by"] == "user"
    assert agent["usage_count"] == 0
    assert agent["is_active"] is True
    assert agent["configuration"] == {"depth": 3}

    resp = await client.put(f"/api/v1/agents/{agent['id']}", json={"is_active": False}, headers=headers)
    assert resp.json()["is_active"] is False

    assert (await client.delete(f"/api/v1/agents/{agent['id']}", headers=headers)).status_code == 204
    assert (await client.get(f"/api/v1/agents/{agent['id']}", headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_delete_agent_unassigns_tasks(client, test_user):
    headers = get_auth_headers(test_user)
    agent = (await client.post("/api/v1/agents", json={"name": "Temp"}, headers=headers)).json()
    task = (await client.post("/api/v1/tasks", json={
        "title": "Delegated", "assigned_agent_id": agent["id"],
    }, headers=headers)).json()
    assert task["assigned_agent_id"] == agent["id"]

    await client.delete(f"/api/v1/agents/{agent['id']}", headers=headers)
    stored = (await client.get(f"/api/v1/tasks/{task['id']}", headers=headers)).json()
    assert stored["assigned_agent_id"] is None


@pytest.mark.asyncio
async def test_agents_are_tenant_isolated(client, test_user, other_user):
    agent = (await client.post(
        "/api/v1/agents", json={"name": "Mine"}, headers=get_auth_headers(test_user),
    )).json()
    other = get_auth_headers(other_user)
    assert (await client.get("/api/v1/agents", headers=other)).json() == []
    assert (await client.get(f"/api/v1/agents/{agent['id']}", headers=other)).status_code == 404


@pytest.mark.asyncio
async def test_agent_type_validation(client, test_user):
    resp = await client.post("/api/v1/agents", json={
        "name": "Odd", "type": "telepathy",
    }, headers=get_auth_headers(test_user))
    assert resp.status_code == 422
