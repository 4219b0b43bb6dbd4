"""Tests for the parse-only preview endpoint."""
import pytest
from classifier import ParsedTask
from errors import ParseError
from tests.conftest import get_auth_headers


@pytest.mark.asyncio
async def test_parse_tasks_does_not_persist(client, collaborators, test_user):
    headers = get_auth_headers(test_user)
    collaborators.classifier.parsed = [
        ParsedTask(title="Call the bank", priority="urgent", project_name="Finance"),
    ]
    resp = await client.post("/api/v1/processing/parse-tasks", json={"content": "call bank asap"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"tasks": [{
        "title": "Call the bank", "description": None, "priority": "urgent", "project_name": "Finance",
    }]}
    assert (await client.get("/api/v1/tasks", headers=headers)).json() == []


@pytest.mark.asyncio
async def test_parse_tasks_requires_content(client, test_user):
    resp = await client.post("/api/v1/processing/parse-tasks", json={"content": " "}, headers=get_auth_headers(test_user))
    assert resp.status_code == 400
    assert resp.json()["field"] == "content"


@pytest.mark.asyncio
async def test_parse_tasks_failure(client, collaborators, test_user):
    collaborators.classifier.parse_error = ParseError("Could not parse tasks from file")
    resp = await client.post("/api/v1/processing/parse-tasks", json={"content": "???"}, headers=get_auth_headers(test_user))
    assert resp.status_code == 500
    assert "request_id" in resp.json()
