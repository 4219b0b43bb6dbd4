"""Tests for the Files router."""
import pytest
from tests.conftest import get_auth_headers


async def _upload(client, headers, name="brief.txt", content=b"hello world", **data):
    return await client.post(
        "/api/v1/files/upload",
        files={"file": (name, content, "text/plain")},
        data=data,
        headers=headers,
    )


@pytest.mark.asyncio
async def test_upload_and_get(client, test_user):
    headers = get_auth_headers(test_user)
    resp = await _upload(client, headers)
    assert resp.status_code == 201
    uploaded = resp.json()
    assert uploaded["name"] == "brief.txt"
    assert uploaded["size"] == 11
    assert uploaded["source"] == "upload"
    assert uploaded["type"] == "input"
    assert uploaded["is_master_document"] is False
    assert "content" not in uploaded

    stored = (await client.get(f"/api/v1/files/{uploaded['id']}", headers=headers)).json()
    assert stored["content"] == "hello world"


@pytest.mark.asyncio
async def test_upload_master_document_sets_flag(client, test_user):
    resp = await _upload(client, get_auth_headers(test_user), type="master_document")
    assert resp.json()["is_master_document"] is True


@pytest.mark.asyncio
async def test_toggle_master_flag_and_filter(client, test_user):
    headers = get_auth_headers(test_user)
    first = (await _upload(client, headers, name="a.txt")).json()
    await _upload(client, headers, name="b.txt")

    resp = await client.patch(f"/api/v1/files/{first['id']}/master", json={
        "is_master_document": True,
    }, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["is_master_document"] is True

    masters = (await client.get("/api/v1/files?is_master_document=true", headers=headers)).json()
    assert [f["name"] for f in masters] == ["a.txt"]
    inputs = (await client.get("/api/v1/files?type=input", headers=headers)).json()
    assert len(inputs) == 2


@pytest.mark.asyncio
async def test_upload_rejects_foreign_project(client, test_user, other_user):
    project = (await client.post(
        "/api/v1/projects", json={"name": "Not yours"}, headers=get_auth_headers(other_user),
    )).json()
    resp = await _upload(client, get_auth_headers(test_user), project_id=project["id"])
    assert resp.status_code == 400
    assert resp.json()["field"] == "project_id"


@pytest.mark.asyncio
async def test_files_are_tenant_isolated(client, test_user, other_user):
    uploaded = (await _upload(client, get_auth_headers(test_user))).json()
    other = get_auth_headers(other_user)
    assert (await client.get("/api/v1/files", headers=other)).json() == []
    assert (await client.get(f"/api/v1/files/{uploaded['id']}", headers=other)).status_code == 404
    resp = await client.patch(
        f"/api/v1/files/{uploaded['id']}/master", json={"is_master_document": True}, headers=other,
    )
    assert resp.status_code == 404
