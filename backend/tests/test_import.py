"""Tests for the Drive import pipeline and folder browsing."""
import pytest
from classifier import ParsedTask, TriageResult
from errors import ClassificationError, ParseError
from tests.conftest import get_auth_headers

TASK_FILE = """Acme: draft the press release (high)
Book the team offsite"""


def _stage_file(collaborators):
    collaborators.file_source.add_file("COO Inbox", "tasks.txt", TASK_FILE)
    collaborators.classifier.parsed = [
        ParsedTask(title="Draft press release", description="For the launch", priority="high", project_name="Acme"),
        ParsedTask(title="Book team offsite", priority="someday"),
    ]
    collaborators.classifier.results["Draft press release"] = TriageResult(
        category="auto_execute", confidence=0.9, reasoning="Content generation",
    )
    collaborators.classifier.results["Book team offsite"] = TriageResult(
        category="human_required", confidence=0.7, reasoning="Needs a date decision",
    )


@pytest.mark.asyncio
async def test_import_creates_file_tasks_and_summary(client, collaborators, test_user):
    headers = get_auth_headers(test_user)
    project = (await client.post("/api/v1/projects", json={"name": "Acme Corp"}, headers=headers)).json()
    _stage_file(collaborators)

    resp = await client.post("/api/v1/drive/import-tasks", json={
        "folder_name": "COO Inbox", "file_name": "tasks.txt",
    }, headers=headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()

    assert body["file"]["source"] == "google_drive"
    assert body["file"]["type"] == "input"
    assert body["file"]["size"] == len(TASK_FILE.encode("utf-8"))
    assert body["file"]["processed_at"] is not None

    first, second = body["tasks"]
    assert first["project_id"] == project["id"]
    assert first["priority"] == "high"
    assert first["category"] == "auto_execute"
    assert first["source_file"] == "tasks.txt"
    assert second["project_id"] is None
    assert second["priority"] == "medium"
    assert second["category"] == "human_required"
    assert all(t["status"] == "pending" for t in body["tasks"])

    assert body["summary"] == {
        "total": 2, "auto_execute": 1, "delegated": 0, "human_required": 1, "pending": 0,
    }
    assert collaborators.classifier.parsed_inputs == [TASK_FILE]

    notifications = (await client.get("/api/v1/notifications", headers=headers)).json()
    assert [n["title"] for n in notifications] == ["Tasks Imported"]
    assert notifications[0]["message"] == "Successfully imported 2 tasks from tasks.txt"

    activity = (await client.get("/api/v1/dashboard/activity", headers=headers)).json()
    assert activity[0]["action"] == "file_processed"
    assert activity[0]["description"] == "Imported 2 tasks from tasks.txt"


@pytest.mark.asyncio
async def test_import_continues_when_one_triage_fails(client, collaborators, test_user):
    headers = get_auth_headers(test_user)
    _stage_file(collaborators)
    collaborators.classifier.results["Draft press release"] = ClassificationError("garbled")

    resp = await client.post("/api/v1/drive/import-tasks", json={
        "folder_name": "COO Inbox", "file_name": "tasks.txt",
    }, headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [t["category"] for t in body["tasks"]] == ["pending", "human_required"]
    assert body["summary"]["pending"] == 1
    assert body["summary"]["total"] == 2


@pytest.mark.asyncio
async def test_import_survives_unexpected_classifier_exception(client, collaborators, test_user):
    headers = get_auth_headers(test_user)
    _stage_file(collaborators)
    collaborators.classifier.results["Draft press release"] = RuntimeError("connection reset")

    resp = await client.post("/api/v1/drive/import-tasks", json={
        "folder_name": "COO Inbox", "file_name": "tasks.txt",
    }, headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [t["title"] for t in body["tasks"]] == ["Draft press release", "Book team offsite"]
    assert [t["category"] for t in body["tasks"]] == ["pending", "human_required"]
    assert body["file"]["processed_at"] is not None
    assert collaborators.classifier.classified[-1] == "Book team offsite"

    notifications = (await client.get("/api/v1/notifications", headers=headers)).json()
    assert notifications[0]["title"] == "Tasks Imported"


@pytest.mark.asyncio
async def test_import_unknown_folder(client, test_user):
    resp = await client.post("/api/v1/drive/import-tasks", json={
        "folder_name": "Nowhere", "file_name": "tasks.txt",
    }, headers=get_auth_headers(test_user))
    assert resp.status_code == 404
    assert "Nowhere" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_import_unknown_file(client, collaborators, test_user):
    collaborators.file_source.add_file("COO Inbox", "other.txt", "x")
    resp = await client.post("/api/v1/drive/import-tasks", json={
        "folder_name": "COO Inbox", "file_name": "tasks.txt",
    }, headers=get_auth_headers(test_user))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_import_requires_names(client, test_user):
    resp = await client.post("/api/v1/drive/import-tasks", json={
        "folder_name": "  ", "file_name": "tasks.txt",
    }, headers=get_auth_headers(test_user))
    assert resp.status_code == 400
    assert resp.json()["field"] == "folder_name"


@pytest.mark.asyncio
async def test_import_parse_failure_keeps_file_only(client, collaborators, test_user):
    headers = get_auth_headers(test_user)
    _stage_file(collaborators)
    collaborators.classifier.parse_error = ParseError("Could not parse tasks from file")

    resp = await client.post("/api/v1/drive/import-tasks", json={
        "folder_name": "COO Inbox", "file_name": "tasks.txt",
    }, headers=headers)
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Could not parse tasks from file"

    files = (await client.get("/api/v1/files", headers=headers)).json()
    assert [f["name"] for f in files] == ["tasks.txt"]
    assert files[0]["processed_at"] is None
    assert (await client.get("/api/v1/tasks", headers=headers)).json() == []


@pytest.mark.asyncio
async def test_reimport_creates_second_batch(client, collaborators, test_user):
    headers = get_auth_headers(test_user)
    _stage_file(collaborators)
    payload = {"folder_name": "COO Inbox", "file_name": "tasks.txt"}
    await client.post("/api/v1/drive/import-tasks", json=payload, headers=headers)
    await client.post("/api/v1/drive/import-tasks", json=payload, headers=headers)

    assert len((await client.get("/api/v1/files", headers=headers)).json()) == 2
    assert len((await client.get("/api/v1/tasks", headers=headers)).json()) == 4


@pytest.mark.asyncio
async def test_list_drive_folder(client, collaborators, test_user):
    collaborators.file_source.add_file("COO Inbox", "tasks.txt", TASK_FILE)
    resp = await client.get("/api/v1/drive/folders/COO Inbox", headers=get_auth_headers(test_user))
    assert resp.status_code == 200
    body = resp.json()
    assert body["folder_id"] == "folder-COO Inbox"
    assert [f["name"] for f in body["files"]] == ["tasks.txt"]
