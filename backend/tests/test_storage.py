"""Tests for the persistence layer: ownership scoping and lookups."""
import pytest
from errors import NotFoundError, ValidationError
from models import TaskPriority
from pipeline import normalise_priority, summarise
from seed import seed_demo_data


@pytest.mark.asyncio
async def test_get_other_users_rows_is_not_found(storage, test_user, other_user):
    project = await storage.create_project(test_user, name="Mine")
    agent = await storage.create_agent(test_user, name="Mine")
    task = await storage.create_task(test_user, title="Mine")

    with pytest.raises(NotFoundError):
        await storage.get_project(other_user, project.id)
    with pytest.raises(NotFoundError):
        await storage.get_agent(other_user, agent.id)
    with pytest.raises(NotFoundError) as exc:
        await storage.get_task(other_user, task.id)
    assert exc.value.message == "Task not found"
    assert await storage.list_tasks(other_user) == []


@pytest.mark.asyncio
async def test_find_project_by_name_is_case_insensitive_substring(storage, test_user, other_user):
    await storage.create_project(other_user, name="Acme Holdings")
    acme = await storage.create_project(test_user, name="Acme Corp")

    assert (await storage.find_project_by_name(test_user, "acme")).id == acme.id
    assert (await storage.find_project_by_name(test_user, "CORP")).id == acme.id
    assert await storage.find_project_by_name(test_user, "Globex") is None
    assert await storage.find_project_by_name(test_user, "  ") is None


@pytest.mark.asyncio
async def test_find_project_prefers_newest(storage, test_user):
    await storage.create_project(test_user, name="Acme Legacy")
    newest = await storage.create_project(test_user, name="Acme Relaunch")
    assert (await storage.find_project_by_name(test_user, "acme")).id == newest.id


@pytest.mark.asyncio
async def test_check_references(storage, test_user, other_user):
    theirs = await storage.create_agent(other_user, name="Theirs")
    with pytest.raises(ValidationError) as exc:
        await storage.check_references(test_user, agent_id=theirs.id)
    assert exc.value.field == "assigned_agent_id"


def test_normalise_priority():
    assert normalise_priority("HIGH") == TaskPriority.HIGH
    assert normalise_priority(None) == TaskPriority.MEDIUM
    assert normalise_priority("whenever") == TaskPriority.MEDIUM


@pytest.mark.asyncio
async def test_summarise_counts_categories(storage, test_user):
    tasks = [
        await storage.create_task(test_user, title="a", category="auto_execute"),
        await storage.create_task(test_user, title="b", category="delegate_agent"),
        await storage.create_task(test_user, title="c"),
    ]
    assert summarise(tasks) == {
        "total": 3, "auto_execute": 1, "delegated": 1, "human_required": 0, "pending": 1,
    }


@pytest.mark.asyncio
async def test_seed_demo_data_is_explicit_and_idempotent(storage, test_user):
    counts = await seed_demo_data(storage, test_user)
    assert counts == {"projects": 2, "agents": 2, "tasks": 5, "files": 1}
    assert len(await storage.list_tasks(test_user)) == 5
    masters = await storage.list_files(test_user, is_master_document=True)
    assert len(masters) == 1

    again = await seed_demo_data(storage, test_user)
    assert again["tasks"] == 0
    assert len(await storage.list_projects(test_user)) == 2
