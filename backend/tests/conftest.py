# tests/conftest.py — Shared test fixtures
import os
import uuid
import asyncio
from typing import Dict, List, Optional, Tuple, Union

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Use SQLite for tests
TEST_DB_URL = "sqlite+aiosqlite:///./test.db"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-unit-tests-only-min-32-chars"
os.environ["ENVIRONMENT"] = "test"

from models import Base
from auth import AuthService
from classifier import TriageResult, ParsedTask
from database import get_db_session
from drive import FileMeta, FOLDER_MIME
from pipeline import TaskPipeline, Timeouts
from services import Collaborators, get_collaborators
from storage import Storage
from main import app


# ============================================================
# FAKE COLLABORATORS
# ============================================================

class FakeClassifier:
    """Triage answers keyed by task title; anything unknown gets `default`."""

    def __init__(self):
        self.default = TriageResult(category="auto_execute", confidence=0.9, reasoning="Routine content work")
        self.results: Dict[str, Union[TriageResult, Exception]] = {}
        self.parsed: List[ParsedTask] = []
        self.parse_error: Optional[Exception] = None
        self.classified: List[str] = []
        self.parsed_inputs: List[str] = []

    async def classify_task(self, title, description):
        self.classified.append(title)
        outcome = self.results.get(title, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def parse_task_file(self, raw_text):
        self.parsed_inputs.append(raw_text)
        if self.parse_error:
            raise self.parse_error
        return list(self.parsed)


class FakeExecutor:
    """Returns queued outputs in order (exceptions are raised), then `default`."""

    def __init__(self):
        self.default = "Report generated."
        self.outputs: List[Union[str, Exception]] = []
        self.prompts: List[str] = []
        self.delay = 0.0

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outputs.pop(0) if self.outputs else self.default
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeDriveSource:

    def __init__(self):
        self.folders: Dict[str, Dict[str, Tuple[FileMeta, str]]] = {}

    def add_file(self, folder: str, name: str, content: str, mime_type: str = "text/plain") -> FileMeta:
        meta = FileMeta(id=f"drive-{uuid.uuid4().hex[:8]}", name=name, mime_type=mime_type,
                        size=len(content.encode("utf-8")))
        self.folders.setdefault(folder, {})[name] = (meta, content)
        return meta

    async def find_folder(self, name):
        if name not in self.folders:
            return None
        return FileMeta(id=f"folder-{name}", name=name, mime_type=FOLDER_MIME)

    async def list_files(self, folder):
        return [meta for meta, _ in self.folders[folder.name].values()]

    async def find_file(self, folder, name):
        entry = self.folders[folder.name].get(name)
        return entry[0] if entry else None

    async def get_content(self, file):
        for entries in self.folders.values():
            for meta, content in entries.values():
                if meta.id == file.id:
                    return content
        raise KeyError(file.id)


# ============================================================
# DATABASE
# ============================================================

@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine):
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def collaborators():
    return Collaborators(
        classifier=FakeClassifier(),
        executor=FakeExecutor(),
        file_source=FakeDriveSource(),
        timeouts=Timeouts(classifier=1.0, executor=1.0, drive=1.0),
    )


@pytest.fixture
def storage(db_session):
    return Storage(db_session)


@pytest.fixture
def pipeline(storage, collaborators):
    return TaskPipeline(
        storage,
        collaborators.classifier,
        collaborators.executor,
        collaborators.file_source,
        collaborators.timeouts,
    )


@pytest_asyncio.fixture(scope="function")
async def client(db_engine, collaborators):
    """HTTP test client with overridden DB and collaborator dependencies"""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_collaborators] = lambda: collaborators
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ============================================================
# USERS
# ============================================================

@pytest.fixture
def test_user():
    return str(uuid.uuid4())


@pytest.fixture
def other_user():
    return str(uuid.uuid4())


def get_auth_headers(user_id: str, email: Optional[str] = None) -> dict:
    """Generate auth headers for a user id"""
    token = AuthService.create_access_token({"sub": user_id, "email": email or f"{user_id[:8]}@example.com"})
    return {"Authorization": f"Bearer {token}"}
