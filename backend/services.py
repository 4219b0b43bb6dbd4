# services.py — Collaborator wiring for the task pipeline
# Built once in the app lifespan and stored on app.state; tests replace
# get_collaborators through dependency_overrides.

import os
import logging
from dataclasses import dataclass

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from classifier import Classifier
from database import get_db_session
from drive import GoogleDriveSource
from executor import Executor
from llm import LLMClient
from pipeline import TaskPipeline, Timeouts
from storage import Storage

logger = logging.getLogger("digital-coo.services")


@dataclass
class Collaborators:
    classifier: Classifier
    executor: Executor
    file_source: GoogleDriveSource
    timeouts: Timeouts


def load_timeouts() -> Timeouts:
    return Timeouts(
        classifier=float(os.getenv("CLASSIFIER_TIMEOUT_SECONDS", "60")),
        executor=float(os.getenv("EXECUTOR_TIMEOUT_SECONDS", "120")),
        drive=float(os.getenv("DRIVE_TIMEOUT_SECONDS", "30")),
    )


def build_collaborators() -> Collaborators:
    http = httpx.AsyncClient(timeout=httpx.Timeout(120.0, connect=10.0))
    classifier_llm = LLMClient(
        os.getenv("CLASSIFIER_PROVIDER", "anthropic"),
        os.getenv("CLASSIFIER_MODEL") or None,
        http_client=http,
    )
    executor_llm = LLMClient(
        os.getenv("EXECUTOR_PROVIDER", "gemini"),
        os.getenv("EXECUTOR_MODEL") or None,
        http_client=http,
    )
    logger.info(
        f"Classifier: {classifier_llm.provider}/{classifier_llm.model}, "
        f"executor: {executor_llm.provider}/{executor_llm.model}"
    )
    return Collaborators(
        classifier=Classifier(classifier_llm),
        executor=Executor(executor_llm),
        file_source=GoogleDriveSource(http_client=http),
        timeouts=load_timeouts(),
    )


async def close_collaborators(collaborators: Collaborators):
    # All three share one HTTP client
    await collaborators.file_source.aclose()


def get_collaborators(request: Request) -> Collaborators:
    return request.app.state.collaborators


def get_storage(db: AsyncSession = Depends(get_db_session)) -> Storage:
    return Storage(db)


def get_pipeline(
    storage: Storage = Depends(get_storage),
    collaborators: Collaborators = Depends(get_collaborators),
) -> TaskPipeline:
    return TaskPipeline(
        storage,
        collaborators.classifier,
        collaborators.executor,
        collaborators.file_source,
        collaborators.timeouts,
    )
