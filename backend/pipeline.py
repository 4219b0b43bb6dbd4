# pipeline.py — Task lifecycle and the import / triage / execute pipeline
"""
Task pipeline
=============

Owns every task state transition:

    category:  pending -> auto_execute | delegate_agent | human_required
    status:    pending -> in_progress -> completed | failed
               failed  -> in_progress            (manual retry)

Collaborators (classifier, executor, file source) are injected; every call
to one of them runs under asyncio.wait_for with its own timeout. Each step
commits on its own, so a crash midway through an import leaves whatever was
already written.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from classifier import Classifier, TriageResult, ParsedTask
from drive import GoogleDriveSource, FileMeta
from errors import (
    DigitalCOOError, NotFoundError, ValidationError, ConflictError,
    ExecutionFailure, ProviderError, DriveError,
)
from executor import Executor
from models import (
    Task, File, SocialPost, TaskCategory, TaskStatus, TaskPriority,
    FileKind, FileSource, SocialPlatform, PostStatus, NotificationType, utcnow,
)
from storage import Storage
import prompts

logger = logging.getLogger("digital-coo.pipeline")


@dataclass
class Timeouts:
    classifier: float = 60.0
    executor: float = 120.0
    drive: float = 30.0


@dataclass
class ImportResult:
    file: File
    tasks: List[Task]
    summary: Dict[str, int]


@dataclass
class ExecutionOutcome:
    success: bool
    result: Optional[str] = None
    error: Optional[str] = None


@dataclass
class PostGenerationResult:
    posts: List[SocialPost]
    failures: Dict[str, str] = field(default_factory=dict)


def normalise_priority(value: Optional[str]) -> TaskPriority:
    try:
        return TaskPriority((value or "").strip().lower())
    except ValueError:
        return TaskPriority.MEDIUM


def summarise(tasks: List[Task]) -> Dict[str, int]:
    categories = [TaskCategory(t.category) for t in tasks]
    return {
        "total": len(tasks),
        "auto_execute": categories.count(TaskCategory.AUTO_EXECUTE),
        "delegated": categories.count(TaskCategory.DELEGATE_AGENT),
        "human_required": categories.count(TaskCategory.HUMAN_REQUIRED),
        "pending": categories.count(TaskCategory.PENDING),
    }


class TaskPipeline:

    def __init__(
        self,
        storage: Storage,
        classifier: Classifier,
        executor: Executor,
        file_source: GoogleDriveSource,
        timeouts: Optional[Timeouts] = None,
    ):
        self.storage = storage
        self.classifier = classifier
        self.executor = executor
        self.file_source = file_source
        self.timeouts = timeouts or Timeouts()

    # ============================================================
    # COLLABORATOR CALLS
    # ============================================================

    async def _with_timeout(self, awaitable, seconds: float, error_cls, what: str):
        try:
            return await asyncio.wait_for(awaitable, timeout=seconds)
        except asyncio.TimeoutError:
            logger.warning(f"{what} timed out after {seconds:g}s")
            raise error_cls(f"{what} timed out after {seconds:g}s")

    async def _classify(self, task: Task) -> TriageResult:
        return await self._with_timeout(
            self.classifier.classify_task(task.title, task.description),
            self.timeouts.classifier, ProviderError, "Classifier",
        )

    async def _drive(self, awaitable):
        return await self._with_timeout(awaitable, self.timeouts.drive, DriveError, "Google Drive")

    async def _generate(self, prompt: str) -> str:
        output = await self._with_timeout(
            self.executor.generate(prompt), self.timeouts.executor, ExecutionFailure, "Execution",
        )
        if not output or not output.strip():
            raise ExecutionFailure("Executor returned no output")
        return output

    # ============================================================
    # MANUAL CREATE / EDIT
    # ============================================================

    async def create_task(self, user_id: str, **fields) -> Task:
        fields.pop("status", None)
        task = await self.storage.create_task(user_id, status=TaskStatus.PENDING, **fields)
        await self.storage.log_activity(
            user_id, "task_created", f"Created task: {task.title}", "task", task.id,
        )
        return task

    async def update_task(self, user_id: str, task_id: str, changes: Dict[str, Any]) -> Task:
        """Apply a manual edit while keeping completed_at and error_message consistent with status."""
        task = await self.storage.get_task(user_id, task_id)
        changes = {
            k: v for k, v in changes.items()
            if v is not None or k not in ("title", "category", "priority")
        }
        await self.storage.check_references(
            user_id, changes.get("project_id"), changes.get("assigned_agent_id"),
        )

        status = TaskStatus(changes["status"]) if changes.get("status") is not None else TaskStatus(task.status)
        if "status" in changes and changes["status"] is None:
            changes.pop("status")

        if status == TaskStatus.FAILED:
            message = changes.get("error_message") if "error_message" in changes else task.error_message
            if not message:
                raise ValidationError("A failed task requires an error message", field="error_message")
            changes["error_message"] = message
        else:
            changes["error_message"] = None

        if status == TaskStatus.COMPLETED:
            if task.completed_at is None or TaskStatus(task.status) != TaskStatus.COMPLETED:
                changes["completed_at"] = utcnow()
        else:
            changes["completed_at"] = None

        if "status" in changes:
            changes["status"] = status
            if status != TaskStatus(task.status):
                logger.info(f"Task {task.id} manually moved {TaskStatus(task.status).value} -> {status.value}")
        if changes.get("category") is not None:
            changes["category"] = TaskCategory(changes["category"])
        if changes.get("priority") is not None:
            changes["priority"] = TaskPriority(changes["priority"])
        return await self.storage.update_task(task, changes)

    # ============================================================
    # TRIAGE
    # ============================================================

    async def triage(self, user_id: str, task_id: str) -> TriageResult:
        task = await self.storage.get_task(user_id, task_id)
        result = await self._classify(task)
        category = TaskCategory(result.category)
        await self.storage.update_task(task, {"category": category})
        logger.info(f"Task {task.id} triaged as {category.value} (confidence {result.confidence:.2f})")

        await self.storage.log_activity(
            user_id, "task_triaged", f"Triaged task: {task.title} as {category.value}",
            "task", task.id, {"confidence": result.confidence, "reasoning": result.reasoning},
        )
        if category == TaskCategory.HUMAN_REQUIRED:
            await self.storage.notify(
                user_id, NotificationType.ACTION_REQUIRED, "Action Required",
                f"Task needs your attention: {task.title}", related_task_id=task.id,
                related_project_id=task.project_id,
            )
        return result

    async def triage_all(self, user_id: str) -> Dict[str, Any]:
        tasks = await self.storage.list_tasks(user_id, category=TaskCategory.PENDING.value)
        results = []
        for task in tasks:
            try:
                result = await self.triage(user_id, task.id)
                results.append({"task_id": task.id, "category": result.category})
            except DigitalCOOError as e:
                logger.warning(f"Triage of task {task.id} failed: {e.message}")
                results.append({"task_id": task.id, "error": e.message})
            except Exception as e:
                logger.warning(f"Triage of task {task.id} failed: {e}", exc_info=True)
                results.append({"task_id": task.id, "error": "Triage failed"})
        return {"processed": len(tasks), "results": results}

    # ============================================================
    # EXECUTE
    # ============================================================

    async def execute(self, user_id: str, task_id: str) -> ExecutionOutcome:
        task = await self.storage.get_task(user_id, task_id)
        if TaskStatus(task.status) == TaskStatus.IN_PROGRESS:
            raise ConflictError("Task is already being executed")
        await self.storage.claim_task(task)
        logger.info(f"Task {task.id} -> in_progress")

        agent_prompt = None
        if task.assigned_agent_id:
            try:
                agent = await self.storage.get_agent(user_id, task.assigned_agent_id)
            except NotFoundError:
                logger.warning(f"Task {task.id} references missing agent {task.assigned_agent_id}")
                agent = None
            if agent is not None and agent.is_active and agent.prompt:
                agent_prompt = agent.prompt
                await self.storage.record_agent_use(agent)

        try:
            output = await self._generate(prompts.execute_prompt(task.title, task.description, agent_prompt))
        except Exception as e:
            error = getattr(e, "message", None) or str(e) or e.__class__.__name__
            logger.warning(f"Task {task.id} -> failed: {error}")
            await self.storage.update_task(task, {"status": TaskStatus.FAILED, "error_message": error})
            await self.storage.log_activity(
                user_id, "task_failed", f"Task failed: {task.title}", "task", task.id, {"error": error},
            )
            await self.storage.notify(
                user_id, NotificationType.ERROR, "Task Failed",
                f"Task \"{task.title}\" failed: {error}", related_task_id=task.id,
                related_project_id=task.project_id,
            )
            return ExecutionOutcome(success=False, error=error)

        await self.storage.update_task(task, {
            "status": TaskStatus.COMPLETED,
            "result": output,
            "completed_at": utcnow(),
            "error_message": None,
        })
        logger.info(f"Task {task.id} -> completed")
        await self.storage.log_activity(
            user_id, "task_completed", f"Completed task: {task.title}", "task", task.id,
        )
        await self.storage.notify(
            user_id, NotificationType.TASK_UPDATE, "Task Completed",
            f"Task \"{task.title}\" completed", related_task_id=task.id,
            related_project_id=task.project_id,
        )
        return ExecutionOutcome(success=True, result=output)

    # ============================================================
    # IMPORT
    # ============================================================

    async def parse_task_file(self, raw_text: str) -> List[ParsedTask]:
        if not raw_text or not raw_text.strip():
            raise ValidationError("Content is required", field="content")
        return await self._with_timeout(
            self.classifier.parse_task_file(raw_text),
            self.timeouts.classifier, ProviderError, "Classifier",
        )

    async def list_folder(self, folder_name: str) -> Dict[str, Any]:
        folder = await self._resolve_folder(folder_name)
        files = await self._drive(self.file_source.list_files(folder))
        return {"folder_id": folder.id, "files": [f.to_dict() for f in files]}

    async def _resolve_folder(self, folder_name: str) -> FileMeta:
        if not folder_name or not folder_name.strip():
            raise ValidationError("Folder name is required", field="folder_name")
        folder = await self._drive(self.file_source.find_folder(folder_name))
        if folder is None:
            raise NotFoundError("folder", f"Folder '{folder_name}' not found")
        return folder

    async def import_tasks(self, user_id: str, folder_name: str, file_name: str) -> ImportResult:
        if not file_name or not file_name.strip():
            raise ValidationError("File name is required", field="file_name")
        folder = await self._resolve_folder(folder_name)
        meta = await self._drive(self.file_source.find_file(folder, file_name))
        if meta is None:
            raise NotFoundError("file", f"File '{file_name}' not found in folder '{folder_name}'")
        content = await self._drive(self.file_source.get_content(meta))

        file = await self.storage.create_file(
            user_id,
            name=file_name,
            mime_type=meta.mime_type,
            size=len(content.encode("utf-8")),
            type=FileKind.INPUT,
            source=FileSource.GOOGLE_DRIVE,
            google_drive_id=meta.id,
            content=content,
        )
        logger.info(f"Imported {file_name} ({file.size} bytes) from Drive folder {folder_name}")

        entries = await self.parse_task_file(content)

        tasks = []
        for entry in entries:
            project = None
            if entry.project_name:
                project = await self.storage.find_project_by_name(user_id, entry.project_name)
            task = await self.storage.create_task(
                user_id,
                project_id=project.id if project else None,
                title=entry.title,
                description=entry.description,
                priority=normalise_priority(entry.priority),
                category=TaskCategory.PENDING,
                status=TaskStatus.PENDING,
                source_file=file_name,
            )
            try:
                result = await self._classify(task)
                task = await self.storage.update_task(task, {"category": TaskCategory(result.category)})
            except Exception as e:
                logger.warning(f"Triage of imported task {task.id} failed, left pending: {e}", exc_info=True)
            tasks.append(task)

        file = await self.storage.update_file(file, {"processed_at": utcnow()})
        await self.storage.log_activity(
            user_id, "file_processed", f"Imported {len(tasks)} tasks from {file_name}",
            "file", file.id,
        )
        await self.storage.notify(
            user_id, NotificationType.INFO, "Tasks Imported",
            f"Successfully imported {len(tasks)} tasks from {file_name}",
        )
        return ImportResult(file=file, tasks=tasks, summary=summarise(tasks))

    # ============================================================
    # GENERATE POSTS
    # ============================================================

    async def generate_posts(self, user_id: str, file_id: str) -> PostGenerationResult:
        file = await self.storage.get_file(user_id, file_id)
        source = file.content or file.name
        outcome = PostGenerationResult(posts=[])

        for platform in prompts.PLATFORM_REQUIREMENTS:
            try:
                content = await self._generate(prompts.post_prompt(platform, source))
            except Exception as e:
                error = getattr(e, "message", None) or str(e) or e.__class__.__name__
                logger.warning(f"Post generation for {platform} failed: {error}")
                outcome.failures[platform] = error
                continue
            post = await self.storage.create_social_post(
                user_id,
                master_document_id=file.id,
                platform=SocialPlatform(platform),
                content=content,
                status=PostStatus.DRAFT,
            )
            outcome.posts.append(post)

        if not outcome.posts:
            raise ExecutionFailure("Post generation failed for every platform")

        await self.storage.log_activity(
            user_id, "posts_generated",
            f"Generated {len(outcome.posts)} social posts from {file.name}",
            "file", file.id, {"failed_platforms": list(outcome.failures)},
        )
        if outcome.failures:
            await self.storage.notify(
                user_id, NotificationType.ERROR, "Post Generation Incomplete",
                f"Could not generate posts for: {', '.join(outcome.failures)}",
            )
        return outcome
