# storage.py — Tenant-scoped persistence for every Digital COO entity
"""
Typed CRUD and filtered list queries over one AsyncSession.

Every read takes the caller's user id; a row owned by someone else is
reported exactly like a missing one. Mutations commit immediately, one
step at a time, so a multi-step pipeline operation is not atomic.
"""
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlalchemy import select, func, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from errors import NotFoundError, ConflictError, ValidationError
from models import (
    Project, Task, Agent, File, SocialPost, Notification, ActivityLog, TeamMember,
    TaskCategory, TaskStatus, NotificationType, utcnow,
)

logger = logging.getLogger("digital-coo.storage")

URGENT_TASK_LIMIT = 10
NOTIFICATION_LIST_LIMIT = 50


class Storage:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _one(self, model, entity: str, user_id: str, entity_id: str, owner_column=None):
        owner = owner_column if owner_column is not None else model.user_id
        result = await self.db.execute(
            select(model).where(model.id == entity_id, owner == user_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(entity)
        return row

    async def _save(self, row):
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return row

    async def _apply(self, row, changes: Dict[str, Any]):
        for key, value in changes.items():
            setattr(row, key, value)
        row.updated_at = utcnow()
        return await self._save(row)

    # ============================================================
    # PROJECTS
    # ============================================================

    async def list_projects(self, user_id: str) -> List[Project]:
        result = await self.db.execute(
            select(Project).where(Project.user_id == user_id).order_by(Project.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_project(self, user_id: str, project_id: str) -> Project:
        return await self._one(Project, "project", user_id, project_id)

    async def find_project_by_name(self, user_id: str, name: str) -> Optional[Project]:
        """Case-insensitive substring match, newest project first."""
        needle = name.strip().lower()
        if not needle:
            return None
        for project in await self.list_projects(user_id):
            if needle in project.name.lower():
                return project
        return None

    async def create_project(self, user_id: str, **fields) -> Project:
        return await self._save(Project(user_id=user_id, **fields))

    async def update_project(self, project: Project, changes: Dict[str, Any]) -> Project:
        return await self._apply(project, changes)

    async def delete_project(self, user_id: str, project_id: str) -> None:
        project = await self.get_project(user_id, project_id)
        task_ids = select(Task.id).where(Task.project_id == project.id)
        await self.db.execute(
            update(Notification)
            .where(Notification.related_task_id.in_(task_ids))
            .values(related_task_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            update(Notification)
            .where(Notification.related_project_id == project.id)
            .values(related_project_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            update(File).where(File.project_id == project.id).values(project_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            delete(Task).where(Task.project_id == project.id)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(project)
        await self.db.commit()
        logger.info(f"Deleted project {project.id} with its tasks")

    # ============================================================
    # TASKS
    # ============================================================

    async def list_tasks(
        self,
        user_id: str,
        project_id: Optional[str] = None,
        category: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Task]:
        stmt = select(Task).where(Task.user_id == user_id)
        if project_id:
            stmt = stmt.where(Task.project_id == project_id)
        if category:
            stmt = stmt.where(Task.category == category)
        if status:
            stmt = stmt.where(Task.status == status)
        result = await self.db.execute(stmt.order_by(Task.created_at.desc()))
        return list(result.scalars().all())

    async def get_task(self, user_id: str, task_id: str) -> Task:
        return await self._one(Task, "task", user_id, task_id)

    async def check_references(
        self, user_id: str, project_id: Optional[str] = None, agent_id: Optional[str] = None,
    ) -> None:
        """Reject references to another user's project or agent."""
        if project_id:
            try:
                await self.get_project(user_id, project_id)
            except NotFoundError:
                raise ValidationError("Project not found", field="project_id")
        if agent_id:
            try:
                await self.get_agent(user_id, agent_id)
            except NotFoundError:
                raise ValidationError("Agent not found", field="assigned_agent_id")

    async def create_task(self, user_id: str, **fields) -> Task:
        await self.check_references(user_id, fields.get("project_id"), fields.get("assigned_agent_id"))
        return await self._save(Task(user_id=user_id, **fields))

    async def update_task(self, task: Task, changes: Dict[str, Any]) -> Task:
        if changes:
            changes = {**changes, "version": (task.version or 0) + 1}
        return await self._apply(task, changes)

    async def claim_task(self, task: Task) -> Task:
        """Move a task to in_progress if nobody changed it since it was read."""
        result = await self.db.execute(
            update(Task)
            .where(Task.id == task.id, Task.version == task.version)
            .values(
                status=TaskStatus.IN_PROGRESS,
                completed_at=None,
                error_message=None,
                version=Task.version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if result.rowcount != 1:
            raise ConflictError("Task was modified by another request")
        await self.db.refresh(task)
        return task

    async def delete_task(self, user_id: str, task_id: str) -> None:
        task = await self.get_task(user_id, task_id)
        await self.db.execute(
            update(Notification)
            .where(Notification.related_task_id == task.id)
            .values(related_task_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(task)
        await self.db.commit()

    # ============================================================
    # AGENTS
    # ============================================================

    async def list_agents(self, user_id: str) -> List[Agent]:
        result = await self.db.execute(
            select(Agent).where(Agent.user_id == user_id).order_by(Agent.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_agent(self, user_id: str, agent_id: str) -> Agent:
        return await self._one(Agent, "agent", user_id, agent_id)

    async def create_agent(self, user_id: str, **fields) -> Agent:
        return await self._save(Agent(user_id=user_id, **fields))

    async def update_agent(self, agent: Agent, changes: Dict[str, Any]) -> Agent:
        return await self._apply(agent, changes)

    async def record_agent_use(self, agent: Agent) -> Agent:
        return await self._apply(agent, {"usage_count": (agent.usage_count or 0) + 1})

    async def delete_agent(self, user_id: str, agent_id: str) -> None:
        agent = await self.get_agent(user_id, agent_id)
        await self.db.execute(
            update(Task)
            .where(Task.user_id == user_id, Task.assigned_agent_id == agent.id)
            .values(assigned_agent_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(agent)
        await self.db.commit()

    # ============================================================
    # FILES
    # ============================================================

    async def list_files(
        self,
        user_id: str,
        project_id: Optional[str] = None,
        file_type: Optional[str] = None,
        is_master_document: Optional[bool] = None,
    ) -> List[File]:
        stmt = select(File).where(File.user_id == user_id)
        if project_id:
            stmt = stmt.where(File.project_id == project_id)
        if file_type:
            stmt = stmt.where(File.type == file_type)
        if is_master_document is not None:
            stmt = stmt.where(File.is_master_document == is_master_document)
        result = await self.db.execute(stmt.order_by(File.created_at.desc()))
        return list(result.scalars().all())

    async def get_file(self, user_id: str, file_id: str) -> File:
        return await self._one(File, "file", user_id, file_id)

    async def create_file(self, user_id: str, **fields) -> File:
        await self.check_references(user_id, fields.get("project_id"))
        return await self._save(File(user_id=user_id, **fields))

    async def update_file(self, file: File, changes: Dict[str, Any]) -> File:
        return await self._apply(file, changes)

    async def delete_file(self, user_id: str, file_id: str) -> None:
        file = await self.get_file(user_id, file_id)
        await self.db.execute(
            delete(SocialPost).where(SocialPost.master_document_id == file.id)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(file)
        await self.db.commit()

    # ============================================================
    # SOCIAL POSTS
    # ============================================================

    async def list_social_posts(
        self,
        user_id: str,
        master_document_id: Optional[str] = None,
        platform: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[SocialPost]:
        stmt = select(SocialPost).where(SocialPost.user_id == user_id)
        if master_document_id:
            stmt = stmt.where(SocialPost.master_document_id == master_document_id)
        if platform:
            stmt = stmt.where(SocialPost.platform == platform)
        if status:
            stmt = stmt.where(SocialPost.status == status)
        result = await self.db.execute(stmt.order_by(SocialPost.created_at.desc()))
        return list(result.scalars().all())

    async def get_social_post(self, user_id: str, post_id: str) -> SocialPost:
        return await self._one(SocialPost, "social_post", user_id, post_id)

    async def create_social_post(self, user_id: str, **fields) -> SocialPost:
        return await self._save(SocialPost(user_id=user_id, **fields))

    async def update_social_post(self, post: SocialPost, changes: Dict[str, Any]) -> SocialPost:
        return await self._apply(post, changes)

    # ============================================================
    # NOTIFICATIONS
    # ============================================================

    async def list_notifications(self, user_id: str, limit: int = NOTIFICATION_LIST_LIMIT) -> List[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def notify(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        related_task_id: Optional[str] = None,
        related_project_id: Optional[str] = None,
    ) -> Notification:
        return await self._save(Notification(
            user_id=user_id, type=type, title=title, message=message,
            related_task_id=related_task_id, related_project_id=related_project_id,
        ))

    async def mark_notification_read(self, user_id: str, notification_id: str) -> Notification:
        notification = await self._one(Notification, "notification", user_id, notification_id)
        notification.is_read = True
        return await self._save(notification)

    async def mark_all_notifications_read(self, user_id: str) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount or 0

    # ============================================================
    # ACTIVITY LOG
    # ============================================================

    async def log_activity(
        self,
        user_id: str,
        action: str,
        description: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> ActivityLog:
        return await self._save(ActivityLog(
            user_id=user_id, action=action, description=description,
            entity_type=entity_type, entity_id=entity_id, extra_data=metadata,
        ))

    async def recent_activity(self, user_id: str, limit: int = 20) -> List[ActivityLog]:
        result = await self.db.execute(
            select(ActivityLog)
            .where(ActivityLog.user_id == user_id)
            .order_by(ActivityLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # ============================================================
    # TEAM
    # ============================================================

    async def list_team_members(self, owner_id: str) -> List[TeamMember]:
        result = await self.db.execute(
            select(TeamMember).where(TeamMember.owner_id == owner_id).order_by(TeamMember.invited_at.desc())
        )
        return list(result.scalars().all())

    async def create_team_member(self, owner_id: str, **fields) -> TeamMember:
        return await self._save(TeamMember(owner_id=owner_id, **fields))

    async def delete_team_member(self, owner_id: str, member_row_id: str) -> None:
        member = await self._one(TeamMember, "team_member", owner_id, member_row_id, TeamMember.owner_id)
        await self.db.delete(member)
        await self.db.commit()

    # ============================================================
    # DASHBOARD
    # ============================================================

    async def _count(self, model, *conditions) -> int:
        result = await self.db.execute(select(func.count(model.id)).where(*conditions))
        return result.scalar() or 0

    async def dashboard_stats(self, user_id: str, day_start: datetime) -> Dict[str, int]:
        return {
            "total_tasks": await self._count(Task, Task.user_id == user_id),
            "completed_today": await self._count(
                Task,
                Task.user_id == user_id,
                Task.status == TaskStatus.COMPLETED,
                Task.completed_at >= day_start,
            ),
            "pending_attention": await self._count(
                Task,
                Task.user_id == user_id,
                Task.category == TaskCategory.HUMAN_REQUIRED,
                Task.status == TaskStatus.PENDING,
            ),
            "error_count": await self._count(Task, Task.user_id == user_id, Task.status == TaskStatus.FAILED),
            "project_count": await self._count(Project, Project.user_id == user_id),
            "agent_count": await self._count(Agent, Agent.user_id == user_id),
        }

    async def urgent_tasks(self, user_id: str, limit: int = URGENT_TASK_LIMIT) -> List[Task]:
        result = await self.db.execute(
            select(Task)
            .where(
                Task.user_id == user_id,
                Task.category == TaskCategory.HUMAN_REQUIRED,
                Task.status == TaskStatus.PENDING,
            )
            .order_by(Task.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
