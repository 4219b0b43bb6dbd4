# models.py — Database models for the Digital COO backend
# - UUID string primary keys everywhere
# - Every row owned by one user id (tenant isolation is enforced in storage.py)
# - Task lifecycle columns (category, status, result, error_message, completed_at)
# - Optimistic concurrency counter on tasks

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, String, DateTime, JSON, Boolean, Integer,
    Enum as SQLEnum, ForeignKey, Text, Index,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


def _enum(enum_cls):
    """Store str enums by value so raw strings and members compare equal."""
    return SQLEnum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=32,
    )


# ============================================================
# ENUMS
# ============================================================

class ProjectStatus(str, PyEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TaskCategory(str, PyEnum):
    PENDING = "pending"
    AUTO_EXECUTE = "auto_execute"
    DELEGATE_AGENT = "delegate_agent"
    HUMAN_REQUIRED = "human_required"


class TaskStatus(str, PyEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class TaskPriority(str, PyEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class AgentType(str, PyEnum):
    PROMPT = "prompt"
    SCRIPT = "script"
    AUTOMATION = "automation"


class AgentOrigin(str, PyEnum):
    USER = "user"
    DIGITAL_COO = "digital_coo"


class FileKind(str, PyEnum):
    INPUT = "input"
    OUTPUT = "output"
    MASTER_DOCUMENT = "master_document"


class FileSource(str, PyEnum):
    UPLOAD = "upload"
    GOOGLE_DRIVE = "google_drive"
    GENERATED = "generated"


class SocialPlatform(str, PyEnum):
    X = "x"
    FACEBOOK = "facebook"
    LINKEDIN = "linkedin"
    INSTAGRAM = "instagram"
    TIKTOK_SCRIPT = "tiktok_script"
    YOUTUBE_SCRIPT = "youtube_script"


class PostStatus(str, PyEnum):
    DRAFT = "draft"
    READY = "ready"
    PUBLISHED = "published"


class NotificationType(str, PyEnum):
    TASK_UPDATE = "task_update"
    ERROR = "error"
    INFO = "info"
    ACTION_REQUIRED = "action_required"


class TeamRole(str, PyEnum):
    MEMBER = "member"
    ADMIN = "admin"


class TeamMemberStatus(str, PyEnum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


# ============================================================
# PROJECTS
# ============================================================

class Project(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=new_uuid)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(_enum(ProjectStatus), default=ProjectStatus.ACTIVE, nullable=False)
    google_drive_folder_id = Column(String, nullable=True)
    google_sheet_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    tasks = relationship("Task", back_populates="project", passive_deletes=True)


# ============================================================
# AGENTS
# ============================================================

class Agent(Base):
    """Reusable automation definition a task can be delegated to"""
    __tablename__ = "agents"

    id = Column(String, primary_key=True, default=new_uuid)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(_enum(AgentType), default=AgentType.PROMPT, nullable=False)
    created_by = Column(_enum(AgentOrigin), default=AgentOrigin.USER, nullable=False)
    prompt = Column(Text, nullable=True)
    script = Column(Text, nullable=True)
    readme = Column(Text, nullable=True)
    configuration = Column(JSON, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
    google_drive_file_id = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


# ============================================================
# TASKS
# ============================================================

class Task(Base):
    """Unit of work imported or entered by the user and routed by triage"""
    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=new_uuid)
    user_id = Column(String, nullable=False, index=True)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(_enum(TaskCategory), default=TaskCategory.PENDING, nullable=False)
    status = Column(_enum(TaskStatus), default=TaskStatus.PENDING, nullable=False)
    priority = Column(_enum(TaskPriority), default=TaskPriority.MEDIUM, nullable=False)
    source_file = Column(String, nullable=True)  # Name of the file the task was imported from
    assigned_agent_id = Column(String, ForeignKey("agents.id", ondelete="SET NULL"), nullable=True)
    result = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    extra_data = Column("metadata", JSON, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    project = relationship("Project", back_populates="tasks")

    __table_args__ = (
        Index("idx_task_user_category_status", "user_id", "category", "status"),
        Index("idx_task_user_project", "user_id", "project_id"),
    )


# ============================================================
# FILES & SOCIAL POSTS
# ============================================================

class File(Base):
    """Imported, uploaded or generated document"""
    __tablename__ = "files"

    id = Column(String, primary_key=True, default=new_uuid)
    user_id = Column(String, nullable=False, index=True)
    project_id = Column(String, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String, nullable=False)
    mime_type = Column(String, nullable=True)
    size = Column(Integer, nullable=True)
    type = Column(_enum(FileKind), default=FileKind.INPUT, nullable=False)
    source = Column(_enum(FileSource), default=FileSource.UPLOAD, nullable=False)
    google_drive_id = Column(String, nullable=True)
    google_drive_url = Column(String, nullable=True)
    content = Column(Text, nullable=True)
    is_master_document = Column(Boolean, nullable=False, default=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    posts = relationship("SocialPost", back_populates="master_document", passive_deletes=True)


class SocialPost(Base):
    """Platform-specific derivative of a master document"""
    __tablename__ = "social_posts"

    id = Column(String, primary_key=True, default=new_uuid)
    user_id = Column(String, nullable=False, index=True)
    master_document_id = Column(String, ForeignKey("files.id", ondelete="CASCADE"), nullable=True, index=True)
    platform = Column(_enum(SocialPlatform), nullable=False)
    content = Column(Text, nullable=False)
    status = Column(_enum(PostStatus), default=PostStatus.DRAFT, nullable=False)
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    master_document = relationship("File", back_populates="posts")


# ============================================================
# NOTIFICATIONS & ACTIVITY
# ============================================================

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=new_uuid)
    user_id = Column(String, nullable=False, index=True)
    type = Column(_enum(NotificationType), nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    related_task_id = Column(String, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    related_project_id = Column(String, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    email_sent = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


class ActivityLog(Base):
    """Append-only audit trail"""
    __tablename__ = "activity_logs"

    id = Column(String, primary_key=True, default=new_uuid)
    user_id = Column(String, nullable=False, index=True)
    action = Column(String, nullable=False)  # "task_created", "task_completed", "file_processed", ...
    description = Column(Text, nullable=False)
    entity_type = Column(String, nullable=True)  # "task", "project", "agent", "file"
    entity_id = Column(String, nullable=True)  # Not a foreign key: survives entity deletion
    extra_data = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


# ============================================================
# TEAM
# ============================================================

class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(String, primary_key=True, default=new_uuid)
    owner_id = Column(String, nullable=False, index=True)
    member_id = Column(String, nullable=False)
    email = Column(String, nullable=False)
    role = Column(_enum(TeamRole), default=TeamRole.MEMBER, nullable=False)
    status = Column(_enum(TeamMemberStatus), default=TeamMemberStatus.PENDING, nullable=False)
    invited_at = Column(DateTime(timezone=True), default=utcnow)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
