#!/usr/bin/env python3
"""
Digital COO — Demo data seeder

Creates a small, realistic workspace (projects, agents, tasks in every
category, a master document and a welcome notification) for one user.
Never runs on startup; invoke it explicitly.

Usage:
    python seed.py --user-id <user-id>
    python seed.py --user-id <user-id> --force
"""
import asyncio
import argparse
import logging
from typing import Dict

from database import init_db, get_db_context
from models import (
    TaskCategory, TaskStatus, TaskPriority, AgentType, AgentOrigin,
    FileKind, FileSource, NotificationType, ProjectStatus, utcnow,
)
from storage import Storage

logger = logging.getLogger("digital-coo.seed")


# ── Demo content ────────────────────────────────────────────

PROJECTS = [
    {"name": "Acme Corp Launch", "description": "Go-to-market for the Acme Corp product line"},
    {"name": "Internal Operations", "description": "Recurring back-office work"},
]

AGENTS = [
    {
        "name": "Content Writer",
        "description": "Drafts blog posts, newsletters and product copy",
        "type": AgentType.PROMPT,
        "prompt": "You are a concise, friendly content writer. Use short paragraphs and a clear call to action.",
    },
    {
        "name": "Market Researcher",
        "description": "Summarises competitors and market trends",
        "type": AgentType.PROMPT,
        "created_by": AgentOrigin.DIGITAL_COO,
        "prompt": "You are a market analyst. Cite the assumptions behind every estimate.",
    },
]

# (title, description, project index or None, category, priority)
TASKS = [
    ("Generate startup descriptions", "Three one-paragraph descriptions for the launch page", 0,
     TaskCategory.AUTO_EXECUTE, TaskPriority.HIGH),
    ("Competitor pricing analysis", "Compare pricing tiers of the top five competitors", 0,
     TaskCategory.DELEGATE_AGENT, TaskPriority.MEDIUM),
    ("Approve Q3 marketing budget", "Decide between the two proposed allocations", 0,
     TaskCategory.HUMAN_REQUIRED, TaskPriority.URGENT),
    ("Renew office insurance", "Policy expires at month end", 1,
     TaskCategory.HUMAN_REQUIRED, TaskPriority.HIGH),
    ("Summarise weekly support tickets", None, 1,
     TaskCategory.PENDING, TaskPriority.LOW),
]

MASTER_DOCUMENT = (
    "Acme Corp is launching a scheduling assistant for independent clinics. "
    "It books, reminds and reschedules patients automatically, cutting no-shows by a third."
)


async def seed_demo_data(storage: Storage, user_id: str, force: bool = False) -> Dict[str, int]:
    """Insert the demo workspace for user_id. Skips users that already have projects unless force is set."""
    if not force and await storage.list_projects(user_id):
        logger.info(f"User {user_id} already has projects; skipping demo data")
        return {"projects": 0, "agents": 0, "tasks": 0, "files": 0}

    projects = [
        await storage.create_project(user_id, status=ProjectStatus.ACTIVE, **p) for p in PROJECTS
    ]
    agents = [await storage.create_agent(user_id, **a) for a in AGENTS]

    tasks = 0
    for title, description, project_idx, category, priority in TASKS:
        await storage.create_task(
            user_id,
            title=title,
            description=description,
            project_id=projects[project_idx].id if project_idx is not None else None,
            assigned_agent_id=agents[0].id if category == TaskCategory.DELEGATE_AGENT else None,
            category=category,
            status=TaskStatus.PENDING,
            priority=priority,
        )
        tasks += 1

    document = await storage.create_file(
        user_id,
        project_id=projects[0].id,
        name="acme-launch-brief.txt",
        mime_type="text/plain",
        size=len(MASTER_DOCUMENT.encode("utf-8")),
        type=FileKind.MASTER_DOCUMENT,
        source=FileSource.GENERATED,
        content=MASTER_DOCUMENT,
        is_master_document=True,
        processed_at=utcnow(),
    )

    await storage.notify(
        user_id, NotificationType.INFO, "Welcome to Digital COO",
        "Demo projects, agents and tasks have been added to your workspace.",
    )
    await storage.log_activity(
        user_id, "demo_seeded", f"Added {tasks} demo tasks", "file", document.id,
    )
    return {"projects": len(projects), "agents": len(agents), "tasks": tasks, "files": 1}


# ── CLI ─────────────────────────────────────────────────────

async def _run(user_id: str, force: bool) -> Dict[str, int]:
    await init_db()
    async with get_db_context() as session:
        return await seed_demo_data(Storage(session), user_id, force=force)


def main():
    parser = argparse.ArgumentParser(description="Digital COO demo data seeder")
    parser.add_argument("--user-id", required=True, help="Owner of the demo workspace")
    parser.add_argument("--force", action="store_true", help="Seed even if the user already has projects")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s %(message)s")
    counts = asyncio.run(_run(args.user_id, args.force))
    print(f"✅ Demo data seeded for {args.user_id}")
    for name, count in counts.items():
        print(f"   {name.capitalize()}: {count}")


if __name__ == "__main__":
    main()
