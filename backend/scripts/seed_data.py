"""Seed the database with a demo SnipVault user, projects and snippets.

Run inside Docker:
    docker compose exec backend python -m scripts.seed_data

Prints a bearer token for the demo user, signed with AUTH_JWT_SECRET.
"""

import asyncio
import sys
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import delete, select

from app.auth.jwt import create_access_token
from app.billing.plans import PlanType
from app.database import async_session_factory, engine
from app.models.community import CommunityLike, CommunityPost
from app.models.project import Project
from app.models.snippet import Snippet
from app.models.subscription import UserSubscription
from app.models.user import User
from app.services.project_service import create_project
from app.services.snippet_service import create_snippet
from app.services.user_service import sync_user_from_claims

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

DEMO_USER = {
    "id": "user_demo",
    "email": "demo@snipvault.dev",
    "name": "Demo Developer",
}

PROJECTS = [
    {"name": "Frontend Utils", "description": "Small helpers used across React apps", "color": "#3B82F6"},
    {"name": "Ops Scripts", "description": "Shell one-liners for servers", "color": "#10B981"},
]

SNIPPETS = [
    {
        "project": "Frontend Utils",
        "title": "Debounce",
        "language": "typescript",
        "tags": ["timing", "utils"],
        "description": "Delay a call until input settles.",
        "is_public": True,
        "code": (
            "export function debounce<T extends (...args: unknown[]) => void>(fn: T, ms = 300) {\n"
            "  let timer: ReturnType<typeof setTimeout> | undefined;\n"
            "  return (...args: Parameters<T>) => {\n"
            "    clearTimeout(timer);\n"
            "    timer = setTimeout(() => fn(...args), ms);\n"
            "  };\n"
            "}"
        ),
    },
    {
        "project": "Frontend Utils",
        "title": "useLocalStorage hook",
        "language": "tsx",
        "tags": ["react", "hooks"],
        "description": None,
        "is_public": False,
        "code": (
            "export function useLocalStorage<T>(key: string, initial: T) {\n"
            "  const [value, setValue] = useState<T>(() => {\n"
            "    const raw = localStorage.getItem(key);\n"
            "    return raw ? (JSON.parse(raw) as T) : initial;\n"
            "  });\n"
            "  useEffect(() => localStorage.setItem(key, JSON.stringify(value)), [key, value]);\n"
            "  return [value, setValue] as const;\n"
            "}"
        ),
    },
    {
        "project": "Ops Scripts",
        "title": "Disk usage by directory",
        "language": "bash",
        "tags": ["disk", "linux"],
        "description": "Largest directories first.",
        "is_public": True,
        "code": '#!/bin/bash\ndu -h --max-depth=1 "${1:-.}" | sort -hr | head -20',
    },
    {
        "project": None,
        "title": "Chunk a list",
        "language": "python",
        "tags": ["utils"],
        "description": "Split an iterable into fixed-size lists.",
        "is_public": True,
        "code": (
            "def chunks(items, size):\n"
            "    for start in range(0, len(items), size):\n"
            "        yield items[start:start + size]"
        ),
    },
]


# ---------------------------------------------------------------------------
# Main seed function
# ---------------------------------------------------------------------------


async def seed() -> None:
    """Populate the database with demo data.

    Idempotent: if the demo user exists, its data is deleted and re-seeded.
    """
    async with async_session_factory() as session:
        existing_user = await session.scalar(select(User).where(User.id == DEMO_USER["id"]))
        if existing_user is not None:
            print(f"⚠️  Demo user '{DEMO_USER['email']}' already exists. Deleting and re-seeding...")
            post_ids = select(CommunityPost.id).where(CommunityPost.user_id == existing_user.id)
            await session.execute(delete(CommunityLike).where(CommunityLike.community_id.in_(post_ids)))
            await session.execute(delete(CommunityPost).where(CommunityPost.user_id == existing_user.id))
            await session.execute(delete(Snippet).where(Snippet.user_id == existing_user.id))
            await session.execute(delete(Project).where(Project.user_id == existing_user.id))
            await session.execute(
                delete(UserSubscription).where(UserSubscription.user_id == existing_user.id)
            )
            await session.execute(delete(User).where(User.id == existing_user.id))
            await session.flush()

        # ------------------------------------------------------------------
        # 1. Demo user (a FREE subscription is created with it), upgraded to PRO
        # ------------------------------------------------------------------
        user = await sync_user_from_claims(
            session, DEMO_USER["id"], {"email": DEMO_USER["email"], "name": DEMO_USER["name"]}
        )
        subscription = await session.scalar(
            select(UserSubscription).where(UserSubscription.user_id == user.id)
        )
        subscription.plan_type = PlanType.PRO.value
        await session.flush()
        print(f"✅ Created demo user: {user.email} (id={user.id}, plan=PRO)")

        # ------------------------------------------------------------------
        # 2. Projects
        # ------------------------------------------------------------------
        projects: dict[str, Project] = {}
        for project_data in PROJECTS:
            project = await create_project(session, user_id=user.id, **project_data)
            projects[project.name] = project
            print(f"   📁 {project.name}")

        # ------------------------------------------------------------------
        # 3. Snippets (public ones are published to the community feed)
        # ------------------------------------------------------------------
        public_count = 0
        for snippet_data in SNIPPETS:
            data = dict(snippet_data)
            project_name = data.pop("project")
            project = projects.get(project_name) if project_name else None
            await create_snippet(
                session,
                user.id,
                project_id=project.id if project else None,
                **data,
            )
            public_count += int(data["is_public"])

        await session.commit()

    await engine.dispose()

    token = create_access_token({"sub": DEMO_USER["id"], "email": DEMO_USER["email"], "name": DEMO_USER["name"]})
    print()
    print("=" * 60)
    print("📊 Seed Summary")
    print("=" * 60)
    print(f"   Users:     1 ({DEMO_USER['email']})")
    print(f"   Projects:  {len(projects)}")
    print(f"   Snippets:  {len(SNIPPETS)} ({public_count} public)")
    print("=" * 60)
    print(f"🎉 Done! Authorization: Bearer {token}")


if __name__ == "__main__":
    asyncio.run(seed())
