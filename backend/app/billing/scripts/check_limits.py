"""Print a user's plan, usage and quota decisions.

Useful after a webhook or a manual plan change to see what the API will allow:
    python -m app.billing.scripts.check_limits <user_id> [<project_id>]
"""

import asyncio
import sys

from app.billing.plans import get_plan
from app.database import async_session_factory, engine
from app.services.subscription_service import (
    NO_PROJECT_BUCKET,
    can_create_private_snippets,
    can_create_project,
    can_create_snippet,
    get_user_plan,
    get_user_usage,
)


def _describe(label: str, decision) -> None:
    print(f"   {label}: {decision.allowed}")
    if not decision.allowed:
        print(f"   Reason: {decision.reason}")


async def main(user_id: str, project_id: str | None = None) -> None:
    async with async_session_factory() as db:
        plan_type = await get_user_plan(db, user_id)
        plan = get_plan(plan_type)
        print(f"Plan: {plan_type.value} ({plan.name})")

        usage = await get_user_usage(db, user_id)
        print(f"Projects: {usage.projects}")
        print(f"Total snippets: {usage.total_snippets}")
        for bucket, count in sorted(usage.snippets_per_project.items()):
            print(f"   {bucket}: {count}")

        print("\nQuota checks:")
        _describe("Can create project", await can_create_project(db, user_id))
        _describe("Can create loose snippet", await can_create_snippet(db, user_id, None))
        buckets = [project_id] if project_id else [b for b in usage.snippets_per_project if b != NO_PROJECT_BUCKET]
        for bucket in buckets:
            _describe(f"Can create snippet in {bucket}", await can_create_snippet(db, user_id, bucket))
        print(f"   Private snippets: {await can_create_private_snippets(db, user_id)}")

    await engine.dispose()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python -m app.billing.scripts.check_limits <user_id> [<project_id>]")
        sys.exit(1)
    asyncio.run(main(*sys.argv[1:3]))
