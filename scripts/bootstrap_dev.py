#!/usr/bin/env python3
"""Create a development project and print the credentials to use it.

Prints a bearer identity token (signed with SCANARA_SECRET_KEY) for the
owner-facing API and the project's API key for the inline channel.

Usage:
    python scripts/bootstrap_dev.py [owner-id] [project-name]
"""

import asyncio
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from scanara_engine.common.config import get_settings
from scanara_engine.common.database import DatabaseManager
from scanara_engine.common.identity import SignedTokenVerifier
from scanara_engine.projects.service import ProjectService


async def bootstrap(owner_id: str, project_name: str) -> None:
    settings = get_settings()
    db = DatabaseManager(settings)
    await db.init()
    await db.create_all()

    svc = ProjectService(settings)
    async with db.get_session() as session:
        project, raw_key = await svc.create_project(session, owner_id, project_name)

    await db.close()

    verifier = SignedTokenVerifier(settings.secret_key, settings.identity_token_max_age)
    print(f"  [created] project {project.id} ({project.name})")
    print(f"  identity token: {verifier.issue(owner_id)}")
    print(f"  project API key: {raw_key}")


if __name__ == "__main__":
    owner = sys.argv[1] if len(sys.argv) > 1 else "dev-owner"
    name = sys.argv[2] if len(sys.argv) > 2 else "Development Project"
    asyncio.run(bootstrap(owner, name))
