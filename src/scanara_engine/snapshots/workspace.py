"""Transient clone workspaces and the files read out of them."""

import asyncio
import logging
import os
import secrets
import shutil
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator

logger = logging.getLogger(__name__)

IGNORED_DIRS: frozenset[str] = frozenset({
    "node_modules", ".git", "dist", "build", ".next", ".cache",
    "vendor", "__pycache__", ".venv", "venv",
})

CODE_EXTENSIONS: frozenset[str] = frozenset({
    ".js", ".jsx", ".ts", ".tsx", ".py", ".java", ".cpp", ".c", ".cs",
    ".go", ".rs", ".php", ".rb", ".swift", ".kt", ".scala", ".dart",
    ".vue", ".svelte",
})


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    delay: float = 0.5  # seconds between attempts


def remove_tree(path: str | os.PathLike, policy: RetryPolicy = RetryPolicy()) -> bool:
    """Delete a directory tree, best effort. Never raises.

    Retries ``policy.attempts`` times, then force-removes ignoring
    individual errors. Returns True when the tree is gone.
    """
    target = Path(path)
    if not target.exists():
        return True

    for attempt in range(1, policy.attempts + 1):
        try:
            shutil.rmtree(target)
            return True
        except OSError as exc:
            logger.warning(
                "Workspace cleanup attempt %d/%d failed for %s: %s",
                attempt, policy.attempts, target, exc,
            )
            if attempt < policy.attempts:
                time.sleep(policy.delay)

    shutil.rmtree(target, ignore_errors=True)
    if target.exists():
        logger.error("Failed to clean up workspace %s", target)
        return False
    return True


def workspace_name() -> str:
    """Unique per invocation: millisecond timestamp plus a random component."""
    return f"scanara-repo-{int(time.time() * 1000)}-{secrets.token_hex(6)}"


@asynccontextmanager
async def clone_workspace(
    root: str | os.PathLike, policy: RetryPolicy = RetryPolicy()
) -> AsyncIterator[Path]:
    """Create a fresh workspace directory and remove it on every exit path."""
    path = Path(root) / workspace_name()
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        await asyncio.to_thread(remove_tree, path, policy)


def is_code_file(name: str) -> bool:
    suffix = Path(name).suffix
    return not suffix or suffix in CODE_EXTENSIONS


def collect_workspace_files(root: str | os.PathLike) -> list[dict[str, str]]:
    """Walk ``root`` and read every code file, in sorted order.

    Ignored directories are pruned. Unreadable files are logged and skipped.
    """
    root = Path(root)
    collected: list[dict[str, str]] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
        for filename in sorted(filenames):
            if not is_code_file(filename):
                continue
            file_path = Path(dirpath) / filename
            try:
                content = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable file %s: %s", file_path, exc)
                continue
            collected.append({
                "path": file_path.relative_to(root).as_posix(),
                "content": content,
            })
    return collected
