"""Normalization shared by every capture channel."""

from collections.abc import Mapping, Sequence
from typing import Any

from scanara_engine.common.exceptions import ValidationError

INLINE_BLOB_PATH = "inline-codebase.txt"


def file_header(path: str) -> str:
    return f"=== File: {path} ===\n"


def normalize_files(
    files: Sequence[Mapping[str, Any]] | None, max_files: int = 100
) -> list[dict[str, Any]]:
    """Validate raw entries, keep the first ``max_files`` and size them.

    Every entry is validated before truncation, so a bad entry anywhere in
    the input rejects the whole capture.
    """
    if not files:
        raise ValidationError("files must be a non-empty list")

    for index, entry in enumerate(files):
        path = entry.get("path") if isinstance(entry, Mapping) else None
        content = entry.get("content") if isinstance(entry, Mapping) else None
        if not path or not isinstance(path, str):
            raise ValidationError(
                f"Each file must have a non-empty path (failed at file {index})"
            )
        if content is None or not isinstance(content, str):
            raise ValidationError(
                f"Each file must have content (failed at file {index})"
            )

    return [
        {
            "path": entry["path"],
            "content": entry["content"],
            "size_bytes": len(entry["content"].encode("utf-8")),
        }
        for entry in list(files)[:max_files]
    ]


def serialize_snapshot(files: Sequence[Mapping[str, Any]]) -> str:
    """One document: each file under a header line, in snapshot order."""
    return "\n\n".join(
        f"{file_header(f['path'])}{f['content']}\n" for f in files
    )


def truncate_to_ceiling(
    files: Sequence[Mapping[str, Any]], ceiling: int
) -> list[dict[str, Any]]:
    """Drop the trailing portion so the serialized form fits in ``ceiling`` chars.

    The file straddling the ceiling keeps whatever content still fits;
    everything after it is dropped.
    """
    kept: list[dict[str, Any]] = []
    used = 0
    for index, f in enumerate(files):
        separator = 2 if index else 0
        header = file_header(f["path"])
        block = len(header) + len(f["content"]) + 1
        if used + separator + block <= ceiling:
            kept.append(dict(f))
            used += separator + block
            continue
        room = ceiling - used - separator - len(header) - 1
        if room > 0:
            content = f["content"][:room]
            kept.append({
                "path": f["path"],
                "content": content,
                "size_bytes": len(content.encode("utf-8")),
            })
        break
    return kept


def inline_files(
    codebase: Sequence[Mapping[str, Any]] | str | None,
    max_files: int = 100,
    max_chars: int = 500_000,
) -> list[dict[str, Any]]:
    """Normalize the inline payload: a file list or one pre-joined text blob."""
    if isinstance(codebase, str):
        if not codebase:
            raise ValidationError("codebase is required")
        files = normalize_files([{"path": INLINE_BLOB_PATH, "content": codebase}], max_files)
    elif isinstance(codebase, Sequence):
        files = normalize_files(codebase, max_files)
    else:
        raise ValidationError("codebase is required")

    files = truncate_to_ceiling(files, max_chars)
    if not files:
        raise ValidationError("codebase is empty after truncation")
    return files
