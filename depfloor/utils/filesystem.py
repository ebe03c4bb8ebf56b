"""
File access helpers for lockfiles and manifests.

Every failure surfaces as :class:`FileOperationError` (missing, unreadable
or oversized file) or :class:`ParseError` (malformed JSON).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Union

from depfloor.utils.logger import get_logger
from depfloor.constants import MAX_FILE_SIZE
from depfloor.exceptions import FileOperationError, ParseError

logger = get_logger("filesystem")

PathLike = Union[str, Path]


def validate_path(path: PathLike) -> Path:
    """Expand ``~`` and return the absolute path; the file need not exist yet."""
    return Path(path).expanduser().resolve(strict=False)


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Read a text file, refusing anything larger than *max_size* bytes.

    Raises:
        FileOperationError: The path is missing, not a regular file, too
            large or unreadable.
    """
    path = Path(file_path)
    if not path.is_file():
        reason = "Not a file" if path.exists() else "File not found"
        raise FileOperationError(f"{reason}: {path}", file_path=str(path), operation="read")

    size = path.stat().st_size
    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def read_json_file(file_path: PathLike) -> Any:
    """Read and decode a JSON document.

    Raises:
        FileOperationError: See :func:`safe_read_file`.
        ParseError: The content is not valid JSON.
    """
    path = Path(file_path)
    content = safe_read_file(path)
    logger.debug("Read %d bytes from %s", len(content), path)

    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON in {path.name}: {exc}", file_path=str(path)) from exc
