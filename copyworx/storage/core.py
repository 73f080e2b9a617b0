"""Identity, timestamp, validation and text helpers shared by every store."""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from copyworx.errors import ValidationFailure

M = TypeVar("M", bound=BaseModel)

MAX_NAME_LENGTH = 100

_TAG_RE = re.compile(r"<[^>]*>")


def new_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def sanitize_text(text: str) -> str:
    """Trim and drop angle brackets so names never inject markup.

    "  <b>Launch</b> " → "bLaunch/b"
    """
    return text.strip().replace("<", "").replace(">", "")


def validate_not_empty(text: str | None, field: str = "Text") -> None:
    if not text or not text.strip():
        raise ValidationFailure(f"{field} cannot be empty.")


def validate_name(text: str | None, field: str, max_length: int = MAX_NAME_LENGTH) -> str:
    """Validate a user-facing name and return its sanitized form."""
    validate_not_empty(text, field)
    sanitized = sanitize_text(text)
    if not sanitized:
        raise ValidationFailure(f"{field} cannot be empty.")
    if len(sanitized) > max_length:
        raise ValidationFailure(f"{field} cannot exceed {max_length} characters.")
    return sanitized


def strip_html(content: str, replacement: str = "") -> str:
    return _TAG_RE.sub(replacement, content)


def count_words(content: str) -> int:
    """Whitespace-delimited tokens after replacing tags with spaces."""
    if not content:
        return 0
    return len(strip_html(content, " ").split())


def count_chars(content: str) -> int:
    if not content:
        return 0
    return len(strip_html(content))


def merge_record(
    model: type[M],
    existing: M,
    fields: dict[str, Any],
    protected: set[str],
    **forced: Any,
) -> M:
    """Merge a partial update into a record and re-validate the result.

    Keys that are not fields of ``model`` are ignored, keys in ``protected``
    keep their existing value, and ``forced`` values always win.
    """
    merged: dict[str, Any] = existing.model_dump()
    for key, value in fields.items():
        if key in model.model_fields and key not in protected:
            merged[key] = value
    merged.update(forced)
    try:
        return model.model_validate(merged)
    except ValidationError as e:
        raise ValidationFailure(f"Invalid {model.__name__} fields: {e}") from e
