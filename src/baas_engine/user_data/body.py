"""Checks and server-side values for row payloads written through the gateway.

Row payloads are opaque JSON documents: a single object or a list of objects.
Only the generated column keys are ever inspected or set.
"""

from datetime import datetime, timezone
from typing import Any

from baas_engine.common.exceptions import BadRequestError, ValidationError
from baas_engine.tables.constants import (
    CREATOR_COLUMN,
    GENERATED_COLUMN_IDENTIFIERS,
    ID_COLUMN,
    UPDATED_AT_COLUMN,
)


def _rows(body: Any) -> list[dict[str, Any]]:
    rows = body if isinstance(body, list) else [body]
    if not all(isinstance(row, dict) for row in rows):
        raise ValidationError(
            field_errors={"body": ["Request body must be a JSON object or an array of objects"]}
        )
    return rows


def find_generated_columns(body: Any, method: str) -> list[str]:
    """Generated column keys present in the body, in first-seen order."""
    # PUT replaces a whole row and the gateway needs its primary key in the body.
    allowed = {ID_COLUMN} if method.upper() == "PUT" else set()
    found: list[str] = []
    for row in _rows(body):
        for key in row:
            if key in GENERATED_COLUMN_IDENTIFIERS and key not in allowed and key not in found:
                found.append(key)
    return found


def check_no_generated_columns(body: Any, method: str) -> None:
    found = find_generated_columns(body, method)
    if found:
        listed = ", ".join(f"'{key}'" for key in found)
        raise BadRequestError(
            f"These generated columns are found in your request: {listed}. "
            "Generated columns are not updateable. Please remove them and try again."
        )


def fill_generated_columns(body: Any, email: str, now: datetime | None = None) -> Any:
    """Set creator and updated_at on every row. Call after the check."""
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    for row in _rows(body):
        row[CREATOR_COLUMN] = email
        row[UPDATED_AT_COLUMN] = timestamp
    return body
