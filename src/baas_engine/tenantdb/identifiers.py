"""Display name and SQL identifier grammar.

Every identifier interpolated into tenant DDL must be produced by
``name_to_identifier`` or checked with ``validate_identifier`` first.
"""

import re

from baas_engine.common.exceptions import (
    IdentifierCodecError,
    InvalidIdentifierError,
    InvalidNameError,
)

MAX_IDENTIFIER_LENGTH = 63

NAME_RE = re.compile(r"^[^\d][\w\s-]+$", re.ASCII)
IDENTIFIER_RE = re.compile(r"^[a-z_][a-z0-9_]+$")
_NON_WORD_RE = re.compile(r"[^\w]", re.ASCII)


def is_valid_name(name: str) -> bool:
    """A display name: no leading digit, letters/digits/_/space/- only."""
    trimmed = name.strip()
    if not trimmed or len(trimmed) > MAX_IDENTIFIER_LENGTH:
        return False
    return NAME_RE.fullmatch(trimmed) is not None


def is_valid_identifier(identifier: str) -> bool:
    if len(identifier) > MAX_IDENTIFIER_LENGTH:
        return False
    return IDENTIFIER_RE.fullmatch(identifier) is not None


def validate_identifier(identifier: str) -> str:
    if not is_valid_identifier(identifier):
        raise InvalidIdentifierError(identifier)
    return identifier


def name_to_identifier(name: str, field: str = "name") -> str:
    """Convert a display name into a lowercase SQL identifier.

    >>> name_to_identifier("Employee List")
    'employee_list'
    """
    if not is_valid_name(name):
        raise InvalidNameError(name, field=field)

    identifier = _NON_WORD_RE.sub("_", name.strip().lower())
    if not is_valid_identifier(identifier):
        raise IdentifierCodecError(name, identifier)
    return identifier
