"""Branch naming for submissions.

Pure functions, no I/O. Derived branch names have the shape
`feat/<slug>-<YYYYmmdd-HHMMSS>`.
"""

import re
from datetime import datetime

# Maximum slug length, kept well under forge branch-name limits
BRANCH_SLUG_MAX_LENGTH = 40

BRANCH_PREFIX = "feat/"

# Timestamp suffix appended after the slug
BRANCH_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"

# Conventional-commit type at the start of a message: "feat:", "fix(api)!:"
_CONVENTIONAL_TYPE_PATTERN = re.compile(r"^[A-Za-z]+(\([^)]*\))?!?:\s*")


def strip_conventional_type(message: str) -> str:
    """Remove a leading conventional-commit type from a message.

    Examples:
        >>> strip_conventional_type("feat: add debugging utility")
        "add debugging utility"
        >>> strip_conventional_type("fix(api)!: handle 409")
        "handle 409"
        >>> strip_conventional_type("Update README")
        "Update README"
    """
    return _CONVENTIONAL_TYPE_PATTERN.sub("", message.strip(), count=1)


def slugify_message(message: str) -> str:
    """Slug of a commit message for use in a branch name.

    - Lowercases input
    - Replaces runs of non-alphanumeric characters with `-`
    - Strips leading/trailing `-`
    - Truncates to 40 characters, then strips a trailing `-`
    Returns `"submit"` if the result is empty.

    Examples:
        >>> slugify_message("Add Debugging Utility!")
        "add-debugging-utility"
        >>> slugify_message("!!!")
        "submit"
    """
    lowered = message.lower()
    replaced = re.sub(r"[^a-z0-9]+", "-", lowered)
    trimmed = replaced.strip("-")

    if len(trimmed) > BRANCH_SLUG_MAX_LENGTH:
        trimmed = trimmed[:BRANCH_SLUG_MAX_LENGTH].rstrip("-")

    return trimmed or "submit"


def derive_branch_name(message: str, timestamp: datetime) -> str:
    """Derive a branch name from a commit message and a timestamp.

    Deterministic: identical message and timestamp give an identical name.

    Examples:
        >>> derive_branch_name("feat: add debugging utility", datetime(2024, 1, 15, 14, 30))
        "feat/add-debugging-utility-20240115-143000"
    """
    slug = slugify_message(strip_conventional_type(message))
    return f"{BRANCH_PREFIX}{slug}-{timestamp.strftime(BRANCH_TIMESTAMP_FORMAT)}"


def resolve_branch_name(explicit: str | None, message: str, timestamp: datetime) -> str:
    """Return the explicit branch name when given, otherwise derive one."""
    if explicit is not None and explicit.strip():
        return explicit.strip()
    return derive_branch_name(message, timestamp)
