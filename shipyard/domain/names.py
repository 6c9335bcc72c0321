"""Resource name validation shared by organizations, applications and services."""

from __future__ import annotations

import re
from typing import Final

from .errors import ValidationError

MAX_RESOURCE_NAME_LENGTH: Final[int] = 63

# DNS-1123 label: names double as namespaces, deployment names and directories
_RESOURCE_NAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?")


def domain_resource_name_error(name: str, kind: str) -> ValidationError | None:
    """Return a validation error when a resource name is unusable.

    Args:
        name: Candidate name.
        kind: Resource kind label used in the message (`application`, ...).

    Returns:
        ValidationError | None: Error describing the problem, None when valid.
    """

    if not name:
        return ValidationError(f"{kind} name must not be blank")
    if len(name) > MAX_RESOURCE_NAME_LENGTH:
        return ValidationError(
            f"{kind} name is too long",
            f"'{name}' has {len(name)} characters, the maximum is {MAX_RESOURCE_NAME_LENGTH}",
        )
    if not _RESOURCE_NAME_PATTERN.fullmatch(name):
        return ValidationError(
            f"{kind} name is invalid",
            f"'{name}' must consist of lower case alphanumeric characters or '-', "
            "and must start and end with an alphanumeric character",
        )
    return None


def domain_validate_resource_name(name: str, kind: str) -> str:
    """Validate a resource name and return it unchanged.

    Args:
        name: Candidate name.
        kind: Resource kind label used in the message.

    Returns:
        str: The validated name.

    Raises:
        ValidationError: Raised when the name is unusable.
    """

    error = domain_resource_name_error(name, kind)
    if error is not None:
        raise error
    return name
