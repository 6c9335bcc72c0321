"""Instance count parsing pipeline with tagged parse results."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from .errors import InvalidInstancesFormatError, InvalidInstancesRangeError, ValidationError

MAX_INSTANCES: Final[int] = 2**31 - 1

_INTEGER_PATTERN: Final[re.Pattern[str]] = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class InstancesParsed:
    """Successfully parsed, non-negative instance count.

    Attributes:
        value: Parsed instance count.
    """

    value: int


@dataclass(frozen=True)
class InstancesFormatError:
    """Text was not a base-10 integer.

    Attributes:
        raw_value: Rejected input text.
    """

    raw_value: str


@dataclass(frozen=True)
class InstancesRangeError:
    """Text was an integer below zero.

    Attributes:
        value: Rejected integer value.
    """

    value: int


InstancesParseResult = InstancesParsed | InstancesFormatError | InstancesRangeError


def domain_parse_instances(raw_value: str) -> InstancesParseResult:
    """Parse instance count text and validate its range.

    Args:
        raw_value: Instance count as received at the API boundary.

    Returns:
        InstancesParseResult: Parsed value or the failing variant.
    """

    if not _INTEGER_PATTERN.fullmatch(raw_value):
        return InstancesFormatError(raw_value=raw_value)

    value = int(raw_value)
    if value > MAX_INSTANCES:
        return InstancesFormatError(raw_value=raw_value)
    return domain_validate_instances(value)


def domain_validate_instances(value: int) -> InstancesParseResult:
    """Validate an already numeric instance count.

    Args:
        value: Candidate instance count.

    Returns:
        InstancesParseResult: Parsed value or range failure.
    """

    if value < 0:
        return InstancesRangeError(value=value)
    return InstancesParsed(value=value)


def domain_instances_error_for(result: InstancesParseResult) -> ValidationError | None:
    """Map a parse result to its contractual validation error.

    Args:
        result: Result of `domain_parse_instances`.

    Returns:
        ValidationError | None: Error for failing variants, None on success.
    """

    match result:
        case InstancesFormatError(raw_value=raw_value):
            return InvalidInstancesFormatError(details=f"received {raw_value!r}")
        case InstancesRangeError(value=value):
            return InvalidInstancesRangeError(details=f"received {value}")
    return None


def domain_resolve_instances(raw_value: str | None, default_instances: int) -> int:
    """Resolve optional instance count text to a validated integer.

    Args:
        raw_value: Optional instance count text; None or blank selects the default.
        default_instances: Platform minimum used when the value is absent.

    Returns:
        int: Validated instance count.

    Raises:
        ValidationError: Raised with the contractual title for invalid input.
    """

    if raw_value is None or not raw_value.strip():
        return default_instances

    result = domain_parse_instances(raw_value)
    if isinstance(result, InstancesParsed):
        return result.value
    raise domain_instances_error_for(result)


def domain_require_instances(raw_value: str | int | None) -> int:
    """Resolve a mandatory instance count given as text or integer.

    Args:
        raw_value: Instance count; None counts as malformed.

    Returns:
        int: Validated instance count.

    Raises:
        ValidationError: Raised with the contractual title for invalid input.
    """

    if raw_value is None:
        raise InvalidInstancesFormatError(details="instances value is missing")
    if isinstance(raw_value, bool):
        raise InvalidInstancesFormatError(details=f"received {raw_value!r}")

    if isinstance(raw_value, int) and raw_value > MAX_INSTANCES:
        result = InstancesFormatError(raw_value=str(raw_value))
    elif isinstance(raw_value, int):
        result = domain_validate_instances(raw_value)
    else:
        result = domain_parse_instances(raw_value)
    if isinstance(result, InstancesParsed):
        return result.value
    raise domain_instances_error_for(result)
