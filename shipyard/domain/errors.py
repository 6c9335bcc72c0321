"""Project-native error taxonomy rendered by the API error envelope."""

from __future__ import annotations

from typing import Final

INSTANCES_FORMAT_TITLE: Final[str] = "instances param should be an integer"
INSTANCES_RANGE_TITLE: Final[str] = "instances param should be integer equal or greater than zero"
UNPACK_DETAILS_PREFIX: Final[str] = "failed to unpack"


class ShipyardError(Exception):
    """Base exception for failures surfaced to API callers.

    Attributes:
        status: HTTP status code used by the error envelope.
        title: Short stable user-facing message.
        details: Optional free-text diagnostic.
    """

    status: int = 500

    def __init__(self, title: str, details: str | None = None):
        super().__init__(title)
        self.title = title
        self.details = details

    def errors(self) -> list[ShipyardError]:
        """Return envelope entries represented by this error.

        Returns:
            list[ShipyardError]: Single-entry list for plain errors.
        """

        return [self]


class ValidationError(ShipyardError):
    """Malformed or out-of-range client input."""

    status = 400


class InvalidInstancesFormatError(ValidationError):
    """Instance count text is not a base-10 integer."""

    def __init__(self, details: str | None = None):
        super().__init__(INSTANCES_FORMAT_TITLE, details)


class InvalidInstancesRangeError(ValidationError):
    """Instance count is a valid integer below zero."""

    def __init__(self, details: str | None = None):
        super().__init__(INSTANCES_RANGE_TITLE, details)


class InvalidStagingRequestError(ValidationError):
    """Staging request misses a required field."""


class NotFoundError(ShipyardError):
    """Missing organization, application, service or binding."""

    status = 404


class ConflictError(ShipyardError):
    """Duplicate creation of a uniquely named resource."""

    status = 409


class InfrastructureError(ShipyardError):
    """Cluster, pipeline or storage call failed or timed out."""

    status = 500


class UnpackError(ShipyardError):
    """Uploaded archive could not be extracted."""

    status = 500

    def __init__(self, cause: str):
        super().__init__("failed to unpack uploaded archive", f"{UNPACK_DETAILS_PREFIX}: {cause}")


class ErrorGroup(ShipyardError):
    """Aggregate of several errors reported in one envelope.

    The group takes the status of its first entry.
    """

    def __init__(self, entries: list[ShipyardError]):
        if not entries:
            raise ValueError("entries must not be empty")
        super().__init__(entries[0].title, entries[0].details)
        self.entries = list(entries)
        self.status = entries[0].status

    def errors(self) -> list[ShipyardError]:
        return list(self.entries)


def domain_raise_collected(entries: list[ShipyardError]) -> None:
    """Raise collected errors, as a group when there is more than one.

    Args:
        entries: Errors collected during validation.

    Returns:
        None: Returns only when no errors were collected.

    Raises:
        ShipyardError: Raised when at least one entry is present.
    """

    if not entries:
        return
    if len(entries) == 1:
        raise entries[0]
    raise ErrorGroup(entries)
