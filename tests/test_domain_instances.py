"""Regression tests for instance count parsing and its contractual error titles."""

from __future__ import annotations

import pytest

from shipyard.domain import (
    INSTANCES_FORMAT_TITLE,
    INSTANCES_RANGE_TITLE,
    InstancesFormatError,
    InstancesParsed,
    InstancesRangeError,
    InvalidInstancesFormatError,
    InvalidInstancesRangeError,
    domain_instances_error_for,
    domain_parse_instances,
    domain_require_instances,
    domain_resolve_instances,
)


@pytest.mark.parametrize("raw_value", ["0", "2", "+7", "0042"])
def test_domain_parse_instances_accepts_decimal_integers(raw_value: str) -> None:
    """Parse plain, signed and zero-padded decimal integers.

    Args:
        raw_value: Candidate instance count text.

    Returns:
        None: Assertions validate parse result.

    Raises:
        AssertionError: Raised when the value is rejected.
    """

    assert domain_parse_instances(raw_value) == InstancesParsed(value=int(raw_value))


@pytest.mark.parametrize("raw_value", ["1.5", "abc", "", " 2", "0x10", "2147483648"])
def test_domain_parse_instances_reports_format_error(raw_value: str) -> None:
    """Report non-integers and values beyond the 32-bit range as format errors.

    Args:
        raw_value: Candidate instance count text.

    Returns:
        None: Assertions validate parse result.

    Raises:
        AssertionError: Raised when the variant is wrong.
    """

    assert domain_parse_instances(raw_value) == InstancesFormatError(raw_value=raw_value)


def test_domain_parse_instances_reports_range_error_for_negative_values() -> None:
    """Report negative integers as range errors, not format errors.

    Returns:
        None: Assertions validate parse result.

    Raises:
        AssertionError: Raised when the variant is wrong.
    """

    assert domain_parse_instances("-3") == InstancesRangeError(value=-3)


def test_domain_instances_error_for_maps_variants_to_exact_titles() -> None:
    """Map each failing variant to its contractual title.

    Returns:
        None: Assertions validate mapped errors.

    Raises:
        AssertionError: Raised when titles or statuses differ.
    """

    format_error = domain_instances_error_for(InstancesFormatError(raw_value="x"))
    range_error = domain_instances_error_for(InstancesRangeError(value=-1))

    assert isinstance(format_error, InvalidInstancesFormatError)
    assert format_error.title == "instances param should be an integer"
    assert format_error.status == 400
    assert isinstance(range_error, InvalidInstancesRangeError)
    assert range_error.title == "instances param should be integer equal or greater than zero"
    assert domain_instances_error_for(InstancesParsed(value=1)) is None


def test_domain_resolve_instances_uses_default_for_absent_value() -> None:
    """Fall back to the platform default when the value is absent or blank.

    Returns:
        None: Assertions validate resolved values.

    Raises:
        AssertionError: Raised when the default is not applied.
    """

    assert domain_resolve_instances(None, 1) == 1
    assert domain_resolve_instances("   ", 1) == 1
    assert domain_resolve_instances("2", 1) == 2

    with pytest.raises(InvalidInstancesRangeError):
        domain_resolve_instances("-1", 1)


@pytest.mark.parametrize(
    ("raw_value", "expected_title"),
    [
        (None, INSTANCES_FORMAT_TITLE),
        (True, INSTANCES_FORMAT_TITLE),
        ("2.5", INSTANCES_FORMAT_TITLE),
        (2**31, INSTANCES_FORMAT_TITLE),
        (-3, INSTANCES_RANGE_TITLE),
        ("-3", INSTANCES_RANGE_TITLE),
    ],
)
def test_domain_require_instances_rejects_invalid_values(raw_value: object, expected_title: str) -> None:
    """Reject missing, malformed and negative mandatory counts.

    Args:
        raw_value: Candidate instance count.
        expected_title: Contractual error title.

    Returns:
        None: Assertions validate raised error.

    Raises:
        AssertionError: Raised when the wrong error is raised.
    """

    with pytest.raises((InvalidInstancesFormatError, InvalidInstancesRangeError)) as error_info:
        domain_require_instances(raw_value)  # type: ignore[arg-type]

    assert error_info.value.title == expected_title


def test_domain_require_instances_accepts_text_and_integers() -> None:
    """Accept mandatory counts given as text or JSON numbers.

    Returns:
        None: Assertions validate returned values.

    Raises:
        AssertionError: Raised when valid input is rejected.
    """

    assert domain_require_instances("3") == 3
    assert domain_require_instances(0) == 0
