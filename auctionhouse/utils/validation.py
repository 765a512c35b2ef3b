"""
Input Validation - Sanitization of auction and factory parameters.

Provides validation for all external inputs to prevent:
- Malformed or zero addresses standing in for real collaborators
- Integer overflows beyond the 256-bit word size
- Out-of-range fees and durations
- Unbounded pagination requests
"""

from typing import Any, Tuple

from auctionhouse.crypto import ZERO_ADDRESS, is_valid_address

# =============================================================================
# Constants
# =============================================================================

# Field bounds
MIN_AMOUNT = 0
MAX_AMOUNT = 2**256 - 1
MAX_DURATION = 2**64 - 1

# Fee rate in hundredths of a percent (10000 = 100%)
BASIS_POINTS_DENOMINATOR = 10_000

MAX_PAGE_SIZE = 1000


# =============================================================================
# Validation Functions
# =============================================================================


def is_zero_address(address: Any) -> bool:
    """True for the zero address, the "unset" sentinel."""
    return address == ZERO_ADDRESS


def validate_address(
    value: Any,
    name: str = "address",
    allow_zero: bool = True,
) -> Tuple[bool, str]:
    """
    Validate an address.

    Args:
        value: Value to validate
        name: Field name for error messages
        allow_zero: Whether the zero address is acceptable

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    if not is_valid_address(value):
        return False, f"{name} is not a valid address: {value}"

    if not allow_zero and is_zero_address(value):
        return False, f"{name} cannot be the zero address"

    return True, ""


def validate_integer(
    value: Any,
    name: str,
    min_val: int = MIN_AMOUNT,
    max_val: int = MAX_AMOUNT,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    # bool is an int subclass but never a meaningful amount
    if not isinstance(value, int) or isinstance(value, bool):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a token amount (uint256)."""
    return validate_integer(amount, name, MIN_AMOUNT, MAX_AMOUNT)


def validate_duration(duration: Any) -> Tuple[bool, str]:
    """Validate an auction duration in seconds (strictly positive)."""
    return validate_integer(duration, "duration", 1, MAX_DURATION)


def validate_fee_basis_points(fee_basis_points: Any) -> Tuple[bool, str]:
    """Validate a fee rate: [0, 10000)."""
    return validate_integer(
        fee_basis_points, "fee_basis_points", 0, BASIS_POINTS_DENOMINATOR - 1
    )


def validate_page(offset: Any, limit: Any, max_limit: int = MAX_PAGE_SIZE) -> Tuple[bool, str]:
    """
    Validate a pagination window.

    Args:
        offset: Index of the first item
        limit: Number of items requested
        max_limit: Largest page a caller may request

    Returns:
        (is_valid, error_message)
    """
    valid, err = validate_integer(offset, "offset", 0, MAX_AMOUNT)
    if not valid:
        return False, err

    return validate_integer(limit, "limit", 1, max_limit)


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "is_zero_address",
    "validate_address",
    "validate_integer",
    "validate_amount",
    "validate_duration",
    "validate_fee_basis_points",
    "validate_page",
    "MIN_AMOUNT",
    "MAX_AMOUNT",
    "MAX_DURATION",
    "MAX_PAGE_SIZE",
    "BASIS_POINTS_DENOMINATOR",
]
