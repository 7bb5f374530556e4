"""
Input Validation - sanitization of caller-supplied values.

Every public ledger operation validates its arguments here before touching
state, so that a rejected call has no side effects. Validators return
(is_valid, error_message) and never raise.
"""

from typing import Any, Optional, Tuple

# =============================================================================
# Constants
# =============================================================================

MAX_ADDRESS_SIZE = 20
MAX_URI_LENGTH = 2048

# Amounts mirror the EVM uint256 range
MIN_AMOUNT = 0
MAX_AMOUNT = 2**256 - 1


# =============================================================================
# Validation Functions
# =============================================================================


def validate_bytes(
    data: Any,
    name: str,
    expected_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate bytes input.

    Args:
        data: Data to validate
        name: Field name for error messages
        expected_length: Exact expected length
        max_length: Maximum allowed length

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, (bytes, bytearray)):
        return False, f"{name} must be bytes, got {type(data).__name__}"

    if expected_length is not None and len(data) != expected_length:
        return False, f"{name} must be {expected_length} bytes, got {len(data)}"

    if max_length is not None and len(data) > max_length:
        return False, f"{name} exceeds max length {max_length}, got {len(data)}"

    return True, ""


def validate_address(address: Any, name: str = "address") -> Tuple[bool, str]:
    """Validate a 20-byte party address."""
    return validate_bytes(address, name, expected_length=MAX_ADDRESS_SIZE)


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
    # bool is an int subclass; True is not an amount
    if not isinstance(value, int) or isinstance(value, bool):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a currency/token amount in base units."""
    return validate_integer(amount, name, MIN_AMOUNT, MAX_AMOUNT)


def validate_token_id(token_id: Any) -> Tuple[bool, str]:
    """Validate a listing/asset id (positive)."""
    return validate_integer(token_id, "token_id", 1, MAX_AMOUNT)


def validate_string(
    value: Any,
    name: str,
    max_length: int = MAX_URI_LENGTH,
    allow_empty: bool = True,
) -> Tuple[bool, str]:
    """
    Validate string input.

    Args:
        value: Value to validate
        name: Field name for errors
        max_length: Maximum string length
        allow_empty: Whether "" is acceptable

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    if not allow_empty and not value.strip():
        return False, f"{name} must not be empty"

    if len(value) > max_length:
        return False, f"{name} exceeds max length {max_length}"

    return True, ""


def validate_uri(uri: Any, max_length: int = MAX_URI_LENGTH) -> Tuple[bool, str]:
    """Validate a token metadata URI."""
    return validate_string(uri, "uri", max_length=max_length, allow_empty=False)


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_bytes",
    "validate_address",
    "validate_integer",
    "validate_amount",
    "validate_token_id",
    "validate_string",
    "validate_uri",
    "MAX_ADDRESS_SIZE",
    "MAX_URI_LENGTH",
    "MAX_AMOUNT",
]
