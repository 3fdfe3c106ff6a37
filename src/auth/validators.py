"""Validation utilities for account input.

Provides validation for:
- Username length
- Email format
- Password length
"""

import re
from typing import NamedTuple


# ==============================================================================
# Constants for validation rules
# ==============================================================================

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30

PASSWORD_MIN_LENGTH = 6

# Something@something.something, no whitespace
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ValidationResult(NamedTuple):
    """Result of a validation check."""

    valid: bool
    message: str | None = None


def validate_username(username: str) -> ValidationResult:
    """Validate username length (after trimming).

    Examples:
        >>> validate_username("al")
        ValidationResult(valid=False, message='Username must be at least 3 characters')
        >>> validate_username("alice")
        ValidationResult(valid=True, message=None)
    """
    username = username.strip()
    if not username:
        return ValidationResult(False, "Please provide a username")
    if len(username) < USERNAME_MIN_LENGTH:
        return ValidationResult(
            False, f"Username must be at least {USERNAME_MIN_LENGTH} characters"
        )
    if len(username) > USERNAME_MAX_LENGTH:
        return ValidationResult(
            False, f"Username cannot be more than {USERNAME_MAX_LENGTH} characters"
        )
    return ValidationResult(True)


def validate_email(email: str) -> ValidationResult:
    """Validate basic email format.

    Examples:
        >>> validate_email("alice@x.com")
        ValidationResult(valid=True, message=None)
        >>> validate_email("alice@x")
        ValidationResult(valid=False, message='Please provide a valid email')
    """
    if not email or not email.strip():
        return ValidationResult(False, "Please provide an email")
    if not EMAIL_PATTERN.match(email.strip()):
        return ValidationResult(False, "Please provide a valid email")
    return ValidationResult(True)


def validate_password(password: str) -> ValidationResult:
    """Validate password length."""
    if not password:
        return ValidationResult(False, "Please provide a password")
    if len(password) < PASSWORD_MIN_LENGTH:
        return ValidationResult(
            False, f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
        )
    return ValidationResult(True)


def normalize_email(email: str) -> str:
    """Trim and lowercase an email address.

    Example:
        >>> normalize_email("  Alice@X.com ")
        'alice@x.com'
    """
    return email.strip().lower()
