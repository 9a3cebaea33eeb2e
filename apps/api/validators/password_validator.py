"""
Password validation utilities
Enforces strong password requirements for staff accounts
"""

import re
from typing import List, Tuple

MIN_LENGTH = 8
MAX_LENGTH = 128

# (pattern, message) pairs checked in order
CHARACTER_RULES: List[Tuple[str, str]] = [
    (r'[A-Z]', "Password must contain at least one uppercase letter"),
    (r'[a-z]', "Password must contain at least one lowercase letter"),
    (r'\d', "Password must contain at least one number"),
    (r'[!@#$%^&*(),.?":{}|<>]', "Password must contain at least one special character (!@#$%^&*(),.?\":{}|<>)"),
]


def password_errors(password: str) -> List[str]:
    """Return every rule the password breaks, empty when it is acceptable"""
    if not password:
        return ["Password is required"]

    errors = []
    if len(password) < MIN_LENGTH:
        errors.append(f"Password must be at least {MIN_LENGTH} characters long")
    if len(password) > MAX_LENGTH:
        errors.append(f"Password must not exceed {MAX_LENGTH} characters")
    for pattern, message in CHARACTER_RULES:
        if not re.search(pattern, password):
            errors.append(message)
    return errors


def validate_password(password: str) -> None:
    """
    Validate password and raise exception if invalid

    Raises:
        ValueError: with the first broken rule
    """
    errors = password_errors(password)
    if errors:
        raise ValueError(errors[0])
