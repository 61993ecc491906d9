"""
Password Policy Validation

Requirements:
- Minimum 6 characters
- Maximum 72 characters (bcrypt limit)
- At least one letter
- Not in common password blocklist
"""
import re
from typing import Tuple, List

MIN_LENGTH = 6
MAX_LENGTH = 72

# Common weak passwords to block (subset - add more as needed)
COMMON_PASSWORDS = {
    "password", "password1", "password123", "123456", "12345678", "1234567890",
    "qwerty", "qwerty123", "abc123", "letmein", "welcome", "monkey", "dragon",
    "master", "login", "admin", "admin123", "root", "toor", "guest", "iloveyou",
    "princess", "sunshine", "football", "baseball", "passw0rd", "p@ssw0rd",
    "trustno1", "starwars", "whatever", "shadow", "superman", "batman",
    "fitness", "fitness1", "workout", "trainer", "gym123", "coachlink",
}


def validate_password(password: str) -> Tuple[bool, List[str]]:
    """
    Validate password against security policy.

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    errors = []

    if len(password) < MIN_LENGTH:
        errors.append(f"Password must be at least {MIN_LENGTH} characters")

    if len(password) > MAX_LENGTH:
        errors.append(f"Password must not exceed {MAX_LENGTH} characters (bcrypt limit)")

    if not re.search(r'[A-Za-z]', password):
        errors.append("Password must contain at least one letter")

    if password.lower() in COMMON_PASSWORDS:
        errors.append("Password is too common, please choose a stronger password")

    return len(errors) == 0, errors

