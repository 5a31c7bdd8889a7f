import re
from typing import Optional


def normalize_whitespace(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def validate_password(password: str) -> Optional[str]:
    """
    Return the first complaint about ``password``, or None when it is acceptable.
    """
    # Check length first
    if len(password) < 8:
        return "Password must be at least 8 characters long"

    has_lower = any(c.islower() for c in password)
    has_upper = any(c.isupper() for c in password)
    has_digit = any(c.isdigit() for c in password)
    if not (has_lower and has_upper and has_digit):
        return (
            "Password must contain at least one uppercase letter, "
            "one lowercase letter, and one number"
        )

    return None
