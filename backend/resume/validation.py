"""
Candidate contact field validation.
"""
import re
from typing import Dict, List, Optional

from models.schemas import ParsedResume
from interview.errors import ProfileValidationError
from utils.config import config

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and bool(EMAIL_PATTERN.match(email.strip()))


def is_valid_phone(phone: Optional[str]) -> bool:
    if not phone:
        return False
    return len(re.sub(r"\D", "", phone)) >= config.upload.min_phone_digits


def is_valid_name(name: Optional[str]) -> bool:
    return bool(name) and len(name.strip()) >= config.upload.min_name_length


def missing_fields(parsed: ParsedResume) -> List[str]:
    """Fields the candidate still has to supply by hand."""
    missing = []
    if not is_valid_name(parsed.name):
        missing.append("name")
    if not is_valid_email(parsed.email):
        missing.append("email")
    if not is_valid_phone(parsed.phone):
        missing.append("phone")
    return missing


def validate_profile(name: Optional[str], email: Optional[str], phone: Optional[str]) -> Dict[str, str]:
    """
    Validate submitted contact details.

    Returns:
        The trimmed name, email and phone

    Raises:
        ProfileValidationError: naming the first field that needs correcting
    """
    if not is_valid_name(name):
        if not name or not name.strip():
            raise ProfileValidationError("name", "Please enter your full name")
        raise ProfileValidationError("name", f"Name must be at least {config.upload.min_name_length} characters")
    if not is_valid_email(email):
        raise ProfileValidationError("email", "Please enter a valid email address")
    if not is_valid_phone(phone):
        raise ProfileValidationError("phone", "Please enter a valid phone number")

    return {"name": name.strip(), "email": email.strip(), "phone": phone.strip()}
