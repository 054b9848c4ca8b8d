"""
Resume upload handling: text extraction and contact field validation.
"""

from .parser import parse_resume, extract_contact_info
from .validation import validate_profile, missing_fields

__all__ = ['parse_resume', 'extract_contact_info', 'validate_profile', 'missing_fields']
