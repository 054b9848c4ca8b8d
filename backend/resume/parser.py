"""
Resume text extraction for PDF and DOCX uploads.
Contact details are pulled out heuristically; any of them may be missing.
"""
import re
import logging
from io import BytesIO
from typing import Optional

from docx import Document
from pypdf import PdfReader

from models.schemas import ParsedResume
from interview.errors import (
    CollaboratorError,
    DocumentTooLargeError,
    UnsupportedDocumentError,
)
from resume.validation import missing_fields
from utils.config import config

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_REGEX = re.compile(r"(?:\+?1[-.\s]?)?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}")
NAME_LINE_REGEX = re.compile(r"^[A-Za-z\s.,'-]+$")
NAME_PATTERNS = [
    re.compile(r"Name\s*:?\s*([A-Za-z][A-Za-z .,'-]*)", re.IGNORECASE),
    re.compile(r"^([A-Z][a-z]+\s+[A-Z][a-z]+)", re.MULTILINE),
]


def parse_pdf(file_bytes: bytes) -> str:
    reader = PdfReader(BytesIO(file_bytes))
    text = []
    for page in reader.pages:
        t = page.extract_text()
        if t:
            text.append(t)
    return "\n".join(text)


def parse_docx(file_bytes: bytes) -> str:
    doc = Document(BytesIO(file_bytes))
    return "\n".join(p.text for p in doc.paragraphs)


def _extract_name(text: str, email: Optional[str], phone: Optional[str]) -> Optional[str]:
    lines = [line.strip() for line in text.split("\n") if line.strip()]
    if lines:
        first = lines[0]
        if first not in (email, phone) and NAME_LINE_REGEX.match(first) and len(first.split()) <= 4:
            return first

    for pattern in NAME_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def extract_contact_info(text: str) -> ParsedResume:
    """Best-effort name, email and phone from raw resume text."""
    email_match = EMAIL_REGEX.search(text)
    phone_match = PHONE_REGEX.search(text)
    email = email_match.group(0) if email_match else None
    phone = phone_match.group(0).strip() if phone_match else None

    parsed = ParsedResume(
        name=_extract_name(text, email, phone),
        email=email,
        phone=phone,
        full_text=text,
    )
    parsed.missing_fields = missing_fields(parsed)
    return parsed


def parse_resume(file_bytes: bytes, mime_type: str) -> ParsedResume:
    """
    Extract text and contact info from an uploaded resume.

    Raises:
        UnsupportedDocumentError: mime type is neither PDF nor DOCX
        DocumentTooLargeError: file is at or over the size limit
        CollaboratorError: the document could not be read
    """
    kind = config.upload.allowed_mime_types.get(mime_type)
    if kind is None:
        raise UnsupportedDocumentError(mime_type)
    if len(file_bytes) >= config.upload.max_size_bytes:
        raise DocumentTooLargeError(len(file_bytes), config.upload.max_size_mb)

    try:
        text = parse_pdf(file_bytes) if kind == "pdf" else parse_docx(file_bytes)
    except Exception as e:
        logger.error(f"Failed to read {kind} resume: {e}")
        raise CollaboratorError("Failed to parse resume. Please check the file format and try again.") from e

    parsed = extract_contact_info(text)
    logger.info(f"Parsed {kind} resume ({len(text)} chars), missing: {parsed.missing_fields or 'none'}")
    return parsed
