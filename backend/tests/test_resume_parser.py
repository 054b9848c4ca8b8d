from io import BytesIO

import pytest
from docx import Document

from interview.errors import (
    CollaboratorError,
    DocumentTooLargeError,
    ProfileValidationError,
    UnsupportedDocumentError,
)
from resume.parser import extract_contact_info, parse_resume
from resume.validation import is_valid_phone, validate_profile
from utils.config import config

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _docx_bytes(*paragraphs):
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def test_extracts_name_from_first_line():
    parsed = extract_contact_info("Ada Lovelace\nada@example.com\n(555) 123-4567\nEngineer")
    assert parsed.name == "Ada Lovelace"
    assert parsed.email == "ada@example.com"
    assert parsed.phone == "(555) 123-4567"
    assert parsed.missing_fields == []


def test_extracts_labelled_name():
    parsed = extract_contact_info("grace@navy.mil\nName: Grace Hopper\nPhone 555.987.6543")
    assert parsed.name == "Grace Hopper"
    assert parsed.email == "grace@navy.mil"
    assert parsed.phone == "555.987.6543"


def test_reports_missing_fields():
    parsed = extract_contact_info("just some words about programming\nno contact details here")
    assert parsed.name is None
    assert parsed.missing_fields == ["name", "email", "phone"]


def test_parses_docx_upload():
    data = _docx_bytes("Ada Lovelace", "ada@example.com", "Phone: +1 555 123 4567", "Analytical engines")
    parsed = parse_resume(data, DOCX_MIME)
    assert parsed.name == "Ada Lovelace"
    assert parsed.email == "ada@example.com"
    assert "Analytical engines" in parsed.full_text
    assert parsed.missing_fields == []


def test_rejects_unsupported_type():
    with pytest.raises(UnsupportedDocumentError) as excinfo:
        parse_resume(b"plain text", "text/plain")
    assert excinfo.value.message == "Please upload a PDF or DOCX file only"


def test_rejects_oversized_file():
    with pytest.raises(DocumentTooLargeError) as excinfo:
        parse_resume(b"\0" * config.upload.max_size_bytes, "application/pdf")
    assert excinfo.value.message == "File must be smaller than 10MB"


def test_unreadable_pdf_is_a_collaborator_error():
    with pytest.raises(CollaboratorError):
        parse_resume(b"this is not a pdf", "application/pdf")


def test_phone_needs_ten_digits():
    assert is_valid_phone("+1 (555) 123-4567")
    assert is_valid_phone("5551234567")
    assert not is_valid_phone("555-1234")
    assert not is_valid_phone(None)


def test_validate_profile_returns_trimmed_fields():
    assert validate_profile(" Ada ", "ada@x.com ", "5551234567") == {
        "name": "Ada", "email": "ada@x.com", "phone": "5551234567",
    }


def test_validate_profile_reports_first_bad_field():
    with pytest.raises(ProfileValidationError) as excinfo:
        validate_profile("Ada", "not-an-email", "123")
    assert excinfo.value.field == "email"
