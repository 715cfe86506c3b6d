import pytest

from errors import ValidationError
from services.resume_service import (
    ResumeData,
    extract_info_from_text,
    extract_text_from_docx,
    extract_text_from_pdf,
    get_missing_fields,
    parse_resume,
    validate_candidate_info,
    validate_upload,
)


def test_extract_info_reads_name_email_phone():
    text = "Grace Brewster Hopper\nSenior Engineer\ngrace.hopper@navy.mil\n(555) 123-4567\n"
    assert extract_info_from_text(text) == {
        "name": "Grace Brewster Hopper",
        "email": "grace.hopper@navy.mil",
        "phone": "(555) 123-4567",
    }


def test_extract_info_only_looks_for_name_near_the_top():
    lines = ["resume", "objective", "skills", "experience", "education", "Alan Turing"]
    assert "name" not in extract_info_from_text("\n".join(lines))


def test_docx_text_drops_binary_noise():
    raw = b"John Smith\x00\x01\x02 john@smith.dev \xff\xfe 555-123-4567"
    text = extract_text_from_docx(raw)
    assert text.startswith("John Smith john@smith.dev")
    assert "\x00" not in text


def test_pdf_text_prefers_text_blocks():
    raw = b"%PDF-1.4\n1 0 obj << >> endobj\nBT (Jane) Tj ET\nstream junk\nBT (jane@doe.io) Tj ET\n%%EOF"
    text = extract_text_from_pdf(raw)
    assert text == "BT (Jane) Tj ET BT (jane@doe.io) Tj ET"


def test_parse_resume_dispatches_on_extension():
    data = parse_resume("CV.DOCX", b"John Smith john@smith.dev 555-123-4567")
    assert data.name == "John Smith"
    assert data.email == "john@smith.dev"
    assert data.phone == "555-123-4567"
    assert get_missing_fields(data) == []


def test_parse_resume_rejects_other_formats():
    with pytest.raises(ValidationError):
        parse_resume("cv.txt", b"hello")


def test_missing_fields_lists_blank_values():
    assert get_missing_fields(ResumeData(full_text="", email="a@b.co")) == ["name", "phone"]


@pytest.mark.parametrize(
    "filename, size",
    [("cv.txt", 100), ("cv", 100), ("cv.pdf", 0), ("cv.pdf", 11 * 1024 * 1024)],
)
def test_validate_upload_rejects_bad_files(filename, size):
    with pytest.raises(ValidationError):
        validate_upload(filename, size, 10 * 1024 * 1024)


def test_validate_upload_accepts_pdf_and_docx():
    assert validate_upload("Resume.PDF", 2048, 10 * 1024 * 1024) == ".pdf"
    assert validate_upload("resume.docx", 2048, 10 * 1024 * 1024) == ".docx"


def test_candidate_info_accepts_formatted_phone():
    cleaned = validate_candidate_info(" Ada Lovelace ", "ada@example.com", "+1 (555) 123-4567")
    assert cleaned == {"name": "Ada Lovelace", "email": "ada@example.com", "phone": "+1 (555) 123-4567"}


def test_candidate_info_reports_every_bad_field():
    with pytest.raises(ValidationError) as excinfo:
        validate_candidate_info("", "not-an-email", "0123")
    assert set(excinfo.value.detail) == {"name", "email", "phone"}
