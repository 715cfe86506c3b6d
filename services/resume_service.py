import os
import re
from dataclasses import dataclass
from typing import Optional

from errors import ValidationError


ALLOWED_EXTENSIONS = {".pdf", ".docx"}

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_RE = re.compile(r"(?:\+?1[-.\s]?)?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}")
NAME_RE = re.compile(r"^([A-Z][a-z]+\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)")
PDF_TEXT_BLOCK_RE = re.compile(r"BT\s.*?ET")

FORM_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
FORM_PHONE_RE = re.compile(r"^\+?[1-9]\d{0,15}$")


@dataclass
class ResumeData:
    full_text: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "full_text": self.full_text,
        }


def _clean_decoded(text: str) -> str:
    # Keep printable ASCII and newlines, then collapse whitespace.
    text = re.sub(r"[^\x20-\x7E\n]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def extract_text_from_pdf(raw: bytes) -> str:
    text = raw.decode("utf-8", errors="replace")
    # Prefer text-showing operator blocks when the stream exposes them.
    blocks = PDF_TEXT_BLOCK_RE.findall(text)
    readable = " ".join(blocks) if blocks else text
    return _clean_decoded(readable)


def extract_text_from_docx(raw: bytes) -> str:
    return _clean_decoded(raw.decode("utf-8", errors="replace"))


def extract_info_from_text(text: str) -> dict:
    result = {}

    email_match = EMAIL_RE.search(text)
    if email_match:
        result["email"] = email_match.group(0)

    phone_match = PHONE_RE.search(text)
    if phone_match:
        result["phone"] = phone_match.group(0)

    # Name is the first run of capitalized words near the top of the document.
    lines = [line for line in text.split("\n") if line.strip()]
    for line in lines[:5]:
        name_match = NAME_RE.match(line)
        if name_match and "@" not in name_match.group(0) and not re.search(r"\d", name_match.group(0)):
            result["name"] = name_match.group(0)
            break

    return result


def validate_upload(filename: str, size: int, max_bytes: int) -> str:
    """Check an uploaded resume and return its lower-cased extension."""
    extension = os.path.splitext(filename or "")[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise ValidationError("Please upload a PDF or DOCX file.")
    if size <= 0:
        raise ValidationError("Uploaded file is empty.")
    if size > max_bytes:
        raise ValidationError(f"File size must be less than {max_bytes // (1024 * 1024)}MB.")
    return extension


def parse_resume(filename: str, raw: bytes) -> ResumeData:
    extension = os.path.splitext(filename or "")[1].lower()
    if extension == ".pdf":
        text = extract_text_from_pdf(raw)
    elif extension == ".docx":
        text = extract_text_from_docx(raw)
    else:
        raise ValidationError("Please upload a PDF or DOCX file.")
    return ResumeData(full_text=text, **extract_info_from_text(text))


def get_missing_fields(data: ResumeData) -> list[str]:
    return [field for field in ("name", "email", "phone") if not getattr(data, field)]


def validate_candidate_info(name: str, email: str, phone: str) -> dict:
    """Validate the candidate details form; returns the cleaned values."""
    name = (name or "").strip()
    email = (email or "").strip()
    phone = (phone or "").strip()
    errors = {}

    if not name:
        errors["name"] = "Full name is required"

    if not email:
        errors["email"] = "Email address is required"
    elif not FORM_EMAIL_RE.match(email):
        errors["email"] = "Please enter a valid email address"

    if not phone:
        errors["phone"] = "Phone number is required"
    elif not FORM_PHONE_RE.match(re.sub(r"[\s\-()]", "", phone)):
        errors["phone"] = "Please enter a valid phone number"

    if errors:
        raise ValidationError("Please correct the highlighted fields.", detail=errors)
    return {"name": name, "email": email, "phone": phone}
