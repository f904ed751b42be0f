from __future__ import annotations

import re
from dataclasses import dataclass, fields as dataclass_fields
from typing import Any, Iterable, Mapping

from evalforms.services.form_fields import FormField, ordered_fields

STATUS_DRAFT = "draft"
STATUS_SUBMITTED = "submitted"
SUBMISSION_STATUSES = (STATUS_DRAFT, STATUS_SUBMITTED)

UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

MSG_INVALID_TEMPLATE = "Please select a valid form template"
MSG_SUBJECT_REQUIRED = "Please select a student or enable manual entry"
MSG_MANUAL_NAME_REQUIRED = "Player name is required for manual entry"
MSG_TEMPLATE_NOT_FOUND = "Form template not found"


class SubmissionValidationError(ValueError):
    def __init__(self, message: str, missing_field_ids: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.missing_field_ids = list(missing_field_ids or [])


@dataclass(frozen=True)
class SubmissionResponse:
    field_id: str
    response_value: str

    def to_payload(self) -> dict[str, str]:
        return {"fieldId": self.field_id, "responseValue": self.response_value}


@dataclass
class StudentData:
    name: str = ""
    profile_pic: str = ""
    position: str = ""
    height: str = ""
    weight: str = ""
    role_number: str = ""
    sport: str = ""
    school_id: str = ""
    school_name: str = ""

    @classmethod
    def from_profile(cls, profile: Mapping[str, Any]) -> "StudentData":
        """Fill from a ``/students/{id}/profile`` response."""

        def text(*keys: str) -> str:
            for key in keys:
                value = profile.get(key)
                if value is not None:
                    return str(value)
            return ""

        return cls(
            name=text("name"),
            profile_pic=text("profilePicUrl", "profile_pic"),
            position=text("position"),
            height=text("height"),
            weight=text("weight"),
            role_number=text("roleNumber", "role_number"),
            sport=text("sport"),
            school_id=text("schoolId", "school_id"),
            school_name=text("schoolName", "school_name"),
        )

    def cleaned(self) -> dict[str, str]:
        """Manual-entry payload: blanks dropped, unusable picture/school refs dropped."""
        out: dict[str, str] = {"name": self.name}
        pic = self.profile_pic.strip()
        if pic and (pic.startswith("http://") or pic.startswith("https://") or pic.startswith("/")):
            out["profile_pic"] = pic
        for item in dataclass_fields(self):
            if item.name in {"name", "profile_pic", "school_id"}:
                continue
            value = getattr(self, item.name)
            if value and value.strip():
                out[item.name] = value
        school_id = self.school_id.strip()
        if school_id and is_uuid_like(school_id):
            out["school_id"] = school_id
        return out


def is_uuid_like(value: Any) -> bool:
    return bool(UUID_RE.match(str(value or "").strip()))


def normalize_status(status: Any) -> str:
    text = str(status or STATUS_DRAFT).strip().lower()
    if text not in SUBMISSION_STATUSES:
        raise SubmissionValidationError(f"Unknown submission status: {status}")
    return text


def _has_value(responses: Mapping[str, Any], field_id: str) -> bool:
    value = responses.get(field_id)
    return value is not None and bool(str(value).strip())


def find_missing_required(fields: Iterable[FormField], responses: Mapping[str, Any], status: str) -> list[FormField]:
    if normalize_status(status) != STATUS_SUBMITTED:
        return []
    return [item for item in ordered_fields(fields) if item.is_required and not _has_value(responses, item.id)]


def build_responses(fields: Iterable[FormField], responses: Mapping[str, Any]) -> list[SubmissionResponse]:
    out: list[SubmissionResponse] = []
    for item in ordered_fields(fields):
        if not item.takes_response or not _has_value(responses, item.id):
            continue
        out.append(SubmissionResponse(field_id=item.id, response_value=str(responses[item.id])))
    return out


def missing_fields_message(missing: list[FormField]) -> str:
    return "Please fill in all required fields: " + ", ".join(item.label for item in missing)


def validate_submission(
    template_id: Any,
    fields: Iterable[FormField] | None,
    responses: Mapping[str, Any],
    status: str,
    *,
    student_id: str | None = None,
    manual_entry: bool = False,
    student_data: StudentData | None = None,
) -> None:
    """Local checks before anything is sent; raises ``SubmissionValidationError``."""
    if not is_uuid_like(template_id):
        raise SubmissionValidationError(MSG_INVALID_TEMPLATE)
    if not str(student_id or "").strip() and not manual_entry:
        raise SubmissionValidationError(MSG_SUBJECT_REQUIRED)
    if manual_entry and not (student_data is not None and student_data.name.strip()):
        raise SubmissionValidationError(MSG_MANUAL_NAME_REQUIRED)
    if fields is None:
        raise SubmissionValidationError(MSG_TEMPLATE_NOT_FOUND)
    missing = find_missing_required(fields, responses, status)
    if missing:
        raise SubmissionValidationError(missing_fields_message(missing), [item.id for item in missing])


def build_submission_payload(
    template_id: str,
    fields: Iterable[FormField],
    responses: Mapping[str, Any],
    status: str,
    *,
    student_id: str | None = None,
    manual_entry: bool = False,
    student_data: StudentData | None = None,
) -> dict[str, Any]:
    field_list = list(fields)
    validate_submission(
        template_id,
        field_list,
        responses,
        status,
        student_id=student_id,
        manual_entry=manual_entry,
        student_data=student_data,
    )
    payload: dict[str, Any] = {
        "formTemplateId": str(template_id).strip(),
        "responses": [item.to_payload() for item in build_responses(field_list, responses)],
        "status": normalize_status(status),
    }
    if manual_entry:
        payload["studentData"] = (student_data or StudentData()).cleaned()
    elif str(student_id or "").strip():
        payload["studentId"] = str(student_id).strip()
    return payload
