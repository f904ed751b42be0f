from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from evalforms.core.deps import ROLE_XEN_SCOUT
from evalforms.models.evaluation_form_field import EvaluationFormField
from evalforms.models.evaluation_form_template import EvaluationFormTemplate
from evalforms.models.evaluation_submission import EvaluationSubmission
from evalforms.models.evaluation_submission_response import EvaluationSubmissionResponse
from evalforms.services.form_fields import FormField, parse_options


def as_utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def str_or_none(value: Any) -> str | None:
    return str(value) if value is not None else None


def uuid_or_400(raw: Any, what: str = "id") -> uuid.UUID:
    try:
        return uuid.UUID(str(raw))
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"Invalid {what}")


def uuid_or_none(raw: Any) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(raw))
    except (TypeError, ValueError):
        return None


def actor_uuid_or_401(user: dict) -> uuid.UUID:
    actor = uuid_or_none(user.get("sub"))
    if actor is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    return actor


def is_xen_scout(user: dict) -> bool:
    return user.get("role") == ROLE_XEN_SCOUT


def _json_or_none(raw: str | None) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def field_row(row: EvaluationFormField) -> dict[str, Any]:
    return {
        "id": str(row.id),
        "formTemplateId": str(row.form_template_id),
        "fieldType": row.field_type,
        "label": row.label,
        "placeholder": row.placeholder,
        "helpText": row.help_text,
        "required": bool(row.required),
        "orderIndex": row.order_index,
        "options": [option.as_dict() for option in parse_options(row.options)],
        "validationRules": _json_or_none(row.validation_rules),
        "createdAt": iso_or_none(row.created_at),
    }


def engine_field(row: EvaluationFormField) -> FormField:
    return FormField.from_mapping(
        {
            "id": str(row.id),
            "field_type": row.field_type,
            "label": row.label,
            "placeholder": row.placeholder,
            "help_text": row.help_text,
            "required": row.required,
            "order_index": row.order_index,
            "options": row.options,
        }
    )


def template_fields(db: Session, template_id: uuid.UUID) -> list[EvaluationFormField]:
    return (
        db.query(EvaluationFormField)
        .filter(EvaluationFormField.form_template_id == template_id)
        .order_by(EvaluationFormField.order_index.asc(), EvaluationFormField.created_at.asc())
        .all()
    )


def template_row(template: EvaluationFormTemplate, fields: list[EvaluationFormField]) -> dict[str, Any]:
    return {
        "id": str(template.id),
        "name": template.name,
        "description": template.description,
        "status": template.status,
        "createdBy": str(template.created_by),
        "version": template.version,
        "publishedAt": iso_or_none(template.published_at),
        "createdAt": iso_or_none(template.created_at),
        "updatedAt": iso_or_none(template.updated_at),
        "fields": [field_row(item) for item in fields],
    }


def get_template_or_404(db: Session, template_id: Any) -> EvaluationFormTemplate:
    template = db.get(EvaluationFormTemplate, uuid_or_400(template_id, "form template id"))
    if template is None:
        raise HTTPException(status_code=404, detail="Form template not found")
    return template


def get_submission_or_404(db: Session, submission_id: Any) -> EvaluationSubmission:
    submission = db.get(EvaluationSubmission, uuid_or_400(submission_id, "submission id"))
    if submission is None:
        raise HTTPException(status_code=404, detail="Submission not found")
    return submission


def submission_row(
    submission: EvaluationSubmission,
    responses: list[EvaluationSubmissionResponse] | None = None,
    template: EvaluationFormTemplate | None = None,
) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": str(submission.id),
        "formTemplateId": str(submission.form_template_id),
        "submittedBy": str(submission.submitted_by),
        "submittedByEmail": submission.responsible,
        "studentId": str_or_none(submission.student_id),
        "studentName": submission.student_name,
        "studentProfilePicUrl": submission.student_profile_pic_url,
        "studentPosition": submission.student_position,
        "studentHeight": submission.student_height,
        "studentWeight": submission.student_weight,
        "studentRoleNumber": submission.student_role_number,
        "studentSport": submission.student_sport,
        "studentSchoolId": str_or_none(submission.student_school_id),
        "studentSchoolName": submission.student_school_name,
        "status": submission.status,
        "submittedAt": iso_or_none(submission.submitted_at),
        "createdAt": iso_or_none(submission.created_at),
        "updatedAt": iso_or_none(submission.updated_at),
    }
    if template is not None:
        out["formTemplate"] = {"id": str(template.id), "name": template.name, "status": template.status}
    if responses is not None:
        out["responses"] = [
            {"id": str(item.id), "fieldId": str(item.field_id), "responseValue": item.response_value}
            for item in responses
        ]
    return out


def submission_responses(db: Session, submission_id: uuid.UUID) -> list[EvaluationSubmissionResponse]:
    return (
        db.query(EvaluationSubmissionResponse)
        .filter(EvaluationSubmissionResponse.submission_id == submission_id)
        .order_by(EvaluationSubmissionResponse.created_at.asc())
        .all()
    )
