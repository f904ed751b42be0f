from __future__ import annotations

import logging
import math
import uuid
from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from evalforms.core.config import settings
from evalforms.core.deps import ROLE_SCOUT_ADMIN, ROLE_XEN_SCOUT
from evalforms.models.evaluation_form_template import EvaluationFormTemplate
from evalforms.models.evaluation_submission import EvaluationSubmission
from evalforms.models.evaluation_submission_response import EvaluationSubmissionResponse
from evalforms.schemas.evaluation_forms import (
    StudentDataIn,
    SubmissionCreate,
    SubmissionPatch,
    SubmissionResponseIn,
)
from evalforms.services.form_fields import FormField
from evalforms.services.notifications import notify_form_submitted
from evalforms.services.submission_rules import (
    STATUS_DRAFT,
    STATUS_SUBMITTED,
    SUBMISSION_STATUSES,
    find_missing_required,
    missing_fields_message,
)

from .common import (
    actor_uuid_or_401,
    as_utc_now,
    engine_field,
    get_submission_or_404,
    get_template_or_404,
    is_xen_scout,
    submission_responses,
    submission_row,
    template_fields,
    uuid_or_400,
)
from .students import student_profile

_LOG = logging.getLogger("evalforms.submissions")

_SNAPSHOT_ATTRS = (
    "student_name",
    "student_profile_pic_url",
    "student_position",
    "student_height",
    "student_weight",
    "student_role_number",
    "student_sport",
    "student_school_id",
    "student_school_name",
)


def _blank_to_none(value: Any) -> str | None:
    text = str(value or "").strip()
    return text or None


def _snapshot_from_student_data(data: StudentDataIn) -> dict[str, Any]:
    return {
        "student_name": data.name,
        "student_profile_pic_url": data.profile_pic,
        "student_position": _blank_to_none(data.position),
        "student_height": _blank_to_none(data.height),
        "student_weight": _blank_to_none(data.weight),
        "student_role_number": _blank_to_none(data.role_number),
        "student_sport": _blank_to_none(data.sport),
        "student_school_id": data.school_id,
        "student_school_name": _blank_to_none(data.school_name),
    }


def _snapshot_from_student_id(db: Session, student_id: uuid.UUID) -> dict[str, Any]:
    profile = student_profile(db, student_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Student not found")
    school_id = profile.get("schoolId")
    return {
        "student_name": profile["name"],
        "student_profile_pic_url": _blank_to_none(profile.get("profilePicUrl")),
        "student_position": _blank_to_none(profile.get("position")),
        "student_height": _blank_to_none(profile.get("height")),
        "student_weight": _blank_to_none(profile.get("weight")),
        "student_role_number": _blank_to_none(profile.get("roleNumber")),
        "student_sport": _blank_to_none(profile.get("sport")),
        "student_school_id": uuid.UUID(school_id) if school_id else None,
        "student_school_name": _blank_to_none(profile.get("schoolName")),
    }


def _normalize_responses(
    items: list[SubmissionResponseIn],
    fields: list[FormField],
) -> dict[str, str]:
    by_id = {item.id: item for item in fields}
    out: dict[str, str] = {}
    for item in items:
        field_id = str(item.field_id)
        field_def = by_id.get(field_id)
        if field_def is None:
            raise HTTPException(
                status_code=400,
                detail={
                    "message": "Response references a field outside the form template",
                    "details": [{"path": ["responses", field_id], "message": "Unknown field"}],
                },
            )
        if not field_def.takes_response:
            continue
        value = str(item.response_value or "")
        if not value.strip():
            continue
        out[field_id] = value
    return out


def _ensure_required_or_400(fields: list[FormField], responses: dict[str, str], status: str) -> None:
    missing = find_missing_required(fields, responses, status)
    if not missing:
        return
    raise HTTPException(
        status_code=400,
        detail={
            "message": missing_fields_message(missing),
            "details": [{"path": ["responses", item.id], "message": f"{item.label} is required"} for item in missing],
        },
    )


def _ensure_creator_or_403(user: dict, submission: EvaluationSubmission, action: str) -> None:
    if str(submission.submitted_by) != str(user.get("sub") or ""):
        raise HTTPException(status_code=403, detail=f"You can only {action} your own submissions")


def _replace_responses(db: Session, submission_id: uuid.UUID, responses: dict[str, str]) -> None:
    db.query(EvaluationSubmissionResponse).filter(EvaluationSubmissionResponse.submission_id == submission_id).delete(
        synchronize_session=False
    )
    for field_id, value in responses.items():
        db.add(EvaluationSubmissionResponse(submission_id=submission_id, field_id=uuid.UUID(field_id), response_value=value))


def _notify_submitted(db: Session, submission: EvaluationSubmission, template: EvaluationFormTemplate, user: dict) -> None:
    if user.get("role") not in (ROLE_XEN_SCOUT, ROLE_SCOUT_ADMIN):
        return
    notify_form_submitted(db, submission, template, user.get("email"))


def create_submission_service(payload: SubmissionCreate, db: Session, user: dict) -> dict[str, Any]:
    actor_id = actor_uuid_or_401(user)
    template = get_template_or_404(db, payload.form_template_id)
    fields = [engine_field(row) for row in template_fields(db, template.id)]
    responses = _normalize_responses(payload.responses, fields)
    _ensure_required_or_400(fields, responses, payload.status)

    if payload.student_data is not None:
        snapshot = _snapshot_from_student_data(payload.student_data)
    else:
        snapshot = _snapshot_from_student_id(db, payload.student_id)

    submission = EvaluationSubmission(
        form_template_id=template.id,
        submitted_by=actor_id,
        responsible=_blank_to_none(user.get("email")),
        student_id=payload.student_id,
        status=payload.status,
        submitted_at=as_utc_now() if payload.status == STATUS_SUBMITTED else None,
        **snapshot,
    )
    db.add(submission)
    db.flush()
    _replace_responses(db, submission.id, responses)
    db.commit()
    db.refresh(submission)
    _LOG.info(
        "Submission %s created by %s for template %s status=%s responses=%s",
        submission.id,
        user.get("email"),
        template.id,
        submission.status,
        len(responses),
    )

    result = submission_row(submission, submission_responses(db, submission.id), template)
    if payload.status == STATUS_SUBMITTED:
        _notify_submitted(db, submission, template, user)
    return result


def list_submissions_service(
    db: Session,
    user: dict,
    *,
    status: str | None = None,
    page: int = 1,
    limit: int | None = None,
    form_template_id: str | None = None,
    submitted_by: str | None = None,
) -> dict[str, Any]:
    query = db.query(EvaluationSubmission)
    status_code = str(status or "").strip().lower()
    if status_code:
        if status_code not in SUBMISSION_STATUSES:
            raise HTTPException(status_code=400, detail="Unknown submission status: " + status_code)
        query = query.filter(EvaluationSubmission.status == status_code)
    if str(form_template_id or "").strip():
        query = query.filter(EvaluationSubmission.form_template_id == uuid_or_400(form_template_id, "form_template_id"))
    # XEN scouts only ever see their own submissions.
    owner = user.get("sub") if is_xen_scout(user) else submitted_by
    if str(owner or "").strip():
        query = query.filter(EvaluationSubmission.submitted_by == uuid_or_400(owner, "submitted_by"))

    page_number = max(1, int(page or 1))
    page_size = max(1, min(int(limit or settings.SUBMISSIONS_DEFAULT_LIMIT), settings.SUBMISSIONS_MAX_LIMIT))
    total = query.count()
    rows = (
        query.order_by(EvaluationSubmission.created_at.desc())
        .offset((page_number - 1) * page_size)
        .limit(page_size)
        .all()
    )
    template_ids = {row.form_template_id for row in rows}
    templates = {}
    if template_ids:
        templates = {
            item.id: item
            for item in db.query(EvaluationFormTemplate).filter(EvaluationFormTemplate.id.in_(list(template_ids))).all()
        }
    return {
        "submissions": [submission_row(row, template=templates.get(row.form_template_id)) for row in rows],
        "total": total,
        "page": page_number,
        "limit": page_size,
        "totalPages": math.ceil(total / page_size) if total else 0,
    }


def get_submission_service(submission_id: str, db: Session, user: dict) -> dict[str, Any]:
    submission = get_submission_or_404(db, submission_id)
    if is_xen_scout(user):
        _ensure_creator_or_403(user, submission, "view")
    template = db.get(EvaluationFormTemplate, submission.form_template_id)
    return submission_row(submission, submission_responses(db, submission.id), template)


def update_submission_service(submission_id: str, payload: SubmissionPatch, db: Session, user: dict) -> dict[str, Any]:
    submission = get_submission_or_404(db, submission_id)
    _ensure_creator_or_403(user, submission, "edit")
    provided = payload.model_fields_set

    template = get_template_or_404(db, payload.form_template_id or submission.form_template_id)
    template_changed = template.id != submission.form_template_id
    fields = [engine_field(row) for row in template_fields(db, template.id)]
    responses_sent = "responses" in provided and payload.responses is not None
    if responses_sent:
        responses = _normalize_responses(payload.responses, fields)
    else:
        responses = {
            str(row.field_id): str(row.response_value or "") for row in submission_responses(db, submission.id)
        }
        if template_changed:
            # Stored answers only carry over to fields of the new template.
            known = {item.id for item in fields if item.takes_response}
            responses = {key: value for key, value in responses.items() if key in known and value.strip()}
    target_status = payload.status or submission.status or STATUS_DRAFT
    _ensure_required_or_400(fields, responses, target_status)

    if payload.student_data is not None:
        for attr, value in _snapshot_from_student_data(payload.student_data).items():
            setattr(submission, attr, value)
        submission.student_id = None
    elif payload.student_id is not None:
        for attr, value in _snapshot_from_student_id(db, payload.student_id).items():
            setattr(submission, attr, value)
        submission.student_id = payload.student_id

    was_draft = submission.status == STATUS_DRAFT
    submission.form_template_id = template.id
    submission.status = target_status
    if target_status == STATUS_SUBMITTED and submission.submitted_at is None:
        submission.submitted_at = as_utc_now()
    submission.updated_at = as_utc_now()
    if responses_sent or template_changed:
        _replace_responses(db, submission.id, responses)
    db.add(submission)
    db.commit()
    db.refresh(submission)
    _LOG.info("Submission %s updated by %s status=%s", submission.id, user.get("email"), submission.status)

    result = submission_row(submission, submission_responses(db, submission.id), template)
    if was_draft and target_status == STATUS_SUBMITTED:
        _notify_submitted(db, submission, template, user)
    return result


def delete_submission_service(submission_id: str, db: Session, user: dict) -> dict[str, Any]:
    submission = get_submission_or_404(db, submission_id)
    _ensure_creator_or_403(user, submission, "delete")
    deleted_id = submission.id
    db.query(EvaluationSubmissionResponse).filter(EvaluationSubmissionResponse.submission_id == deleted_id).delete(
        synchronize_session=False
    )
    db.delete(submission)
    db.commit()
    _LOG.info("Submission %s deleted by %s", deleted_id, user.get("email"))
    return {"message": "Submission deleted successfully", "id": str(deleted_id)}
