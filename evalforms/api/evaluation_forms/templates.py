from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from evalforms.models.evaluation_form_field import EvaluationFormField
from evalforms.models.evaluation_form_template import EvaluationFormTemplate
from evalforms.schemas.evaluation_forms import FormFieldIn, FormTemplateCreate, FormTemplatePatch
from evalforms.services.notifications import notify_form_created

from .common import (
    actor_uuid_or_401,
    as_utc_now,
    get_template_or_404,
    template_fields,
    template_row,
    uuid_or_400,
)

_LOG = logging.getLogger("evalforms.templates")

TEMPLATE_STATUSES = ("draft", "active", "archived")


def _field_model(template_id, payload: FormFieldIn) -> EvaluationFormField:
    options = [opt.model_dump() for opt in payload.options] if payload.options else None
    return EvaluationFormField(
        form_template_id=template_id,
        field_type=payload.field_type.value,
        label=payload.label.strip(),
        placeholder=str(payload.placeholder or "").strip() or None,
        help_text=str(payload.help_text or "").strip() or None,
        required=bool(payload.required),
        order_index=payload.order_index,
        options=json.dumps(options, ensure_ascii=False) if options else None,
        validation_rules=json.dumps(payload.validation_rules, ensure_ascii=False) if payload.validation_rules else None,
    )


def create_template_service(payload: FormTemplateCreate, db: Session, user: dict) -> dict[str, Any]:
    template = EvaluationFormTemplate(
        name=payload.name.strip(),
        description=str(payload.description or "").strip() or None,
        status="draft",
        created_by=actor_uuid_or_401(user),
        version=1,
    )
    db.add(template)
    db.flush()
    for item in payload.fields:
        db.add(_field_model(template.id, item))
    db.commit()
    db.refresh(template)
    _LOG.info("Form template %s created by %s with %s fields", template.id, user.get("email"), len(payload.fields))

    result = template_row(template, template_fields(db, template.id))
    notify_form_created(db, template, user.get("email"))
    return result


def list_templates_service(db: Session, *, status: str | None = None, created_by: str | None = None) -> list[dict[str, Any]]:
    query = db.query(EvaluationFormTemplate)
    status_code = str(status or "").strip().lower()
    if status_code:
        if status_code not in TEMPLATE_STATUSES:
            raise HTTPException(status_code=400, detail="Unknown template status: " + status_code)
        query = query.filter(EvaluationFormTemplate.status == status_code)
    if str(created_by or "").strip():
        query = query.filter(EvaluationFormTemplate.created_by == uuid_or_400(created_by, "created_by"))
    templates = query.order_by(EvaluationFormTemplate.created_at.desc()).all()
    if not templates:
        return []

    fields_by_template: dict[Any, list[EvaluationFormField]] = {item.id: [] for item in templates}
    rows = (
        db.query(EvaluationFormField)
        .filter(EvaluationFormField.form_template_id.in_(list(fields_by_template)))
        .order_by(EvaluationFormField.order_index.asc(), EvaluationFormField.created_at.asc())
        .all()
    )
    for row in rows:
        fields_by_template[row.form_template_id].append(row)
    return [template_row(item, fields_by_template[item.id]) for item in templates]


def get_template_service(template_id: str, db: Session) -> dict[str, Any]:
    template = get_template_or_404(db, template_id)
    return template_row(template, template_fields(db, template.id))


def update_template_service(template_id: str, payload: FormTemplatePatch, db: Session, user: dict) -> dict[str, Any]:
    template = get_template_or_404(db, template_id)
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and payload.name is not None:
        template.name = payload.name.strip()
    if "description" in changes:
        template.description = str(payload.description or "").strip() or None
    if payload.fields is not None:
        # Fields are replaced wholesale; stored responses keep pointing at the old field ids.
        db.query(EvaluationFormField).filter(EvaluationFormField.form_template_id == template.id).delete(
            synchronize_session=False
        )
        for item in payload.fields:
            db.add(_field_model(template.id, item))
        template.version = int(template.version or 1) + 1
    template.updated_at = as_utc_now()
    db.add(template)
    db.commit()
    db.refresh(template)
    _LOG.info("Form template %s updated by %s", template.id, user.get("email"))
    return template_row(template, template_fields(db, template.id))


def _set_status(template_id: str, status: str, db: Session) -> EvaluationFormTemplate:
    template = get_template_or_404(db, template_id)
    template.status = status
    if status == "active":
        template.published_at = as_utc_now()
    template.updated_at = as_utc_now()
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


def publish_template_service(template_id: str, db: Session) -> dict[str, Any]:
    template = _set_status(template_id, "active", db)
    return {"message": "Form published successfully", "template": template_row(template, template_fields(db, template.id))}


def archive_template_service(template_id: str, db: Session) -> dict[str, Any]:
    template = _set_status(template_id, "archived", db)
    return {"message": "Form archived successfully", "template": template_row(template, template_fields(db, template.id))}


def delete_template_service(template_id: str, db: Session) -> dict[str, Any]:
    template = get_template_or_404(db, template_id)
    deleted_id = str(template.id)
    db.query(EvaluationFormField).filter(EvaluationFormField.form_template_id == template.id).delete(
        synchronize_session=False
    )
    db.delete(template)
    db.commit()
    _LOG.info("Form template %s deleted", deleted_id)
    return {"message": "Form template deleted successfully", "id": deleted_id}
