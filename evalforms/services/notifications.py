from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from evalforms.core.config import settings
from evalforms.core.deps import ROLE_SCOUT_ADMIN, ROLE_SYSTEM_ADMIN, ROLE_XEN_SCOUT
from evalforms.models.evaluation_form_template import EvaluationFormTemplate
from evalforms.models.evaluation_submission import EvaluationSubmission
from evalforms.models.notification import Notification

_LOG = logging.getLogger("evalforms.notifications")

EVENT_FORM_CREATED = "FORM_CREATED"
EVENT_FORM_SUBMITTED = "FORM_SUBMITTED"

_RECIPIENTS = {
    EVENT_FORM_CREATED: (ROLE_SYSTEM_ADMIN, ROLE_SCOUT_ADMIN, ROLE_XEN_SCOUT),
    EVENT_FORM_SUBMITTED: (ROLE_SYSTEM_ADMIN, ROLE_SCOUT_ADMIN),
}


def _record(db: Session, event_type: str, entity_id, title: str, body: str | None, payload: dict[str, Any]) -> int:
    if not settings.NOTIFICATIONS_ENABLED:
        return 0
    created = 0
    try:
        for role in _RECIPIENTS[event_type]:
            db.add(
                Notification(
                    recipient_role=role,
                    event_type=event_type,
                    entity_id=entity_id,
                    title=title,
                    body=body,
                    payload=payload,
                    dedupe_key=f"{event_type}:{entity_id}:{role}",
                )
            )
            created += 1
        db.commit()
    except SQLAlchemyError:
        # Notifications never fail the originating request.
        db.rollback()
        _LOG.warning("Failed to record %s notifications for %s", event_type, entity_id, exc_info=True)
        return 0
    _LOG.info("Recorded %s notifications for %s: %s", event_type, entity_id, created)
    return created


def notify_form_created(db: Session, template: EvaluationFormTemplate, actor_email: str | None) -> int:
    author = str(actor_email or "").strip() or "System administrator"
    return _record(
        db,
        EVENT_FORM_CREATED,
        template.id,
        title=f"New evaluation form: {template.name}",
        body=f"{author} created the evaluation form \"{template.name}\".",
        payload={"form_template_id": str(template.id), "created_by": author},
    )


def notify_form_submitted(
    db: Session,
    submission: EvaluationSubmission,
    template: EvaluationFormTemplate,
    actor_email: str | None,
) -> int:
    scout = str(actor_email or submission.responsible or "").strip() or "A scout"
    student = str(submission.student_name or "").strip()
    subject = f" for {student}" if student else ""
    return _record(
        db,
        EVENT_FORM_SUBMITTED,
        submission.id,
        title=f"Evaluation submitted: {template.name}",
        body=f"{scout} submitted \"{template.name}\"{subject}.",
        payload={
            "submission_id": str(submission.id),
            "form_template_id": str(template.id),
            "submitted_by": str(submission.submitted_by),
            "student_name": student or None,
        },
    )
