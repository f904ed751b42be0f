from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from evalforms.models.evaluation_submission import EvaluationSubmission
from evalforms.services.submission_rules import STATUS_DRAFT, STATUS_SUBMITTED

from .common import get_template_or_404


def get_template_stats_service(template_id: str, db: Session) -> dict[str, Any]:
    template = get_template_or_404(db, template_id)
    rows = (
        db.query(
            EvaluationSubmission.status,
            EvaluationSubmission.student_id,
            EvaluationSubmission.submitted_by,
            EvaluationSubmission.responsible,
        )
        .filter(EvaluationSubmission.form_template_id == template.id)
        .all()
    )

    drafts = 0
    submitted = 0
    students: set[str] = set()
    by_scout: dict[str, dict[str, Any]] = {}
    for status, student_id, submitted_by, responsible in rows:
        if status == STATUS_DRAFT:
            drafts += 1
        elif status == STATUS_SUBMITTED:
            submitted += 1
        if student_id:
            students.add(str(student_id))
        scout_key = str(submitted_by)
        entry = by_scout.get(scout_key)
        if entry is None:
            entry = {"scoutId": scout_key, "scoutName": responsible or scout_key, "count": 0}
            by_scout[scout_key] = entry
        entry["count"] += 1

    return {
        "total_submissions": len(rows),
        "draft_submissions": drafts,
        "submitted_count": submitted,
        "unique_students_evaluated": len(students),
        "submissions_by_scout": sorted(by_scout.values(), key=lambda item: (-item["count"], item["scoutName"])),
    }
