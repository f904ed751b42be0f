from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from evalforms.core.deps import ROLE_SCOUT_ADMIN, ROLE_SYSTEM_ADMIN, ROLE_XEN_SCOUT, require_role
from evalforms.db.session import get_db
from evalforms.schemas.evaluation_forms import (
    FormTemplateCreate,
    FormTemplatePatch,
    SubmissionCreate,
    SubmissionPatch,
)

from .stats import get_template_stats_service
from .students import get_student_profile_service, search_students_service
from .submissions import (
    create_submission_service,
    delete_submission_service,
    get_submission_service,
    list_submissions_service,
    update_submission_service,
)
from .templates import (
    archive_template_service,
    create_template_service,
    delete_template_service,
    get_template_service,
    list_templates_service,
    publish_template_service,
    update_template_service,
)

router = APIRouter()

_ANY_ROLE = (ROLE_SYSTEM_ADMIN, ROLE_SCOUT_ADMIN, ROLE_XEN_SCOUT)
_SCOUTS = (ROLE_SCOUT_ADMIN, ROLE_XEN_SCOUT)


@router.post("/templates", status_code=201)
def create_template(payload: FormTemplateCreate, db: Session = Depends(get_db), user=Depends(require_role(ROLE_SYSTEM_ADMIN))):
    return create_template_service(payload, db, user)


@router.get("/templates")
def list_templates(
    db: Session = Depends(get_db),
    user=Depends(require_role(*_ANY_ROLE)),
    status: str | None = Query(default=None),
    created_by: str | None = Query(default=None),
):
    return list_templates_service(db, status=status, created_by=created_by)


@router.get("/templates/{template_id}")
def get_template(template_id: str, db: Session = Depends(get_db), user=Depends(require_role(*_ANY_ROLE))):
    return get_template_service(template_id, db)


@router.put("/templates/{template_id}")
def update_template(
    template_id: str,
    payload: FormTemplatePatch,
    db: Session = Depends(get_db),
    user=Depends(require_role(ROLE_SYSTEM_ADMIN)),
):
    return update_template_service(template_id, payload, db, user)


@router.post("/templates/{template_id}/publish")
def publish_template(template_id: str, db: Session = Depends(get_db), user=Depends(require_role(ROLE_SYSTEM_ADMIN))):
    return publish_template_service(template_id, db)


@router.post("/templates/{template_id}/archive")
def archive_template(template_id: str, db: Session = Depends(get_db), user=Depends(require_role(ROLE_SYSTEM_ADMIN))):
    return archive_template_service(template_id, db)


@router.delete("/templates/{template_id}")
def delete_template(template_id: str, db: Session = Depends(get_db), user=Depends(require_role(ROLE_SYSTEM_ADMIN))):
    return delete_template_service(template_id, db)


@router.get("/templates/{template_id}/stats")
def get_template_stats(
    template_id: str,
    db: Session = Depends(get_db),
    user=Depends(require_role(ROLE_SYSTEM_ADMIN, ROLE_SCOUT_ADMIN)),
):
    return get_template_stats_service(template_id, db)


@router.get("/students/search")
def search_students(
    db: Session = Depends(get_db),
    user=Depends(require_role(*_SCOUTS)),
    q: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1),
):
    return search_students_service(db, q, limit)


@router.get("/students/{student_id}/profile")
def get_student_profile(student_id: str, db: Session = Depends(get_db), user=Depends(require_role(*_SCOUTS))):
    return get_student_profile_service(student_id, db)


@router.post("/submissions", status_code=201)
def create_submission(payload: SubmissionCreate, db: Session = Depends(get_db), user=Depends(require_role(*_SCOUTS))):
    return create_submission_service(payload, db, user)


@router.get("/submissions")
def list_submissions(
    db: Session = Depends(get_db),
    user=Depends(require_role(*_ANY_ROLE)),
    status: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    form_template_id: str | None = Query(default=None),
    submitted_by: str | None = Query(default=None),
):
    return list_submissions_service(
        db,
        user,
        status=status,
        page=page,
        limit=limit,
        form_template_id=form_template_id,
        submitted_by=submitted_by,
    )


@router.get("/submissions/{submission_id}")
def get_submission(submission_id: str, db: Session = Depends(get_db), user=Depends(require_role(*_ANY_ROLE))):
    return get_submission_service(submission_id, db, user)


@router.put("/submissions/{submission_id}")
def update_submission(
    submission_id: str,
    payload: SubmissionPatch,
    db: Session = Depends(get_db),
    user=Depends(require_role(*_SCOUTS)),
):
    return update_submission_service(submission_id, payload, db, user)


@router.delete("/submissions/{submission_id}")
def delete_submission(submission_id: str, db: Session = Depends(get_db), user=Depends(require_role(*_SCOUTS))):
    return delete_submission_service(submission_id, db, user)
