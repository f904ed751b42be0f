from __future__ import annotations

import logging
from typing import Any

from evalforms.client.api import EvaluationFormsClient
from evalforms.services.form_fields import FormField, ResponseDisplay, apply_input, display_response, ordered_fields
from evalforms.services.submission_rules import (
    StudentData,
    build_submission_payload,
    find_missing_required,
)

_LOG = logging.getLogger("evalforms.client.session")


class SubmissionSession:
    """State of one "new/edit evaluation" dialog.

    Holds the chosen template, the subject (looked-up student or manual
    entry) and the in-progress response map. ``save`` validates locally and
    only then talks to the API. Once ``close`` has been called, results of
    calls still in flight are dropped instead of applied.
    """

    def __init__(self, client: EvaluationFormsClient, *, submission_id: str | None = None):
        self.client = client
        self.submission_id = submission_id
        self.template: dict[str, Any] | None = None
        self.fields: list[FormField] = []
        self.responses: dict[str, str] = {}
        self.manual_entry = False
        self.student_id: str | None = None
        self.student_data = StudentData()
        self.closed = False

    @property
    def template_id(self) -> str:
        return str((self.template or {}).get("id") or "")

    def close(self) -> None:
        self.closed = True

    def _discarded(self, what: str) -> bool:
        if self.closed:
            _LOG.debug("Session closed; discarding result of %s", what)
        return self.closed

    def available_templates(self) -> list[dict[str, Any]]:
        return self.client.list_templates(status="active")

    def select_template(self, template_id: str) -> list[FormField]:
        template = self.client.get_template(template_id)
        if self._discarded("template fetch"):
            return self.fields
        self.template = template
        self.fields = ordered_fields(FormField.from_mapping(item) for item in (template or {}).get("fields") or [])
        known = {item.id for item in self.fields if item.takes_response}
        self.responses = {key: value for key, value in self.responses.items() if key in known}
        return self.fields

    def field(self, field_id: str) -> FormField:
        for item in self.fields:
            if item.id == field_id:
                return item
        raise KeyError(field_id)

    def set_response(self, field_id: str, raw: Any) -> dict[str, str]:
        self.responses = apply_input(self.field(field_id), self.responses, raw)
        return self.responses

    def display(self, field_id: str) -> ResponseDisplay:
        return display_response(self.field(field_id), self.responses.get(field_id))

    def missing_required(self, status: str = "submitted") -> list[FormField]:
        return find_missing_required(self.fields, self.responses, status)

    def search_students(self, query: str, limit: int | None = None) -> list[dict[str, Any]]:
        if self.manual_entry:
            return []
        return self.client.search_students(query, limit=limit)

    def select_student(self, student_id: str) -> StudentData:
        profile = self.client.get_student_profile(student_id)
        if self._discarded("student profile fetch"):
            return self.student_data
        self.student_id = student_id
        self.student_data = StudentData.from_profile(profile or {})
        self.manual_entry = False
        return self.student_data

    def enable_manual_entry(self, student_data: StudentData | None = None) -> None:
        self.manual_entry = True
        self.student_id = None
        self.student_data = student_data or StudentData()

    def load_submission(self, submission_id: str) -> dict[str, Any]:
        submission = self.client.get_submission(submission_id)
        if self._discarded("submission fetch"):
            return submission
        self.select_template(str(submission.get("formTemplateId") or ""))
        if self._discarded("submission load"):
            return submission
        self.submission_id = submission_id
        self.responses = {
            str(item.get("fieldId")): str(item.get("responseValue"))
            for item in submission.get("responses") or []
            if item.get("responseValue") is not None and str(item.get("responseValue")).strip()
        }
        self.student_id = submission.get("studentId") or None
        self.manual_entry = self.student_id is None
        self.student_data = StudentData(
            name=submission.get("studentName") or "",
            profile_pic=submission.get("studentProfilePicUrl") or "",
            position=submission.get("studentPosition") or "",
            height=submission.get("studentHeight") or "",
            weight=submission.get("studentWeight") or "",
            role_number=submission.get("studentRoleNumber") or "",
            sport=submission.get("studentSport") or "",
            school_id=submission.get("studentSchoolId") or "",
            school_name=submission.get("studentSchoolName") or "",
        )
        return submission

    def build_payload(self, status: str) -> dict[str, Any]:
        return build_submission_payload(
            self.template_id,
            self.fields,
            self.responses,
            status,
            student_id=self.student_id,
            manual_entry=self.manual_entry,
            student_data=self.student_data,
        )

    def save(self, status: str) -> dict[str, Any] | None:
        """Validate locally, then create or update. ``None`` if the session closed meanwhile."""
        payload = self.build_payload(status)
        if self.submission_id:
            result = self.client.update_submission(self.submission_id, payload)
        else:
            result = self.client.create_submission(payload)
        if self._discarded("save"):
            return None
        self.submission_id = str((result or {}).get("id") or self.submission_id or "") or None
        return result
