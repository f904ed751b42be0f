import os
import unittest
from datetime import timedelta
from uuid import uuid4

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure settings can be initialized in test environments
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

from evalforms.core.config import settings
from evalforms.core.deps import ROLE_SCOUT_ADMIN, ROLE_SYSTEM_ADMIN, ROLE_XEN_SCOUT
from evalforms.core.security import create_jwt
from evalforms.db.session import get_db
from evalforms.main import app
from evalforms.models.evaluation_form_field import EvaluationFormField
from evalforms.models.evaluation_form_template import EvaluationFormTemplate
from evalforms.models.evaluation_submission import EvaluationSubmission
from evalforms.models.evaluation_submission_response import EvaluationSubmissionResponse
from evalforms.models.notification import Notification
from evalforms.models.school import School
from evalforms.models.student import Student

API = "/api/evaluation-forms"

_TABLES = (
    School,
    Student,
    EvaluationFormTemplate,
    EvaluationFormField,
    EvaluationSubmission,
    EvaluationSubmissionResponse,
    Notification,
)


class EvaluationFormsBase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autocommit=False, autoflush=False)
        for model in _TABLES:
            model.__table__.create(bind=cls.engine)

    @classmethod
    def tearDownClass(cls):
        for model in reversed(_TABLES):
            model.__table__.drop(bind=cls.engine)
        cls.engine.dispose()

    def setUp(self):
        with self.SessionLocal() as db:
            for model in reversed(_TABLES):
                db.execute(delete(model))
            db.commit()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

        self.admin_id = str(uuid4())
        self.scout_id = str(uuid4())
        self.other_scout_id = str(uuid4())
        self.admin = self._auth_headers(ROLE_SYSTEM_ADMIN, "admin@example.com", self.admin_id)
        self.scout = self._auth_headers(ROLE_XEN_SCOUT, "scout@example.com", self.scout_id)
        self.other_scout = self._auth_headers(ROLE_XEN_SCOUT, "other@example.com", self.other_scout_id)
        self.scout_admin = self._auth_headers(ROLE_SCOUT_ADMIN, "lead@example.com")

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()

    @staticmethod
    def _auth_headers(role: str, email: str | None = None, sub: str | None = None) -> dict[str, str]:
        token = create_jwt(
            {"sub": str(sub or uuid4()), "email": email or f"{role}@example.com", "role": role},
            settings.JWT_SECRET,
            timedelta(minutes=30),
        )
        return {"Authorization": f"Bearer {token}"}

    def _template_payload(self, **overrides) -> dict:
        payload = {
            "name": "Quarterback evaluation",
            "description": "Fall camp",
            "fields": [
                {"fieldType": "section_header", "label": "Athletics", "orderIndex": 0, "required": True},
                {"fieldType": "star_rating", "label": "Speed", "orderIndex": 1, "required": True},
                {
                    "fieldType": "multiple_selection",
                    "label": "Strengths",
                    "orderIndex": 2,
                    "options": [
                        {"value": "arm", "label": "Arm strength"},
                        {"value": "iq", "label": "Football IQ"},
                    ],
                },
                {"fieldType": "paragraph", "label": "Notes", "orderIndex": 3},
            ],
        }
        payload.update(overrides)
        return payload

    def _create_template(self, publish: bool = True, **overrides) -> dict:
        response = self.client.post(f"{API}/templates", headers=self.admin, json=self._template_payload(**overrides))
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        if publish:
            published = self.client.post(f"{API}/templates/{body['id']}/publish", headers=self.admin)
            self.assertEqual(published.status_code, 200, published.text)
            body = published.json()["template"]
        return body

    @staticmethod
    def _field_id(template: dict, label: str) -> str:
        for item in template["fields"]:
            if item["label"] == label:
                return item["id"]
        raise KeyError(label)

    def _seed_student(self, name: str = "Jordan Miles", **values) -> str:
        with self.SessionLocal() as db:
            school = School(name=values.pop("school_name", "Central High"))
            db.add(school)
            db.flush()
            student = Student(
                name=name,
                position=values.pop("position", "QB"),
                sport=values.pop("sport", "Football"),
                height=values.pop("height", "6'2\""),
                weight=values.pop("weight", "205"),
                role_number=values.pop("role_number", "12"),
                profile_pic_url=values.pop("profile_pic_url", None),
                school_id=school.id,
            )
            db.add(student)
            db.commit()
            return str(student.id)

    def _create_submission(self, template: dict, headers: dict | None = None, **overrides) -> dict:
        payload = {
            "formTemplateId": template["id"],
            "studentData": {"name": "Walk-on Player", "position": "WR"},
            "responses": [{"fieldId": self._field_id(template, "Speed"), "responseValue": "4"}],
            "status": "submitted",
        }
        payload.update(overrides)
        response = self.client.post(f"{API}/submissions", headers=headers or self.scout, json=payload)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()
