from __future__ import annotations

from typing import Any

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from evalforms.core.config import settings
from evalforms.models.school import School
from evalforms.models.student import Student

from .common import str_or_none, uuid_or_400


def _school_names(db: Session, school_ids: set) -> dict:
    if not school_ids:
        return {}
    return {row.id: row.name for row in db.query(School).filter(School.id.in_(list(school_ids))).all()}


def search_students_service(db: Session, query: str | None, limit: int | None = None) -> list[dict[str, Any]]:
    text = str(query or "").strip()
    if len(text) < settings.STUDENT_SEARCH_MIN_QUERY:
        raise HTTPException(
            status_code=400,
            detail=f"Search query must be at least {settings.STUDENT_SEARCH_MIN_QUERY} characters",
        )
    size = int(limit or settings.STUDENT_SEARCH_DEFAULT_LIMIT)
    size = max(1, min(size, settings.STUDENT_SEARCH_MAX_LIMIT))
    pattern = f"%{text.lower()}%"
    rows = (
        db.query(Student)
        .filter(
            or_(
                func.lower(Student.name).like(pattern),
                func.lower(func.coalesce(Student.position, "")).like(pattern),
                func.lower(func.coalesce(Student.sport, "")).like(pattern),
            )
        )
        .order_by(Student.name.asc())
        .limit(size)
        .all()
    )
    schools = _school_names(db, {row.school_id for row in rows if row.school_id})
    return [
        {
            "id": str(row.id),
            "name": row.name,
            "profilePicUrl": row.profile_pic_url,
            "schoolName": schools.get(row.school_id),
            "position": row.position,
            "sport": row.sport,
        }
        for row in rows
    ]


def student_profile(db: Session, student_id: Any) -> dict[str, Any] | None:
    student = db.get(Student, uuid_or_400(student_id, "student id"))
    if student is None:
        return None
    school_name = None
    if student.school_id:
        school = db.get(School, student.school_id)
        school_name = school.name if school else None
    return {
        "id": str(student.id),
        "name": student.name,
        "profilePicUrl": student.profile_pic_url,
        "position": student.position,
        "height": student.height,
        "weight": student.weight,
        "roleNumber": student.role_number,
        "sport": student.sport,
        "schoolId": str_or_none(student.school_id),
        "schoolName": school_name,
    }


def get_student_profile_service(student_id: str, db: Session) -> dict[str, Any]:
    profile = student_profile(db, student_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return profile
