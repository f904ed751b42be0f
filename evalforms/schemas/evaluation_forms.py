from __future__ import annotations

import json
import uuid
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from evalforms.services.form_fields import CHOICE_FIELD_TYPES, FieldType

CHOICE_OPTIONS_MESSAGE = "Fields with choice/dropdown types must have at least one option with both value and label"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FieldOptionIn(_CamelModel):
    value: str = Field(min_length=1)
    label: str = Field(min_length=1)


class FormFieldIn(_CamelModel):
    field_type: FieldType = Field(alias="fieldType")
    label: str = Field(min_length=1)
    placeholder: Optional[str] = None
    help_text: Optional[str] = Field(default=None, alias="helpText")
    required: bool = False
    order_index: int = Field(alias="orderIndex", ge=0)
    options: Optional[list[FieldOptionIn]] = None
    validation_rules: Optional[dict[str, Any]] = Field(default=None, alias="validationRules")

    @model_validator(mode="after")
    def section_headers_are_optional(self) -> "FormFieldIn":
        if self.field_type is FieldType.SECTION_HEADER:
            self.required = False
        return self


def _check_choice_options(fields: Optional[list[FormFieldIn]]) -> Optional[list[FormFieldIn]]:
    for item in fields or []:
        if item.field_type not in CHOICE_FIELD_TYPES:
            continue
        options = item.options or []
        if not options or any(not opt.value.strip() or not opt.label.strip() for opt in options):
            raise ValueError(CHOICE_OPTIONS_MESSAGE)
    return fields


class FormTemplateCreate(_CamelModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    fields: list[FormFieldIn] = Field(min_length=1)

    @field_validator("fields")
    @classmethod
    def validate_choice_options(cls, value: list[FormFieldIn]) -> list[FormFieldIn]:
        return _check_choice_options(value)


class FormTemplatePatch(_CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    fields: Optional[list[FormFieldIn]] = Field(default=None, min_length=1)

    @field_validator("fields")
    @classmethod
    def validate_choice_options(cls, value: Optional[list[FormFieldIn]]) -> Optional[list[FormFieldIn]]:
        return _check_choice_options(value)


class StudentDataIn(_CamelModel):
    name: str = Field(min_length=1)
    profile_pic: Optional[str] = None
    position: Optional[str] = None
    height: Optional[str] = None
    weight: Optional[str] = None
    role_number: Optional[str] = None
    sport: Optional[str] = None
    school_id: Optional[uuid.UUID] = None
    school_name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("Player name is required")
        return text

    @field_validator("profile_pic")
    @classmethod
    def profile_pic_is_url(cls, value: Optional[str]) -> Optional[str]:
        text = str(value or "").strip()
        if not text:
            return None
        if not (text.startswith("http://") or text.startswith("https://") or text.startswith("/")):
            raise ValueError("profile_pic must be an http(s) URL")
        return text


class SubmissionResponseIn(_CamelModel):
    field_id: uuid.UUID = Field(alias="fieldId")
    response_value: Any = Field(alias="responseValue")

    @field_validator("response_value")
    @classmethod
    def stringify_value(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)


class SubmissionCreate(_CamelModel):
    form_template_id: uuid.UUID = Field(alias="formTemplateId")
    student_id: Optional[uuid.UUID] = Field(default=None, alias="studentId")
    student_data: Optional[StudentDataIn] = Field(default=None, alias="studentData")
    responses: list[SubmissionResponseIn] = Field(default_factory=list)
    status: Literal["draft", "submitted"] = "draft"

    @model_validator(mode="after")
    def exactly_one_subject(self) -> "SubmissionCreate":
        if self.student_id is not None and self.student_data is not None:
            raise ValueError("Provide either studentId or studentData, not both")
        if self.student_id is None and self.student_data is None:
            raise ValueError("Either studentId or studentData is required")
        return self


class SubmissionPatch(_CamelModel):
    form_template_id: Optional[uuid.UUID] = Field(default=None, alias="formTemplateId")
    student_id: Optional[uuid.UUID] = Field(default=None, alias="studentId")
    student_data: Optional[StudentDataIn] = Field(default=None, alias="studentData")
    responses: Optional[list[SubmissionResponseIn]] = None
    status: Optional[Literal["draft", "submitted"]] = None

    @model_validator(mode="after")
    def at_most_one_subject(self) -> "SubmissionPatch":
        if self.student_id is not None and self.student_data is not None:
            raise ValueError("Provide either studentId or studentData, not both")
        return self
