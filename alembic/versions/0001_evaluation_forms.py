"""evaluation forms

Revision ID: 0001_evaluation_forms
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_evaluation_forms"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "schools",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
    )
    op.create_index("ix_schools_name", "schools", ["name"])

    op.create_table(
        "students",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("profile_pic_url", sa.Text(), nullable=True),
        sa.Column("position", sa.String(length=100), nullable=True),
        sa.Column("height", sa.String(length=30), nullable=True),
        sa.Column("weight", sa.String(length=30), nullable=True),
        sa.Column("role_number", sa.String(length=20), nullable=True),
        sa.Column("sport", sa.String(length=100), nullable=True),
        sa.Column("school_id", postgresql.UUID(as_uuid=True), nullable=True),
    )
    op.create_index("ix_students_name", "students", ["name"])
    op.create_index("ix_students_sport", "students", ["sport"])
    op.create_index("ix_students_school_id", "students", ["school_id"])

    op.create_table(
        "evaluation_form_templates",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_evaluation_form_templates_name", "evaluation_form_templates", ["name"])
    op.create_index("ix_evaluation_form_templates_status", "evaluation_form_templates", ["status"])
    op.create_index("ix_evaluation_form_templates_created_by", "evaluation_form_templates", ["created_by"])
    op.create_check_constraint(
        "ck_evaluation_form_templates_status",
        "evaluation_form_templates",
        "status IN ('draft','active','archived')",
    )

    op.create_table(
        "evaluation_form_fields",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("form_template_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("field_type", sa.String(length=30), nullable=False),
        sa.Column("label", sa.Text(), nullable=False),
        sa.Column("placeholder", sa.Text(), nullable=True),
        sa.Column("help_text", sa.Text(), nullable=True),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.Column("options", sa.Text(), nullable=True),
        sa.Column("validation_rules", sa.Text(), nullable=True),
    )
    op.create_index("ix_evaluation_form_fields_form_template_id", "evaluation_form_fields", ["form_template_id"])

    op.create_table(
        "evaluation_submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("form_template_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("submitted_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("responsible", sa.String(length=255), nullable=True),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("student_name", sa.Text(), nullable=True),
        sa.Column("student_profile_pic_url", sa.Text(), nullable=True),
        sa.Column("student_position", sa.Text(), nullable=True),
        sa.Column("student_height", sa.Text(), nullable=True),
        sa.Column("student_weight", sa.Text(), nullable=True),
        sa.Column("student_role_number", sa.Text(), nullable=True),
        sa.Column("student_sport", sa.Text(), nullable=True),
        sa.Column("student_school_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("student_school_name", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_evaluation_submissions_form_template_id", "evaluation_submissions", ["form_template_id"])
    op.create_index("ix_evaluation_submissions_submitted_by", "evaluation_submissions", ["submitted_by"])
    op.create_index("ix_evaluation_submissions_student_id", "evaluation_submissions", ["student_id"])
    op.create_index("ix_evaluation_submissions_status", "evaluation_submissions", ["status"])
    op.create_check_constraint(
        "ck_evaluation_submissions_status",
        "evaluation_submissions",
        "status IN ('draft','submitted')",
    )

    op.create_table(
        "evaluation_submission_responses",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("submission_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("field_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("response_value", sa.Text(), nullable=True),
        sa.UniqueConstraint("submission_id", "field_id", name="uq_evaluation_submission_responses_submission_field"),
    )
    op.create_index(
        "ix_evaluation_submission_responses_submission_id", "evaluation_submission_responses", ["submission_id"]
    )
    op.create_index("ix_evaluation_submission_responses_field_id", "evaluation_submission_responses", ["field_id"])

    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("recipient_role", sa.String(length=30), nullable=False),
        sa.Column("event_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False, server_default=sa.text("'{}'::json")),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("dedupe_key", sa.String(length=255), nullable=True, unique=True),
    )
    op.create_index("ix_notifications_recipient_role", "notifications", ["recipient_role"])
    op.create_index("ix_notifications_event_type", "notifications", ["event_type"])
    op.create_index("ix_notifications_entity_id", "notifications", ["entity_id"])
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"])


def downgrade():
    op.drop_index("ix_notifications_is_read", table_name="notifications")
    op.drop_index("ix_notifications_entity_id", table_name="notifications")
    op.drop_index("ix_notifications_event_type", table_name="notifications")
    op.drop_index("ix_notifications_recipient_role", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_evaluation_submission_responses_field_id", table_name="evaluation_submission_responses")
    op.drop_index("ix_evaluation_submission_responses_submission_id", table_name="evaluation_submission_responses")
    op.drop_table("evaluation_submission_responses")
    op.drop_constraint("ck_evaluation_submissions_status", "evaluation_submissions", type_="check")
    op.drop_index("ix_evaluation_submissions_status", table_name="evaluation_submissions")
    op.drop_index("ix_evaluation_submissions_student_id", table_name="evaluation_submissions")
    op.drop_index("ix_evaluation_submissions_submitted_by", table_name="evaluation_submissions")
    op.drop_index("ix_evaluation_submissions_form_template_id", table_name="evaluation_submissions")
    op.drop_table("evaluation_submissions")
    op.drop_index("ix_evaluation_form_fields_form_template_id", table_name="evaluation_form_fields")
    op.drop_table("evaluation_form_fields")
    op.drop_constraint("ck_evaluation_form_templates_status", "evaluation_form_templates", type_="check")
    op.drop_index("ix_evaluation_form_templates_created_by", table_name="evaluation_form_templates")
    op.drop_index("ix_evaluation_form_templates_status", table_name="evaluation_form_templates")
    op.drop_index("ix_evaluation_form_templates_name", table_name="evaluation_form_templates")
    op.drop_table("evaluation_form_templates")
    op.drop_index("ix_students_school_id", table_name="students")
    op.drop_index("ix_students_sport", table_name="students")
    op.drop_index("ix_students_name", table_name="students")
    op.drop_table("students")
    op.drop_index("ix_schools_name", table_name="schools")
    op.drop_table("schools")
