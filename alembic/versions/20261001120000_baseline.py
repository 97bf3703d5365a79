"""baseline: users, events, form fields, registrations

Revision ID: 20261001120000
Revises:
Create Date: 2026-10-01

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261001120000"
down_revision = None
branch_labels = None
depends_on = None


ROLE = sa.Enum("ADMIN", "ORGANIZER", "PARTICIPANT", name="role")
EVENT_STATUS = sa.Enum("DRAFT", "PUBLISHED", "DONE", name="eventstatus")
REGISTRATION_STATUS = sa.Enum("PENDING", "CONFIRMED", "REJECTED", name="registrationstatus")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=191), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", ROLE, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("registration_deadline", sa.DateTime(), nullable=True),
        sa.Column("status", EVENT_STATUS, nullable=False),
        sa.Column("quota", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
    )
    op.create_index("ix_events_slug", "events", ["slug"], unique=True)
    op.create_index("ix_events_status", "events", ["status"])
    op.create_index("ix_events_created_by_id", "events", ["created_by_id"])

    op.create_table(
        "form_fields",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("field_type", sa.String(length=20), nullable=False),
        sa.Column("options_json", sa.Text(), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "parent_field_id",
            sa.Integer(),
            sa.ForeignKey("form_fields.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("conditional_value", sa.String(length=255), nullable=False, server_default=""),
    )
    op.create_index("ix_form_fields_event_id", "form_fields", ["event_id"])
    op.create_index("ix_form_fields_parent_field_id", "form_fields", ["parent_field_id"])

    op.create_table(
        "registrations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", REGISTRATION_STATUS, nullable=False),
        sa.Column("attendance", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("qr_code", sa.String(length=191), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("event_id", "user_id", name="uq_registrations_event_user"),
        sa.UniqueConstraint("qr_code", name="uq_registrations_qr_code"),
    )
    op.create_index("ix_registrations_event_id", "registrations", ["event_id"])
    op.create_index("ix_registrations_user_id", "registrations", ["user_id"])
    op.create_index("ix_registrations_status", "registrations", ["status"])
    op.create_index("ix_registrations_created_at", "registrations", ["created_at"])

    op.create_table(
        "form_answers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "registration_id",
            sa.Integer(),
            sa.ForeignKey("registrations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "form_field_id",
            sa.Integer(),
            sa.ForeignKey("form_fields.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("value", sa.Text(), nullable=False),
    )
    op.create_index("ix_form_answers_registration_id", "form_answers", ["registration_id"])
    op.create_index("ix_form_answers_form_field_id", "form_answers", ["form_field_id"])

    op.create_table(
        "form_audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("entity", sa.String(length=80), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("before_json", sa.Text(), nullable=False),
        sa.Column("after_json", sa.Text(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )
    for name, cols in [
        ("ix_form_audit_logs_actor_id", ["actor_id"]),
        ("ix_form_audit_logs_event_id", ["event_id"]),
        ("ix_form_audit_logs_action", ["action"]),
        ("ix_form_audit_logs_entity", ["entity"]),
        ("ix_form_audit_logs_entity_id", ["entity_id"]),
        ("ix_form_audit_logs_created_at", ["created_at"]),
    ]:
        op.create_index(name, "form_audit_logs", cols)


def downgrade() -> None:
    op.drop_table("form_audit_logs")
    op.drop_table("form_answers")
    op.drop_table("registrations")
    op.drop_table("form_fields")
    op.drop_table("events")
    op.drop_table("users")
    bind = op.get_bind()
    REGISTRATION_STATUS.drop(bind, checkfirst=True)
    EVENT_STATUS.drop(bind, checkfirst=True)
    ROLE.drop(bind, checkfirst=True)
