"""add registrations check-in status and time

Revision ID: 20261020120000
Revises: 20261001120000
Create Date: 2026-10-20
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261020120000"
down_revision = "20261001120000"
branch_labels = None
depends_on = None


OLD_STATUS = sa.Enum("PENDING", "CONFIRMED", "REJECTED", name="registrationstatus")
NEW_STATUS = sa.Enum("PENDING", "CONFIRMED", "REJECTED", "CHECKED_IN", name="registrationstatus")


def upgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute("ALTER TYPE registrationstatus ADD VALUE IF NOT EXISTS 'CHECKED_IN'")

    with op.batch_alter_table("registrations") as batch:
        if bind.dialect.name != "postgresql":
            batch.alter_column("status", existing_type=OLD_STATUS, type_=NEW_STATUS, existing_nullable=False)
        batch.add_column(sa.Column("checked_in_at", sa.DateTime(), nullable=True))


def downgrade() -> None:
    bind = op.get_bind()
    op.execute("UPDATE registrations SET status = 'CONFIRMED' WHERE status = 'CHECKED_IN'")
    with op.batch_alter_table("registrations") as batch:
        batch.drop_column("checked_in_at")
        # Postgres cannot drop an enum value; the extra label stays unused.
        if bind.dialect.name != "postgresql":
            batch.alter_column("status", existing_type=NEW_STATUS, type_=OLD_STATUS, existing_nullable=False)
