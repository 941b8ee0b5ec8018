"""init schema: users + tickets

Revision ID: 0001_init
Revises:
Create Date: 2026-10-18 12:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


_ENUMS = {
    "priority_enum": ("low", "normal", "high", "urgent"),
    "ticket_status_enum": ("open", "in_progress", "resolved", "closed"),
    "category_enum": ("hardware", "software", "network", "account", "other"),
}


def upgrade() -> None:
    # ---------- 1) ENUM types (idempotent) ----------
    for name, values in _ENUMS.items():
        labels = ",".join(f"'{v}'" for v in values)
        op.execute(f"""
        DO $$
        BEGIN
            CREATE TYPE {name} AS ENUM ({labels});
        EXCEPTION WHEN duplicate_object THEN NULL;
        END$$;
        """)

    # ---------- 2) Tables (VARCHAR first, so SA does not issue CREATE TYPE) ----------
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(180), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("roles", sa.JSON(), nullable=False, server_default=sa.text("'[\"user\"]'")),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=False),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="open"),        # VARCHAR for now
        sa.Column("priority", sa.String(16), nullable=False, server_default="normal"),    # VARCHAR for now
        sa.Column("category", sa.String(16), nullable=False),                             # VARCHAR for now
        sa.Column("creator_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("assignee_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_tickets_status_priority", "tickets", ["status", "priority"], unique=False)
    op.create_index("ix_tickets_creator_id", "tickets", ["creator_id"], unique=False)
    op.create_index("ix_tickets_assignee_id", "tickets", ["assignee_id"], unique=False)
    op.create_index("ix_tickets_created_at", "tickets", ["created_at"], unique=False)

    # ---------- 3) VARCHAR → ENUM, defaults handled around the cast ----------
    op.execute("ALTER TABLE tickets ALTER COLUMN priority DROP DEFAULT;")
    op.execute("ALTER TABLE tickets ALTER COLUMN status DROP DEFAULT;")
    op.execute("ALTER TABLE tickets ALTER COLUMN priority TYPE priority_enum USING priority::priority_enum;")
    op.execute("ALTER TABLE tickets ALTER COLUMN status   TYPE ticket_status_enum USING status::ticket_status_enum;")
    op.execute("ALTER TABLE tickets ALTER COLUMN category TYPE category_enum USING category::category_enum;")
    op.execute("ALTER TABLE tickets ALTER COLUMN priority SET DEFAULT 'normal';")
    op.execute("ALTER TABLE tickets ALTER COLUMN status   SET DEFAULT 'open';")


def downgrade() -> None:
    op.drop_index("ix_tickets_created_at", table_name="tickets")
    op.drop_index("ix_tickets_assignee_id", table_name="tickets")
    op.drop_index("ix_tickets_creator_id", table_name="tickets")
    op.drop_index("ix_tickets_status_priority", table_name="tickets")
    op.drop_table("tickets")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    for name in _ENUMS:
        op.execute(f"DROP TYPE IF EXISTS {name}")
