"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_foundation (Alembic Migration)

Responsibilities:
  - Crear el esquema completo desde cero (migración fundacional).
  - Definir tablas, constraints e índices del modelo multi-tenant:
    roles, cuentas, usuarios, divisiones, alumnos, asociaciones,
    asociación activa, refresh tokens y solicitudes de compartir.

Collaborators:
  - PostgreSQL 14+
  - Alembic (framework de migraciones)
  - kiki.infrastructure.repositories.postgres (usa este esquema como contrato)

Policy:
  - Migración BASELINE. Downgrade NO soportado.
  - Convención de nombres (constraints / indexes):
      pk_<tabla>                         - Primary keys
      uq_<tabla>_<col>                   - Unique constraints
      ix_<tabla>_<col>                   - Indexes
      fk_<tabla>_<col>__<ref_tabla>      - Foreign keys
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_foundation"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_UUID = postgresql.UUID(as_uuid=True)
_ZERO_UUID = "'00000000-0000-0000-0000-000000000000'::uuid"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    """
    Orden por dependencias:
      1) Roles
      2) Accounts + Users (FK circular admin_user_id, diferida)
      3) Divisions / Students
      4) Associations / ActiveAssociations
      5) Refresh tokens
      6) Requested shares
    """

    # =========================================================
    # 1) ROLES
    # =========================================================
    op.create_table(
        "roles",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("name", sa.String(32), nullable=False),
        sa.Column("description", sa.String(200), nullable=False),
        sa.Column("level", sa.Integer, nullable=False),
        # Grilla: [{"module": "...", "actions": [...]}]
        sa.Column(
            "permissions",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("is_system", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_roles"),
        sa.UniqueConstraint("name", name="uq_roles_name"),
        sa.CheckConstraint("level >= 1", name="ck_roles_level_positive"),
    )

    # =========================================================
    # 2) ACCOUNTS + USERS
    # =========================================================
    op.create_table(
        "accounts",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("legal_name", sa.String(200), nullable=False),
        sa.Column("admin_email", sa.String(320), nullable=False),
        sa.Column("address", sa.String(200), nullable=True),
        sa.Column("logo_url", sa.Text, nullable=True),
        sa.Column("admin_user_id", _UUID, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_accounts"),
    )
    op.create_index("ix_accounts_is_active", "accounts", ["is_active"])

    op.create_table(
        "users",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column("role_name", sa.String(32), nullable=False),
        sa.Column(
            "status",
            sa.String(16),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("account_id", _UUID, nullable=True),
        sa.Column("dni", sa.String(20), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("address", sa.String(200), nullable=True),
        sa.Column("birth_date", sa.Date, nullable=True),
        sa.Column("avatar_url", sa.Text, nullable=True),
        sa.Column(
            "is_first_login", sa.Boolean, nullable=False, server_default=sa.text("true")
        ),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_changed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.ForeignKeyConstraint(
            ["account_id"],
            ["accounts.id"],
            name="fk_users_account_id__accounts",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_users_status",
        ),
    )
    op.create_index("ix_users_account_id", "users", ["account_id"])
    op.create_index("ix_users_role_name", "users", ["role_name"])
    op.create_index("ix_users_status", "users", ["status"])

    # R: la cuenta se inserta antes que su admin en la misma transacción.
    op.create_foreign_key(
        "fk_accounts_admin_user_id__users",
        "accounts",
        "users",
        ["admin_user_id"],
        ["id"],
        ondelete="SET NULL",
        deferrable=True,
        initially="DEFERRED",
    )

    # =========================================================
    # 3) DIVISIONS / STUDENTS
    # =========================================================
    op.create_table(
        "divisions",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("account_id", _UUID, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column(
            "member_ids",
            postgresql.ARRAY(_UUID),
            nullable=False,
            server_default=sa.text("ARRAY[]::uuid[]"),
        ),
        sa.Column("created_by", _UUID, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_divisions"),
        sa.ForeignKeyConstraint(
            ["account_id"],
            ["accounts.id"],
            name="fk_divisions_account_id__accounts",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["created_by"],
            ["users.id"],
            name="fk_divisions_created_by__users",
            ondelete="SET NULL",
        ),
    )
    op.execute(
        "CREATE UNIQUE INDEX uq_divisions_account_name "
        "ON divisions (account_id, lower(name))"
    )

    op.create_table(
        "students",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("account_id", _UUID, nullable=False),
        sa.Column("division_id", _UUID, nullable=False),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("dni", sa.String(20), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("avatar_url", sa.Text, nullable=True),
        sa.Column("qr_code", sa.String(16), nullable=True),
        sa.Column("created_by", _UUID, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_students"),
        sa.UniqueConstraint("dni", name="uq_students_dni"),
        sa.UniqueConstraint("email", name="uq_students_email"),
        sa.UniqueConstraint("qr_code", name="uq_students_qr_code"),
        sa.ForeignKeyConstraint(
            ["account_id"],
            ["accounts.id"],
            name="fk_students_account_id__accounts",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["division_id"],
            ["divisions.id"],
            name="fk_students_division_id__divisions",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["created_by"],
            ["users.id"],
            name="fk_students_created_by__users",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_students_account_id", "students", ["account_id"])
    op.create_index("ix_students_division_id", "students", ["division_id"])

    # =========================================================
    # 4) ASSOCIATIONS / ACTIVE ASSOCIATIONS
    # =========================================================
    op.create_table(
        "associations",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("user_id", _UUID, nullable=False),
        sa.Column("account_id", _UUID, nullable=False),
        sa.Column("role_name", sa.String(32), nullable=False),
        sa.Column("division_id", _UUID, nullable=True),
        sa.Column("student_id", _UUID, nullable=True),
        sa.Column(
            "status",
            sa.String(16),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        # Override de grilla; vacío = grilla del rol.
        sa.Column(
            "permissions",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("created_by", _UUID, nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_associations"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_associations_user_id__users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["account_id"],
            ["accounts.id"],
            name="fk_associations_account_id__accounts",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["division_id"],
            ["divisions.id"],
            name="fk_associations_division_id__divisions",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["students.id"],
            name="fk_associations_student_id__students",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'active', 'inactive')",
            name="ck_associations_status",
        ),
    )
    op.create_index("ix_associations_user_id", "associations", ["user_id"])
    op.create_index(
        "ix_associations_account_id_status", "associations", ["account_id", "status"]
    )
    # R: a lo sumo una asociación viva (pending/active) por scope.
    op.execute(
        "CREATE UNIQUE INDEX uq_associations_live_scope ON associations ("
        "user_id, account_id, role_name, "
        f"COALESCE(division_id, {_ZERO_UUID}), "
        f"COALESCE(student_id, {_ZERO_UUID})"
        ") WHERE status IN ('pending', 'active')"
    )

    op.create_table(
        "active_associations",
        sa.Column("user_id", _UUID, nullable=False),
        sa.Column("association_id", _UUID, nullable=False),
        sa.Column("account_id", _UUID, nullable=False),
        sa.Column("role_name", sa.String(32), nullable=False),
        sa.Column("division_id", _UUID, nullable=True),
        sa.Column("student_id", _UUID, nullable=True),
        sa.Column(
            "activated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("user_id", name="pk_active_associations"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_active_associations_user_id__users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["association_id"],
            ["associations.id"],
            name="fk_active_associations_association_id__associations",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_active_associations_association_id",
        "active_associations",
        ["association_id"],
    )

    # =========================================================
    # 5) REFRESH TOKENS
    # =========================================================
    op.create_table(
        "refresh_tokens",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("user_id", _UUID, nullable=False),
        # sha256 hex del valor opaco; el valor en claro nunca se guarda.
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "is_revoked", sa.Boolean, nullable=False, server_default=sa.text("false")
        ),
        sa.Column("user_agent", sa.Text, nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("device_id", sa.String(128), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("replaced_by_id", _UUID, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_refresh_tokens"),
        sa.UniqueConstraint("token_hash", name="uq_refresh_tokens_token_hash"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_refresh_tokens_user_id__users",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_refresh_tokens_user_id", "refresh_tokens", ["user_id"])
    op.create_index("ix_refresh_tokens_expires_at", "refresh_tokens", ["expires_at"])

    # =========================================================
    # 6) REQUESTED SHARES (invitaciones a emails sin cuenta)
    # =========================================================
    op.create_table(
        "requested_shares",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("requested_by", _UUID, nullable=False),
        sa.Column("requested_email", sa.String(320), nullable=False),
        sa.Column("account_id", _UUID, nullable=False),
        sa.Column("role_name", sa.String(32), nullable=False),
        sa.Column("division_id", _UUID, nullable=False),
        sa.Column("student_id", _UUID, nullable=False),
        sa.Column(
            "status", sa.String(16), nullable=False, server_default=sa.text("'pending'")
        ),
        sa.Column("completed_by", _UUID, nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_requested_shares"),
        sa.ForeignKeyConstraint(
            ["requested_by"],
            ["users.id"],
            name="fk_requested_shares_requested_by__users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["account_id"],
            ["accounts.id"],
            name="fk_requested_shares_account_id__accounts",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["division_id"],
            ["divisions.id"],
            name="fk_requested_shares_division_id__divisions",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["students.id"],
            name="fk_requested_shares_student_id__students",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["completed_by"],
            ["users.id"],
            name="fk_requested_shares_completed_by__users",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'completed')",
            name="ck_requested_shares_status",
        ),
    )
    op.create_index(
        "ix_requested_shares_requested_email_status",
        "requested_shares",
        ["requested_email", "status"],
    )
    # R: a lo sumo una solicitud pending por (email, cuenta, alumno).
    op.execute(
        "CREATE UNIQUE INDEX uq_requested_shares_pending ON requested_shares ("
        "requested_email, account_id, student_id"
        ") WHERE status = 'pending'"
    )


def downgrade() -> None:
    """Downgrade NO soportado para la migración fundacional."""
    raise NotImplementedError(
        "Baseline: downgrade no soportado. Para resetear, recrear la base de datos."
    )
