"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

SITZUNG_KINDS = ("normal", "vv", "wahlvv", "ersatz", "konsti", "dringlichkeit")
TOP_KINDS = ("regularia", "bericht", "normal", "verschiedenes")


def upgrade() -> None:
    op.create_table(
        "person",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("first_name", sa.String(length=200), nullable=False),
        sa.Column("last_name", sa.String(length=200), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=False),
        sa.Column("matrix_id", sa.String(length=255), nullable=True),
        sa.UniqueConstraint("matrix_id", name="uq_person_matrix_id"),
    )
    op.create_index("ix_person_user_name", "person", ["user_name"], unique=True)

    op.create_table(
        "roles",
        sa.Column("name", sa.String(length=100), primary_key=True, nullable=False),
    )

    op.create_table(
        "rolemapping",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("person_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("role", sa.String(length=100), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.ForeignKeyConstraint(
            ["person_id"], ["person.id"], name="fk_rolemapping_person", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["role"], ["roles.name"], name="fk_rolemapping_role", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_rolemapping_person_id", "rolemapping", ["person_id"], unique=False)
    op.create_index("ix_rolemapping_role", "rolemapping", ["role"], unique=False)

    op.create_table(
        "abmeldungen",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("person_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.ForeignKeyConstraint(
            ["person_id"], ["person.id"], name="fk_abmeldungen_person", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_abmeldungen_person_id", "abmeldungen", ["person_id"], unique=False)

    op.create_table(
        "legislative_period",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
    )

    op.create_table(
        "sitzungen",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=False),
        sa.Column("kind", sa.Enum(*SITZUNG_KINDS, name="sitzungkind"), nullable=False),
        sa.Column("antragsfrist", sa.DateTime(timezone=True), nullable=True),
        sa.Column("legislative_period_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["legislative_period_id"],
            ["legislative_period.id"],
            name="fk_sitzungen_legislative_period",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_sitzungen_datetime", "sitzungen", ["datetime"], unique=False)
    op.create_index(
        "ix_sitzungen_legislative_period_id", "sitzungen", ["legislative_period_id"], unique=False
    )

    op.create_table(
        "tops",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("sitzung_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("weight", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("kind", sa.Enum(*TOP_KINDS, name="topkind"), nullable=False),
        sa.ForeignKeyConstraint(
            ["sitzung_id"], ["sitzungen.id"], name="fk_tops_sitzung", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_tops_sitzung_id", "tops", ["sitzung_id"], unique=False)

    op.create_table(
        "antraege",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("body_text", sa.Text(), nullable=False),
        sa.Column("justification", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "antragsstellende",
        sa.Column("antrag_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("person_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.ForeignKeyConstraint(
            ["antrag_id"], ["antraege.id"], name="fk_antragsstellende_antrag", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["person_id"], ["person.id"], name="fk_antragsstellende_person", ondelete="CASCADE"
        ),
    )

    op.create_table(
        "antragstop",
        sa.Column("antrag_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("top_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.ForeignKeyConstraint(
            ["antrag_id"], ["antraege.id"], name="fk_antragstop_antrag", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["top_id"], ["tops.id"], name="fk_antragstop_top", ondelete="CASCADE"),
    )

    op.create_table(
        "attachments",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("filename", sa.String(length=500), nullable=False),
    )

    op.create_table(
        "attachment_mapping",
        sa.Column("attachment_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("antrag_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.ForeignKeyConstraint(
            ["attachment_id"],
            ["attachments.id"],
            name="fk_attachment_mapping_attachment",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["antrag_id"], ["antraege.id"], name="fk_attachment_mapping_antrag", ondelete="CASCADE"
        ),
    )

    op.create_table(
        "doorstate",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_open", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_doorstate_time", "doorstate", ["time"], unique=False)

    op.create_table(
        "templates",
        sa.Column("name", sa.String(length=200), primary_key=True, nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("templates")

    op.drop_index("ix_doorstate_time", table_name="doorstate")
    op.drop_table("doorstate")

    op.drop_table("attachment_mapping")
    op.drop_table("attachments")
    op.drop_table("antragstop")
    op.drop_table("antragsstellende")
    op.drop_table("antraege")

    op.drop_index("ix_tops_sitzung_id", table_name="tops")
    op.drop_table("tops")

    op.drop_index("ix_sitzungen_legislative_period_id", table_name="sitzungen")
    op.drop_index("ix_sitzungen_datetime", table_name="sitzungen")
    op.drop_table("sitzungen")

    op.drop_table("legislative_period")

    op.drop_index("ix_abmeldungen_person_id", table_name="abmeldungen")
    op.drop_table("abmeldungen")

    op.drop_index("ix_rolemapping_role", table_name="rolemapping")
    op.drop_index("ix_rolemapping_person_id", table_name="rolemapping")
    op.drop_table("rolemapping")

    op.drop_table("roles")

    op.drop_index("ix_person_user_name", table_name="person")
    op.drop_table("person")

    # Enum cleanup (Postgres only)
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS topkind")
        op.execute("DROP TYPE IF EXISTS sitzungkind")
