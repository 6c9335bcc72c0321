"""Lifecycle schema baseline

Revision ID: 20261018_01
Revises: None
Create Date: 2026-10-18
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "organization",
        sa.Column("organization_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("name", name="uq_organization_name"),
    )

    op.create_table(
        "application",
        sa.Column("application_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("organization", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("desired_instances", sa.Integer(), nullable=False),
        sa.Column("route", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("source_revision", sa.Text(), nullable=True),
        sa.Column("image_reference", sa.Text(), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("organization", "name", name="uq_application_organization_name"),
        sa.CheckConstraint("desired_instances >= 0", name="ck_application_desired_instances"),
    )

    op.create_table(
        "service",
        sa.Column("service_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("organization", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("organization", "name", name="uq_service_organization_name"),
    )

    op.create_table(
        "service_binding",
        sa.Column("service_binding_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("application_id", sa.Integer(), nullable=True),
        sa.Column("organization", sa.Text(), nullable=False),
        sa.Column("application_name", sa.Text(), nullable=False),
        sa.Column("service_name", sa.Text(), nullable=False),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["application_id"],
            ["application.application_id"],
            name="fk_service_binding_application",
            ondelete="SET NULL",
        ),
        sa.UniqueConstraint("application_id", "service_name", name="uq_service_binding_application_service"),
    )
    op.create_index("ix_service_binding_application", "service_binding", ["application_id"])
    op.create_index("ix_service_binding_organization", "service_binding", ["organization"])


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_service_binding_organization", table_name="service_binding")
    op.drop_index("ix_service_binding_application", table_name="service_binding")
    op.drop_table("service_binding")
    op.drop_table("service")
    op.drop_table("application")
    op.drop_table("organization")
