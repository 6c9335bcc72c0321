"""SQLAlchemy Core table definitions mirrored by the alembic migrations."""

import sqlalchemy as sa

metadata = sa.MetaData()

organization_table = sa.Table(
    "organization",
    metadata,
    sa.Column("organization_id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("name", sa.Text(), nullable=False),
    sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
    sa.UniqueConstraint("name", name="uq_organization_name"),
)

application_table = sa.Table(
    "application",
    metadata,
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

service_table = sa.Table(
    "service",
    metadata,
    sa.Column("service_id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("organization", sa.Text(), nullable=False),
    sa.Column("name", sa.Text(), nullable=False),
    sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
    sa.UniqueConstraint("organization", "name", name="uq_service_organization_name"),
)

service_binding_table = sa.Table(
    "service_binding",
    metadata,
    sa.Column("service_binding_id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column(
        "application_id",
        sa.Integer(),
        sa.ForeignKey("application.application_id", ondelete="SET NULL"),
        nullable=True,
    ),
    sa.Column("organization", sa.Text(), nullable=False),
    sa.Column("application_name", sa.Text(), nullable=False),
    sa.Column("service_name", sa.Text(), nullable=False),
    sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
    sa.UniqueConstraint("application_id", "service_name", name="uq_service_binding_application_service"),
)

# Rows whose application was deleted keep a NULL application_id and never
# attach to a later application of the same name.
sa.Index("ix_service_binding_application", service_binding_table.c.application_id)
sa.Index("ix_service_binding_organization", service_binding_table.c.organization)
