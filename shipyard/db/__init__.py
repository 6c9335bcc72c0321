"""Database layer package for all SQL and persistence boundaries."""

from .applications import SQLAlchemyApplicationService
from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
	ApplicationRepositoryPort,
	DatabaseHealthPort,
	OrganizationRepositoryPort,
	ServiceCatalogPort,
)
from .organizations import SQLAlchemyOrganizationService
from .schema import metadata
from .service_catalog import SQLAlchemyServiceCatalogService
from .session import db_create_engine, db_create_schema

__all__ = [
	"ApplicationRepositoryPort",
	"DatabaseHealthPort",
	"OrganizationRepositoryPort",
	"ServiceCatalogPort",
	"SQLAlchemyApplicationService",
	"SQLAlchemyDatabaseHealthService",
	"SQLAlchemyOrganizationService",
	"SQLAlchemyServiceCatalogService",
	"db_create_engine",
	"db_create_schema",
	"metadata",
]
