"""API router package for endpoint composition."""

from .applications import api_create_application_router
from .health import api_create_health_router, api_create_info_router
from .organizations import api_create_organization_router
from .services import api_create_service_router

__all__ = [
	"api_create_application_router",
	"api_create_health_router",
	"api_create_info_router",
	"api_create_organization_router",
	"api_create_service_router",
]
