"""Domain models, errors and parsing shared across layer boundaries."""

from .context import RequestContext, RequestLoggerAdapter, domain_build_request_context
from .errors import (
	INSTANCES_FORMAT_TITLE,
	INSTANCES_RANGE_TITLE,
	UNPACK_DETAILS_PREFIX,
	ConflictError,
	ErrorGroup,
	InfrastructureError,
	InvalidInstancesFormatError,
	InvalidInstancesRangeError,
	InvalidStagingRequestError,
	NotFoundError,
	ShipyardError,
	UnpackError,
	ValidationError,
	domain_raise_collected,
)
from .instances import (
	InstancesFormatError,
	InstancesParsed,
	InstancesParseResult,
	InstancesRangeError,
	domain_instances_error_for,
	domain_parse_instances,
	domain_require_instances,
	domain_resolve_instances,
	domain_validate_instances,
)
from .names import MAX_RESOURCE_NAME_LENGTH, domain_resource_name_error, domain_validate_resource_name
from .models import (
	ApplicationRecord,
	ApplicationSnapshot,
	BuildRequest,
	HealthStatus,
	IngestResult,
	ServiceBinding,
	SourceReference,
	StagingRequest,
	UnbindReport,
)

__all__ = [
	"INSTANCES_FORMAT_TITLE",
	"INSTANCES_RANGE_TITLE",
	"MAX_RESOURCE_NAME_LENGTH",
	"UNPACK_DETAILS_PREFIX",
	"ApplicationRecord",
	"ApplicationSnapshot",
	"BuildRequest",
	"ConflictError",
	"ErrorGroup",
	"HealthStatus",
	"InfrastructureError",
	"IngestResult",
	"InstancesFormatError",
	"InstancesParseResult",
	"InstancesParsed",
	"InstancesRangeError",
	"InvalidInstancesFormatError",
	"InvalidInstancesRangeError",
	"InvalidStagingRequestError",
	"NotFoundError",
	"RequestContext",
	"RequestLoggerAdapter",
	"ServiceBinding",
	"ShipyardError",
	"SourceReference",
	"StagingRequest",
	"UnbindReport",
	"UnpackError",
	"ValidationError",
	"domain_build_request_context",
	"domain_instances_error_for",
	"domain_parse_instances",
	"domain_raise_collected",
	"domain_require_instances",
	"domain_resolve_instances",
	"domain_resource_name_error",
	"domain_validate_instances",
	"domain_validate_resource_name",
]
