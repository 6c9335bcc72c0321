"""Application lifecycle layer: ingestion, staging, scaling, bindings and the registry facade."""

from .bindings import ServiceBindingManager
from .ingestor import CodePackageIngestor, CodePackageIngestorConfig
from .reconciler import InstanceReconciler
from .registry import ApplicationRegistry
from .staging import StagingCoordinator, StagingCoordinatorConfig

__all__ = [
	"ApplicationRegistry",
	"CodePackageIngestor",
	"CodePackageIngestorConfig",
	"InstanceReconciler",
	"ServiceBindingManager",
	"StagingCoordinator",
	"StagingCoordinatorConfig",
]
