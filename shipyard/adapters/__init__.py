"""Adapter layer package for cluster runtime and pipeline engine boundaries."""

from .errors import (
	ClusterRuntimeError,
	ClusterRuntimeTimeoutError,
	PipelineEngineError,
	PipelineEngineTimeoutError,
	WorkloadNotFoundError,
)
from .interfaces import ClusterRuntimePort, PipelineEnginePort, ReplicaCounts
from .kubernetes_runtime import KubernetesClusterRuntimeAdapter, adapter_create_kubernetes_api_client
from .tekton_pipeline import TektonPipelineAdapter

__all__ = [
	"ClusterRuntimeError",
	"ClusterRuntimePort",
	"ClusterRuntimeTimeoutError",
	"KubernetesClusterRuntimeAdapter",
	"PipelineEngineError",
	"PipelineEnginePort",
	"PipelineEngineTimeoutError",
	"ReplicaCounts",
	"TektonPipelineAdapter",
	"WorkloadNotFoundError",
	"adapter_create_kubernetes_api_client",
]
