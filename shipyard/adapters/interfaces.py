"""Typed interfaces for adapter-layer responsibilities."""

from dataclasses import dataclass
from typing import Protocol

from shipyard.domain import BuildRequest


@dataclass(frozen=True)
class ReplicaCounts:
    """Replica counts reported by the cluster runtime.

    Attributes:
        ready: Replicas currently ready to serve.
        desired: Replica target configured on the workload.
    """

    ready: int
    desired: int


class ClusterRuntimePort(Protocol):
    """Port definition for the cluster runtime executing application workloads."""

    def adapter_set_desired_replicas(self, organization: str, application_name: str, replicas: int) -> None:
        """Set the replica target of an application workload.

        Args:
            organization: Organization (namespace) of the workload.
            application_name: Workload name.
            replicas: Desired replica count.

        Raises:
            WorkloadNotFoundError: Raised when the workload does not exist.
            ClusterRuntimeError: Raised when the cluster call fails or times out.
        """

    def adapter_get_replica_counts(self, organization: str, application_name: str) -> ReplicaCounts:
        """Read ready and desired replica counts of an application workload.

        Args:
            organization: Organization (namespace) of the workload.
            application_name: Workload name.

        Returns:
            ReplicaCounts: Instantaneous counts.

        Raises:
            WorkloadNotFoundError: Raised when the workload does not exist.
            ClusterRuntimeError: Raised when the cluster call fails or times out.
        """

    def adapter_delete_workload(self, organization: str, application_name: str) -> bool:
        """Delete an application workload.

        Args:
            organization: Organization (namespace) of the workload.
            application_name: Workload name.

        Returns:
            bool: False when there was no workload to delete.

        Raises:
            ClusterRuntimeError: Raised when the cluster call fails or times out.
        """


class PipelineEnginePort(Protocol):
    """Port definition for the build pipeline engine."""

    def adapter_trigger_build(self, build_request: BuildRequest) -> bool:
        """Submit a build and return once the engine accepted it.

        Earlier pending builds of the same application are superseded.

        Args:
            build_request: Fully resolved build submission.

        Returns:
            bool: True when the engine accepted the submission, False when it
            answered without recording a build.

        Raises:
            PipelineEngineError: Raised when the engine call fails or times out.
        """
