"""Desired instance reconciliation against the cluster runtime."""

from __future__ import annotations

from shipyard.adapters import ClusterRuntimePort, WorkloadNotFoundError
from shipyard.db import ApplicationRepositoryPort
from shipyard.domain import NotFoundError, RequestContext, domain_instances_error_for, domain_validate_instances


class InstanceReconciler:
    """Push replica targets to the cluster and report live replica status.

    Status is never cached: every call asks the cluster runtime.
    """

    def __init__(self, cluster_runtime: ClusterRuntimePort, application_repository: ApplicationRepositoryPort):
        """Initialize the reconciler.

        Args:
            cluster_runtime: Cluster runtime port.
            application_repository: Application record persistence.

        Raises:
            ValueError: Raised when dependencies are missing.
        """

        if cluster_runtime is None:
            raise ValueError("cluster_runtime must not be None")
        if application_repository is None:
            raise ValueError("application_repository must not be None")

        self._cluster_runtime = cluster_runtime
        self._application_repository = application_repository

    def reconciler_set_instances(
        self,
        context: RequestContext,
        organization: str,
        application_name: str,
        desired_instances: int,
    ) -> None:
        """Set the replica target of an application.

        The workload is scaled first, then the record is updated. A workload
        that does not exist yet only gets the record change; the pipeline
        deploys it with the stored count.

        Args:
            context: Request context.
            organization: Organization name.
            application_name: Application name.
            desired_instances: New replica target.

        Raises:
            InvalidInstancesRangeError: Raised when the count is negative.
            NotFoundError: Raised when the record vanished meanwhile.
            InfrastructureError: Raised when the cluster or database call fails.
        """

        range_error = domain_instances_error_for(domain_validate_instances(desired_instances))
        if range_error is not None:
            raise range_error

        try:
            self._cluster_runtime.adapter_set_desired_replicas(organization, application_name, desired_instances)
        except WorkloadNotFoundError:
            context.logger.info(
                "no workload for %s/%s yet, storing %d instances only",
                organization,
                application_name,
                desired_instances,
            )

        if not self._application_repository.db_application_set_instances(
            organization=organization,
            name=application_name,
            desired_instances=desired_instances,
        ):
            raise NotFoundError(f"application '{application_name}' does not exist in organization '{organization}'")
        context.logger.info("set %s/%s to %d instances", organization, application_name, desired_instances)

    def reconciler_compute_status(
        self,
        context: RequestContext,
        organization: str,
        application_name: str,
        recorded_desired: int,
    ) -> str:
        """Return the live `<ready>/<desired>` status of an application.

        Args:
            context: Request context.
            organization: Organization name.
            application_name: Application name.
            recorded_desired: Stored replica target, used before deployment.

        Returns:
            str: Status string.

        Raises:
            InfrastructureError: Raised when the cluster is unreachable.
        """

        try:
            counts = self._cluster_runtime.adapter_get_replica_counts(organization, application_name)
        except WorkloadNotFoundError:
            context.logger.debug("no workload for %s/%s", organization, application_name)
            return f"0/{recorded_desired}"
        return f"{counts.ready}/{counts.desired}"

    def reconciler_remove_workload(self, context: RequestContext, organization: str, application_name: str) -> bool:
        """Delete the application workload from the cluster.

        Args:
            context: Request context.
            organization: Organization name.
            application_name: Application name.

        Returns:
            bool: False when no workload existed.

        Raises:
            InfrastructureError: Raised when the cluster call fails.
        """

        removed = self._cluster_runtime.adapter_delete_workload(organization, application_name)
        if removed:
            context.logger.info("deleted workload %s/%s", organization, application_name)
        return removed
