"""Keeps the exported compliance metric of each policy up to date."""

from __future__ import annotations

import logging
from typing import Any

from policyprop.client import NotFoundError
from policyprop.metrics import POLICY_STATUS_GAUGE, GaugeVec
from policyprop.models import (
    ComplianceState,
    ManagedCluster,
    Policy,
    Request,
    Result,
    is_in_cluster_namespace,
)

CONTROLLER_NAME = "policy-metrics"
ROOT_CLUSTER_NAMESPACE = "<null>"

_log = logging.getLogger(CONTROLLER_NAME)


class MetricReconciler:
    """Reconciles the compliance gauge for a policy."""

    def __init__(self, client: Any, gauge: GaugeVec = POLICY_STATUS_GAUGE) -> None:
        self.client = client
        self.gauge = gauge

    def _labels(self, request: Request) -> dict[str, str] | None:
        # The policy may already be gone, so its kind is told from the namespace.
        clusters = self.client.list(ManagedCluster)
        if is_in_cluster_namespace(request.namespace, clusters):
            root_namespace, dot, root_name = request.name.partition(".")
            if not dot:
                return None
            return {
                "type": "propagated",
                "policy": root_name,
                "policy_namespace": root_namespace,
                "cluster_namespace": request.namespace,
            }
        return {
            "type": "root",
            "policy": request.name,
            "policy_namespace": request.namespace,
            "cluster_namespace": ROOT_CLUSTER_NAMESPACE,
        }

    def reconcile(self, request: Request) -> Result:
        """Set, or remove, the gauge series for the requested policy."""
        _log.info("Reconciling metric for the policy %s", request.namespaced_name)

        labels = self._labels(request)
        if labels is None:
            _log.info("Invalid policy in cluster namespace: missing root policy ns prefix")
            return Result()

        try:
            policy = self.client.get(Policy, request.name, request.namespace)
        except NotFoundError:
            deleted = self.gauge.delete(labels)
            _log.info(
                "Policy not found. It must have been deleted. status-gauge-deleted=%s", deleted
            )
            return Result()

        if policy.disabled:
            deleted = self.gauge.delete(labels)
            _log.debug("Metric removed for non-active policy, status-gauge-deleted=%s", deleted)
            return Result()

        self.gauge.get(labels)
        if policy.compliance_state == ComplianceState.COMPLIANT:
            self.gauge.set(labels, 0)
        elif policy.compliance_state == ComplianceState.NON_COMPLIANT:
            self.gauge.set(labels, 1)
        return Result()