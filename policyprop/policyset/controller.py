"""Aggregates the status of the policies in each policy set."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from policyprop.client import EventRecorder, NotFoundError
from policyprop.models import (
    APPS_API_GROUP,
    CLUSTER_API_GROUP,
    PLACEMENT_KIND,
    PLACEMENT_LABEL,
    PLACEMENT_RULE_KIND,
    CompliancePerClusterStatus,
    ComplianceState,
    PlacementBinding,
    PlacementDecision,
    PlacementRule,
    Policy,
    PolicyPlacement,
    PolicySet,
    PolicySetStatus,
    PolicySetStatusPlacement,
    Request,
    Result,
)

CONTROLLER_NAME = "policy-set"

_log = logging.getLogger(CONTROLLER_NAME)


def get_status_message(
    disabled: Iterable[str], pending: Iterable[str], deleted: Iterable[str]
) -> str:
    """Describe the disabled, pending and deleted policies of a set."""
    sections = (
        ("Disabled policies: ", list(disabled)),
        ("No status provided while policies are pending: ", list(pending)),
        ("Deleted policies: ", list(deleted)),
    )
    parts = [prefix + ", ".join(names) for prefix, names in sections if names]
    if not parts:
        return "All policies are reporting status"
    return "; ".join(parts)


def show_compliance(compliances_found: Iterable[str], pending: Iterable[str]) -> bool:
    """Compliance is shown only if some policy reported it and none is pending."""
    if list(pending):
        return False
    return bool(list(compliances_found))


def get_decisions(client: Any, binding: PlacementBinding) -> list[str]:
    """Return the names of the clusters chosen by a binding's placement."""
    ref = binding.placement_ref
    if ref.api_group == APPS_API_GROUP and ref.kind == PLACEMENT_RULE_KIND:
        rule = client.get(PlacementRule, ref.name, binding.namespace)
        return list(rule.clusters)
    if ref.api_group == CLUSTER_API_GROUP and ref.kind == PLACEMENT_KIND:
        decisions = client.list(
            PlacementDecision,
            namespace=binding.namespace,
            labels={PLACEMENT_LABEL: ref.name},
        )
        return [cluster for decision in decisions for cluster in decision.clusters]
    raise ValueError(
        f"placement binding {binding.name}/{binding.namespace} reference is not valid"
    )


def compliance_in_relevant_clusters(
    statuses: Iterable[CompliancePerClusterStatus], clusters: Iterable[str]
) -> Optional[ComplianceState]:
    """Aggregate compliance over the given clusters; None if none reported any."""
    relevant = set(clusters)
    found = False
    compliance = ComplianceState.COMPLIANT
    for status in statuses:
        if status.cluster_name not in relevant or not status.compliance_state:
            continue
        found = True
        if status.compliance_state == ComplianceState.NON_COMPLIANT:
            compliance = ComplianceState.NON_COMPLIANT
    return compliance if found else None


def policy_placement_to_set_placement(placement: PolicyPlacement) -> PolicySetStatusPlacement:
    """Convert a policy's placement entry to a policy set placement entry."""
    return PolicySetStatusPlacement(
        placement_binding=placement.placement_binding,
        placement=placement.placement,
        placement_rule=placement.placement_rule,
    )


class PolicySetReconciler:
    """Reconciles the status of PolicySet objects."""

    def __init__(self, client: Any, recorder: Optional[EventRecorder] = None) -> None:
        self.client = client
        self.recorder = recorder if recorder is not None else EventRecorder()

    def reconcile(self, request: Request) -> Result:
        """Recompute the status of the requested policy set and store it if changed."""
        _log.info("Reconciling policy sets... %s", request.namespaced_name)
        try:
            policy_set = self.client.get(PolicySet, request.name, request.namespace)
        except NotFoundError:
            _log.info("Policy set not found, so it may have been deleted.")
            return Result()

        if self.process_policy_set(policy_set):
            _log.info("Status update needed")
            self.client.update_status(policy_set)

        _log.info("Policy set successfully processed, reconcile complete.")
        self.recorder.event(
            policy_set,
            "Normal",
            f"policySet: {policy_set.name}",
            f"Status successfully updated for policySet {policy_set.name} "
            f"in namespace {policy_set.namespace}",
        )
        return Result()

    def _relevant_clusters(self, binding_names: Iterable[str], namespace: str) -> list[str]:
        clusters: list[str] = []
        for binding_name in binding_names:
            try:
                binding = self.client.get(PlacementBinding, binding_name, namespace)
            except Exception:
                _log.debug("Error getting placement binding %s", binding_name)
                continue
            try:
                clusters.extend(get_decisions(self.client, binding))
            except Exception:
                _log.exception("Error getting placement decisions for binding %s", binding_name)
        return clusters

    def process_policy_set(self, policy_set: PolicySet) -> bool:
        """Rebuild the status of a policy set in place; tell whether it changed."""
        if not policy_set.policies:
            empty = PolicySetStatus()
            if policy_set.status != empty:
                policy_set.status = empty
                return True
            return False

        compliances_found: list[str] = []
        deleted: list[str] = []
        pending: list[str] = []
        disabled: list[str] = []
        aggregated = ComplianceState.COMPLIANT
        placements_by_binding: dict[str, PolicySetStatusPlacement] = {}

        for policy_name in policy_set.policies:
            try:
                policy = self.client.get(Policy, policy_name, policy_set.namespace)
            except Exception as exc:
                _log.debug("Policy %s could not be read: %s", policy_name, exc)
                self.recorder.event(
                    policy_set,
                    "Warning",
                    "PolicyNotFound",
                    f"Policy {policy_name} is in PolicySet {policy_set.name} "
                    f"but could not be found in namespace {policy_set.namespace}",
                )
                deleted.append(policy_name)
                continue

            for placement in policy.placement:
                if placement.policy_set == policy_set.name:
                    placements_by_binding[placement.placement_binding] = (
                        policy_placement_to_set_placement(placement)
                    )

            if policy.disabled:
                disabled.append(policy_name)
                continue

            clusters = self._relevant_clusters(placements_by_binding, policy_set.namespace)
            state = compliance_in_relevant_clusters(policy.status, clusters)
            if state is None:
                pending.append(policy_name)
            else:
                compliances_found.append(policy_name)
                if state == ComplianceState.NON_COMPLIANT:
                    aggregated = ComplianceState.NON_COMPLIANT

        built = PolicySetStatus(
            placement=list(placements_by_binding.values()),
            status_message=get_status_message(disabled, pending, deleted),
        )
        if show_compliance(compliances_found, pending):
            built.compliant = aggregated

        if policy_set.status != built:
            policy_set.status = built
            return True
        return False