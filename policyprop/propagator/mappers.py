"""Map watched objects to reconcile requests for the root policies they concern."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from policyprop.models import (
    APPS_API_GROUP,
    CLUSTER_API_GROUP,
    PLACEMENT_KIND,
    PLACEMENT_LABEL,
    PLACEMENT_RULE_KIND,
    POLICY_API_GROUP,
    POLICY_KIND,
    POLICY_SET_KIND,
    ROOT_POLICY_LABEL,
    ManagedCluster,
    PlacementBinding,
    PolicySet,
    Request,
    Subject,
    is_in_cluster_namespace,
)

_log = logging.getLogger("policy-propagator")

MapFunc = Callable[[Any], list[Request]]


def _policies_of_set(client: Any, set_name: str, namespace: str) -> list[Request]:
    try:
        policy_set = client.get(PolicySet, set_name, namespace)
    except Exception as exc:  # a missing set only drops its own requests
        _log.debug(
            "Failed to retrieve policyset %s referenced in placementbinding: %s", set_name, exc
        )
        return []
    return [Request(policy_name, namespace) for policy_name in policy_set.policies]


def _requests_for_subjects(
    client: Any, subjects: Iterable[Subject], namespace: str
) -> list[Request]:
    result: list[Request] = []
    for subject in subjects:
        if subject.api_group != POLICY_API_GROUP:
            continue
        if subject.kind == POLICY_KIND:
            result.append(Request(subject.name, namespace))
        elif subject.kind == POLICY_SET_KIND:
            result.extend(_policies_of_set(client, subject.name, namespace))
    return result


def _bindings_in(client: Any, namespace: str) -> list[PlacementBinding] | None:
    try:
        return client.list(PlacementBinding, namespace=namespace)
    except Exception:  # any failure drops the event, as the watch would
        _log.exception("Failed to list placement bindings in %s", namespace)
        return None


def placement_binding_mapper(client: Any) -> MapFunc:
    """Requests for the policies a binding names, directly or through policy sets."""

    def map_binding(binding: PlacementBinding) -> list[Request]:
        _log.debug("Reconcile request for a PlacementBinding %s", binding.namespaced_name)
        return _requests_for_subjects(client, binding.subjects, binding.namespace)

    return map_binding


def placement_decision_mapper(client: Any) -> MapFunc:
    """Requests for the policies bound to the placement behind a decision."""

    def map_decision(decision: Any) -> list[Request]:
        _log.debug("Reconcile request for a placement decision %s", decision.namespaced_name)
        placement_name = decision.labels.get(PLACEMENT_LABEL, "")
        if not placement_name:
            return []
        bindings = _bindings_in(client, decision.namespace)
        if bindings is None:
            return []
        result: list[Request] = []
        for binding in bindings:
            ref = binding.placement_ref
            if (
                ref.api_group != CLUSTER_API_GROUP
                or ref.kind != PLACEMENT_KIND
                or ref.name != placement_name
            ):
                continue
            result.extend(_requests_for_subjects(client, binding.subjects, decision.namespace))
        return result

    return map_decision


def placement_rule_mapper(client: Any) -> MapFunc:
    """Requests for the policies bound to a placement rule."""

    def map_rule(rule: Any) -> list[Request]:
        _log.debug("Reconcile request for PlacementRule %s", rule.namespaced_name)
        bindings = _bindings_in(client, rule.namespace)
        if bindings is None:
            return []
        result: list[Request] = []
        for binding in bindings:
            ref = binding.placement_ref
            if (
                ref.api_group == APPS_API_GROUP
                and ref.kind == PLACEMENT_RULE_KIND
                and ref.name == rule.name
            ):
                result.extend(_requests_for_subjects(client, binding.subjects, rule.namespace))
        return result

    return map_rule


def policy_mapper(client: Any) -> MapFunc:
    """Request for the root policy behind a policy, whether root or replicated."""

    def map_policy(policy: Any) -> list[Request]:
        _log.debug("Reconcile request for a policy %s", policy.namespaced_name)
        root_name = policy.labels.get(ROOT_POLICY_LABEL, "")
        if not root_name:
            return [Request(policy.name, policy.namespace)]

        parts = root_name.split(".")
        if len(parts) < 2:
            raise ValueError(f"root policy label {root_name!r} has no namespace prefix")
        namespace, name = parts[0], parts[1]

        try:
            clusters = client.list(ManagedCluster)
        except Exception:
            _log.exception("failed to list ManagedCluster objects")
            return []
        if not is_in_cluster_namespace(policy.namespace, clusters):
            _log.debug("Found a replicated policy in non-cluster namespace, skipping it")
            return []
        return [Request(name, namespace)]

    return map_policy


def policy_set_mapper(client: Any) -> MapFunc:
    """Requests for every policy listed in a policy set."""

    def map_policy_set(policy_set: PolicySet) -> list[Request]:
        _log.debug("Reconcile request for PolicySet %s", policy_set.namespaced_name)
        return [Request(name, policy_set.namespace) for name in policy_set.policies]

    return map_policy_set