"""Map watched objects to reconcile requests for the policy sets they concern."""

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
    POLICY_SET_KIND,
    PlacementBinding,
    Request,
    Subject,
)

_log = logging.getLogger("policy-set")

MapFunc = Callable[[Any], list[Request]]


def _policy_set_requests(subjects: Iterable[Subject], namespace: str) -> list[Request]:
    return [
        Request(subject.name, namespace)
        for subject in subjects
        if subject.api_group == POLICY_API_GROUP and subject.kind == POLICY_SET_KIND
    ]


def _bindings_in(client: Any, namespace: str) -> list[PlacementBinding] | None:
    try:
        return client.list(PlacementBinding, namespace=namespace)
    except Exception:  # any failure drops the event, as the watch would
        _log.exception("Failed to list placement bindings in %s", namespace)
        return None


def placement_binding_mapper(client: Any) -> MapFunc:
    """Requests for the policy sets a placement binding names as subjects."""

    def map_binding(binding: PlacementBinding) -> list[Request]:
        _log.debug("Reconcile request for a PlacementBinding %s", binding.namespaced_name)
        return _policy_set_requests(binding.subjects, binding.namespace)

    return map_binding


def placement_decision_mapper(client: Any) -> MapFunc:
    """Requests for the policy sets bound to the placement behind a decision."""

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
            result.extend(_policy_set_requests(binding.subjects, decision.namespace))
        return result

    return map_decision


def placement_rule_mapper(client: Any) -> MapFunc:
    """Requests for the policy sets bound to a placement rule."""

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
                result.extend(_policy_set_requests(binding.subjects, rule.namespace))
        return result

    return map_rule


def policy_mapper(client: Any) -> MapFunc:
    """Requests for the policy sets a policy is placed through."""

    def map_policy(policy: Any) -> list[Request]:
        _log.debug("Reconcile request for Policy %s", policy.namespaced_name)
        return [
            Request(placement.policy_set, policy.namespace)
            for placement in policy.placement
            if placement.policy_set
        ]

    return map_policy