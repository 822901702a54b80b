"""Event filters for the policy set controller."""

from __future__ import annotations

from policyprop.models import (
    PlacementBinding,
    Policy,
    PolicySet,
    PredicateFuncs,
    is_pb_for_policy_set,
)


def policy_status_changed(old: Policy, new: Policy) -> bool:
    """Tell whether any status field of a policy differs between two versions."""
    return any(getattr(old, name) != getattr(new, name) for name in Policy.status_fields)


def policy_set_policies_changed(old: PolicySet, new: PolicySet) -> bool:
    """Tell whether the list of policies in a policy set changed."""
    return list(old.policies) != list(new.policies)


def _binding_update(old: PlacementBinding, new: PlacementBinding) -> bool:
    return is_pb_for_policy_set(new) or is_pb_for_policy_set(old)


PLACEMENT_BINDING_PREDICATE = PredicateFuncs(
    on_create=is_pb_for_policy_set,
    on_update=_binding_update,
    on_delete=is_pb_for_policy_set,
)

POLICY_PREDICATE = PredicateFuncs(on_update=policy_status_changed)

POLICY_SET_PREDICATE = PredicateFuncs(on_update=policy_set_policies_changed)