"""Event filters for the policy propagator."""

from __future__ import annotations

from policyprop.models import (
    PlacementBinding,
    PolicySet,
    PredicateFuncs,
    is_pb_for_policy,
    is_pb_for_policy_set,
)

__all__ = [
    "PLACEMENT_BINDING_PREDICATE",
    "POLICY_SET_PREDICATE",
    "binding_is_relevant",
    "policy_set_policies_changed",
]


def binding_is_relevant(binding: PlacementBinding) -> bool:
    """Tell whether a binding has a policy or a policy set among its subjects."""
    return is_pb_for_policy(binding) or is_pb_for_policy_set(binding)


def policy_set_policies_changed(old: PolicySet, new: PolicySet) -> bool:
    """Tell whether an update changed the list of policies in a policy set."""
    return list(new.policies or ()) != list(old.policies or ())


def _binding_update(old: PlacementBinding, new: PlacementBinding) -> bool:
    return binding_is_relevant(new) or binding_is_relevant(old)


PLACEMENT_BINDING_PREDICATE = PredicateFuncs(
    on_create=binding_is_relevant,
    on_update=_binding_update,
    on_delete=binding_is_relevant,
)

POLICY_SET_PREDICATE = PredicateFuncs(on_update=policy_set_policies_changed)