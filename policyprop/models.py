"""Resource models and helpers shared by the policy controllers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, ClassVar, Iterable, Optional

POLICY_API_GROUP = "policy.open-cluster-management.io"
CLUSTER_API_GROUP = "cluster.open-cluster-management.io"
APPS_API_GROUP = "apps.open-cluster-management.io"

POLICY_KIND = "Policy"
POLICY_SET_KIND = "PolicySet"
PLACEMENT_BINDING_KIND = "PlacementBinding"
PLACEMENT_KIND = "Placement"
PLACEMENT_RULE_KIND = "PlacementRule"
PLACEMENT_DECISION_KIND = "PlacementDecision"
MANAGED_CLUSTER_KIND = "ManagedCluster"

ROOT_POLICY_LABEL = "policy.open-cluster-management.io/root-policy"
PLACEMENT_LABEL = "cluster.open-cluster-management.io/placement"


class ComplianceState(str, enum.Enum):
    """Compliance reported for a policy or a cluster."""

    COMPLIANT = "Compliant"
    NON_COMPLIANT = "NonCompliant"


@dataclass(frozen=True)
class NamespacedName:
    """Identifies an object by name and namespace."""

    name: str
    namespace: str = ""

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name


@dataclass(frozen=True)
class Request:
    """A reconcile request for one object."""

    name: str
    namespace: str = ""

    @property
    def namespaced_name(self) -> NamespacedName:
        return NamespacedName(self.name, self.namespace)


@dataclass(frozen=True)
class Result:
    """The outcome of a reconcile call."""

    requeue: bool = False
    requeue_after: Optional[timedelta] = None


@dataclass
class _Resource:
    kind: ClassVar[str] = ""
    api_group: ClassVar[str] = ""
    status_fields: ClassVar[tuple[str, ...]] = ()

    name: str
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)

    @property
    def namespaced_name(self) -> NamespacedName:
        return NamespacedName(self.name, self.namespace)


@dataclass(frozen=True)
class Subject:
    """A reference to another object by API group, kind and name."""

    api_group: str = ""
    kind: str = ""
    name: str = ""


@dataclass
class PlacementBinding(_Resource):
    """Binds a placement to policies or policy sets."""

    kind: ClassVar[str] = PLACEMENT_BINDING_KIND
    api_group: ClassVar[str] = POLICY_API_GROUP

    placement_ref: Subject = field(default_factory=Subject)
    subjects: list[Subject] = field(default_factory=list)


@dataclass
class PolicyPlacement:
    """One placement entry in a policy's status."""

    placement_binding: str = ""
    placement: str = ""
    placement_rule: str = ""
    policy_set: str = ""


@dataclass
class CompliancePerClusterStatus:
    """Compliance of a policy on one cluster."""

    cluster_name: str
    cluster_namespace: str = ""
    compliance_state: Optional[ComplianceState] = None


@dataclass
class Policy(_Resource):
    """A governance policy."""

    kind: ClassVar[str] = POLICY_KIND
    api_group: ClassVar[str] = POLICY_API_GROUP
    status_fields: ClassVar[tuple[str, ...]] = ("compliance_state", "placement", "status")

    disabled: bool = False
    compliance_state: Optional[ComplianceState] = None
    placement: list[PolicyPlacement] = field(default_factory=list)
    status: list[CompliancePerClusterStatus] = field(default_factory=list)


@dataclass(frozen=True)
class PolicySetStatusPlacement:
    """One placement entry in a policy set's status."""

    placement_binding: str = ""
    placement: str = ""
    placement_rule: str = ""


@dataclass
class PolicySetStatus:
    """Aggregated status of a policy set."""

    placement: list[PolicySetStatusPlacement] = field(default_factory=list)
    compliant: Optional[ComplianceState] = None
    status_message: str = ""


@dataclass
class PolicySet(_Resource):
    """A named group of policies."""

    kind: ClassVar[str] = POLICY_SET_KIND
    api_group: ClassVar[str] = POLICY_API_GROUP
    status_fields: ClassVar[tuple[str, ...]] = ("status",)

    policies: list[str] = field(default_factory=list)
    status: PolicySetStatus = field(default_factory=PolicySetStatus)


@dataclass
class ManagedCluster(_Resource):
    """A cluster managed by the hub; its name is also its namespace."""

    kind: ClassVar[str] = MANAGED_CLUSTER_KIND
    api_group: ClassVar[str] = CLUSTER_API_GROUP


@dataclass
class PlacementRule(_Resource):
    """A placement rule whose status lists the chosen clusters."""

    kind: ClassVar[str] = PLACEMENT_RULE_KIND
    api_group: ClassVar[str] = APPS_API_GROUP
    status_fields: ClassVar[tuple[str, ...]] = ("clusters",)

    clusters: list[str] = field(default_factory=list)


@dataclass
class PlacementDecision(_Resource):
    """The clusters chosen for a placement."""

    kind: ClassVar[str] = PLACEMENT_DECISION_KIND
    api_group: ClassVar[str] = CLUSTER_API_GROUP
    status_fields: ClassVar[tuple[str, ...]] = ("clusters",)

    clusters: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PredicateFuncs:
    """Event filters; a missing filter lets every event through."""

    on_create: Optional[Callable[[Any], bool]] = None
    on_update: Optional[Callable[[Any, Any], bool]] = None
    on_delete: Optional[Callable[[Any], bool]] = None

    def create(self, obj: Any) -> bool:
        return self.on_create is None or bool(self.on_create(obj))

    def update(self, old: Any, new: Any) -> bool:
        return self.on_update is None or bool(self.on_update(old, new))

    def delete(self, obj: Any) -> bool:
        return self.on_delete is None or bool(self.on_delete(obj))


def is_in_cluster_namespace(namespace: str, clusters: Iterable[ManagedCluster]) -> bool:
    """Tell whether a namespace belongs to one of the managed clusters."""
    return any(cluster.name == namespace for cluster in clusters)


def _binds_kind(binding: PlacementBinding, kind: str) -> bool:
    return any(
        subject.api_group == POLICY_API_GROUP and subject.kind == kind
        for subject in binding.subjects
    )


def is_pb_for_policy(binding: PlacementBinding) -> bool:
    """Tell whether a placement binding has a policy among its subjects."""
    return _binds_kind(binding, POLICY_KIND)


def is_pb_for_policy_set(binding: PlacementBinding) -> bool:
    """Tell whether a placement binding has a policy set among its subjects."""
    return _binds_kind(binding, POLICY_SET_KIND)