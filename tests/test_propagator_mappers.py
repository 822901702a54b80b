import pytest

from policyprop.client import ObjectStore
from policyprop.models import (
    APPS_API_GROUP,
    CLUSTER_API_GROUP,
    PLACEMENT_LABEL,
    POLICY_API_GROUP,
    ROOT_POLICY_LABEL,
    ManagedCluster,
    PlacementBinding,
    PlacementDecision,
    PlacementRule,
    Policy,
    PolicySet,
    Request,
    Subject,
)
from policyprop.propagator.mappers import (
    placement_binding_mapper,
    placement_decision_mapper,
    placement_rule_mapper,
    policy_mapper,
    policy_set_mapper,
)

NS = "policy-propagator-test"


class FailingClient:
    def list(self, kind, namespace=None, labels=None):
        raise RuntimeError("list failed")

    def get(self, kind, name, namespace=""):
        raise RuntimeError("get failed")


def policy_subject(name):
    return Subject(POLICY_API_GROUP, "Policy", name)


def set_subject(name):
    return Subject(POLICY_API_GROUP, "PolicySet", name)


def test_binding_mapper_expands_policies_and_sets():
    store = ObjectStore([PolicySet("set1", NS, policies=["a", "b"])])
    binding = PlacementBinding(
        "pb", NS, subjects=[policy_subject("p1"), set_subject("set1")]
    )
    assert placement_binding_mapper(store)(binding) == [
        Request("p1", NS),
        Request("a", NS),
        Request("b", NS),
    ]


def test_binding_mapper_skips_missing_set_and_foreign_group():
    store = ObjectStore()
    binding = PlacementBinding(
        "pb",
        NS,
        subjects=[
            set_subject("missing"),
            Subject("other.group", "Policy", "x"),
            policy_subject("p2"),
        ],
    )
    assert placement_binding_mapper(store)(binding) == [Request("p2", NS)]


def test_decision_mapper_without_label_is_empty():
    store = ObjectStore()
    decision = PlacementDecision("d", NS)
    assert placement_decision_mapper(store)(decision) == []


def test_decision_mapper_matches_placement():
    matching = PlacementBinding(
        "pb1",
        NS,
        placement_ref=Subject(CLUSTER_API_GROUP, "Placement", "plm"),
        subjects=[policy_subject("p1"), set_subject("set1")],
    )
    other = PlacementBinding(
        "pb2",
        NS,
        placement_ref=Subject(CLUSTER_API_GROUP, "Placement", "another"),
        subjects=[policy_subject("p2")],
    )
    store = ObjectStore([matching, other, PolicySet("set1", NS, policies=["s1"])])
    decision = PlacementDecision("d", NS, labels={PLACEMENT_LABEL: "plm"})
    assert placement_decision_mapper(store)(decision) == [Request("p1", NS), Request("s1", NS)]


def test_decision_mapper_list_failure_is_empty():
    decision = PlacementDecision("d", NS, labels={PLACEMENT_LABEL: "plm"})
    assert placement_decision_mapper(FailingClient())(decision) == []


def test_rule_mapper_matches_rule_by_name_and_group():
    matching = PlacementBinding(
        "pb1",
        NS,
        placement_ref=Subject(APPS_API_GROUP, "PlacementRule", "plr"),
        subjects=[policy_subject("p1")],
    )
    wrong_kind = PlacementBinding(
        "pb2",
        NS,
        placement_ref=Subject(CLUSTER_API_GROUP, "Placement", "plr"),
        subjects=[policy_subject("p2")],
    )
    elsewhere = PlacementBinding(
        "pb3",
        "other-ns",
        placement_ref=Subject(APPS_API_GROUP, "PlacementRule", "plr"),
        subjects=[policy_subject("p3")],
    )
    store = ObjectStore([matching, wrong_kind, elsewhere])
    assert placement_rule_mapper(store)(PlacementRule("plr", NS)) == [Request("p1", NS)]


def test_rule_mapper_list_failure_is_empty():
    assert placement_rule_mapper(FailingClient())(PlacementRule("plr", NS)) == []


def test_policy_mapper_root_policy():
    policy = Policy("case7-test-policy", NS)
    assert policy_mapper(ObjectStore())(policy) == [Request("case7-test-policy", NS)]


def test_policy_mapper_replicated_policy_in_cluster_namespace():
    store = ObjectStore([ManagedCluster("managed1")])
    policy = Policy(
        f"{NS}.case7-test-policy",
        "managed1",
        labels={ROOT_POLICY_LABEL: f"{NS}.case7-test-policy"},
    )
    assert policy_mapper(store)(policy) == [Request("case7-test-policy", NS)]


def test_policy_mapper_replicated_policy_outside_cluster_namespace():
    store = ObjectStore([ManagedCluster("managed1")])
    policy = Policy("x", "elsewhere", labels={ROOT_POLICY_LABEL: f"{NS}.p"})
    assert policy_mapper(store)(policy) == []


def test_policy_mapper_list_failure_is_empty():
    policy = Policy("x", "managed1", labels={ROOT_POLICY_LABEL: f"{NS}.p"})
    assert policy_mapper(FailingClient())(policy) == []


def test_policy_mapper_label_without_namespace_raises():
    policy = Policy("x", "managed1", labels={ROOT_POLICY_LABEL: "nodot"})
    with pytest.raises(ValueError):
        policy_mapper(ObjectStore())(policy)


def test_policy_set_mapper_lists_policies():
    policy_set = PolicySet("set1", NS, policies=["a", "b"])
    assert policy_set_mapper(ObjectStore())(policy_set) == [Request("a", NS), Request("b", NS)]


def test_policy_set_mapper_empty_set():
    assert policy_set_mapper(ObjectStore())(PolicySet("set1", NS)) == []