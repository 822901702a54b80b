import pytest

from policyprop.client import EventRecorder, NotFoundError, ObjectStore
from policyprop.models import (
    ComplianceState,
    ManagedCluster,
    PlacementDecision,
    Policy,
    PolicySet,
)


def test_add_and_get_round_trip():
    store = ObjectStore()
    plc = Policy("case7-test-policy", "policy-propagator-test", disabled=True)
    store.add(plc)
    assert store.get(Policy, "case7-test-policy", "policy-propagator-test") == plc
    assert store.get("Policy", "case7-test-policy", "policy-propagator-test") == plc


def test_get_returns_copy():
    store = ObjectStore([Policy("p", "ns")])
    fetched = store.get(Policy, "p", "ns")
    fetched.disabled = True
    assert store.get(Policy, "p", "ns").disabled is False


def test_get_missing_raises_not_found():
    store = ObjectStore()
    with pytest.raises(NotFoundError) as info:
        store.get(Policy, "missing", "ns")
    assert str(info.value) == 'Policy.policy.open-cluster-management.io "missing" not found'
    assert info.value.name == "missing"
    assert isinstance(info.value, LookupError)


def test_list_filters_by_namespace_and_labels():
    label = {"cluster.open-cluster-management.io/placement": "plm"}
    store = ObjectStore(
        [
            PlacementDecision("b", "ns", labels=dict(label)),
            PlacementDecision("a", "ns", labels=dict(label)),
            PlacementDecision("c", "other", labels=dict(label)),
            PlacementDecision("d", "ns"),
        ]
    )
    names = [obj.name for obj in store.list(PlacementDecision, "ns", label)]
    assert names == ["a", "b"]
    assert len(store.list(PlacementDecision)) == 4
    assert store.list(Policy) == []


def test_list_all_namespaces_sorted():
    store = ObjectStore([ManagedCluster("managed2"), ManagedCluster("managed1")])
    assert [c.name for c in store.list(ManagedCluster)] == ["managed1", "managed2"]


def test_delete():
    plc = Policy("p", "ns")
    store = ObjectStore([plc])
    assert plc in store
    store.delete(plc)
    assert plc not in store
    assert len(store) == 0
    with pytest.raises(NotFoundError):
        store.delete(plc)


def test_update_status_copies_only_status_fields():
    store = ObjectStore([Policy("p", "ns")])
    changed = Policy("p", "ns", disabled=True, compliance_state=ComplianceState.COMPLIANT)
    store.update_status(changed)
    stored = store.get(Policy, "p", "ns")
    assert stored.compliance_state is ComplianceState.COMPLIANT
    assert stored.disabled is False


def test_update_status_missing_raises():
    store = ObjectStore()
    with pytest.raises(NotFoundError):
        store.update_status(PolicySet("s", "ns"))


def test_event_recorder():
    recorder = EventRecorder()
    recorder.event(PolicySet("s", "ns"), "Warning", "PolicyNotFound", "missing")
    assert recorder.events == [("PolicySet", "ns", "s", "Warning", "PolicyNotFound", "missing")]