import pytest

from policyprop.metrics import (
    DEFAULT_BUCKETS,
    POLICY_STATUS_GAUGE,
    ROOT_POLICY_DURATION,
    GaugeVec,
    Histogram,
)

LABELS = {
    "type": "root",
    "policy": "case7-test-policy",
    "policy_namespace": "policy-propagator-test",
    "cluster_namespace": "<null>",
}


def _gauge():
    return GaugeVec("g", "help", ("type", "policy", "policy_namespace", "cluster_namespace"))


def test_module_metrics_names():
    assert POLICY_STATUS_GAUGE.name == "policy_governance_info"
    assert ROOT_POLICY_DURATION.name == "ocm_handle_root_policy_duration_seconds"

    POLICY_STATUS_GAUGE.set(LABELS, 1)
    try:
        assert POLICY_STATUS_GAUGE.get(LABELS) == 1.0
    finally:
        assert POLICY_STATUS_GAUGE.delete(LABELS) is True

    before = ROOT_POLICY_DURATION.count
    ROOT_POLICY_DURATION.observe(0.1)
    assert ROOT_POLICY_DURATION.count == before + 1


def test_set_and_get():
    gauge = _gauge()
    gauge.set(LABELS, 1)
    assert gauge.get(LABELS) == 1.0
    assert LABELS in gauge


def test_get_creates_zero_series():
    gauge = _gauge()
    assert LABELS not in gauge
    assert gauge.get(LABELS) == 0.0
    assert LABELS in gauge
    assert len(gauge) == 1


def test_inconsistent_labels_raise():
    gauge = _gauge()
    with pytest.raises(ValueError):
        gauge.set({"type": "root"}, 1)
    with pytest.raises(ValueError):
        gauge.get({**LABELS, "extra": "x"})


def test_delete():
    gauge = _gauge()
    gauge.set(LABELS, 0)
    assert gauge.delete(LABELS) is True
    assert gauge.delete(LABELS) is False
    assert gauge.delete({"type": "root"}) is False
    assert len(gauge) == 0


def test_histogram_count_and_sum():
    hist = Histogram("h", "help")
    values = [0.002, 0.3, 4.0, 20.0]
    for value in values:
        hist.observe(value)
    assert hist.count == len(values)
    assert hist.sum == pytest.approx(sum(values))


def test_histogram_buckets_cumulative():
    hist = Histogram("h", "help")
    for value in (0.002, 0.3, 4.0, 20.0):
        hist.observe(value)
    buckets = hist.buckets
    assert tuple(buckets) == DEFAULT_BUCKETS
    counts = list(buckets.values())
    assert counts == sorted(counts)
    assert counts[-1] <= hist.count
    assert buckets[0.25] < buckets[0.5]


def test_histogram_bound_is_inclusive():
    hist = Histogram("h", "help", buckets=(1.0, 2.0))
    hist.observe(1.0)
    assert hist.buckets[1.0] == hist.count


def test_histogram_rejects_unordered_buckets():
    with pytest.raises(ValueError):
        Histogram("h", "help", buckets=(1.0, 1.0))