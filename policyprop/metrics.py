"""Gauge and histogram metrics exported by the controllers."""

from __future__ import annotations

import bisect
import threading
from typing import Iterable, Mapping

DEFAULT_BUCKETS: tuple[float, ...] = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class GaugeVec:
    """A gauge with one value per combination of label values."""

    def __init__(self, name: str, help: str, label_names: Iterable[str]) -> None:
        self.name = name
        self.help = help
        self.label_names = tuple(label_names)
        self._values: dict[tuple[str, ...], float] = {}
        self._lock = threading.Lock()

    def _key(self, labels: Mapping[str, str]) -> tuple[str, ...]:
        if set(labels) != set(self.label_names):
            raise ValueError(
                f"inconsistent labels for {self.name}: expected {sorted(self.label_names)}, "
                f"got {sorted(labels)}"
            )
        return tuple(labels[name] for name in self.label_names)

    def set(self, labels: Mapping[str, str], value: float) -> None:
        key = self._key(labels)
        with self._lock:
            self._values[key] = float(value)

    def get(self, labels: Mapping[str, str]) -> float:
        """Return the value for the labels, creating the series at zero if needed."""
        key = self._key(labels)
        with self._lock:
            return self._values.setdefault(key, 0.0)

    def delete(self, labels: Mapping[str, str]) -> bool:
        """Remove a series; tell whether it existed."""
        try:
            key = self._key(labels)
        except ValueError:
            return False
        with self._lock:
            return self._values.pop(key, None) is not None

    def __contains__(self, labels: Mapping[str, str]) -> bool:
        try:
            key = self._key(labels)
        except ValueError:
            return False
        with self._lock:
            return key in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)


class Histogram:
    """Counts observations into cumulative buckets."""

    def __init__(self, name: str, help: str, buckets: Iterable[float] = DEFAULT_BUCKETS) -> None:
        bounds = tuple(float(b) for b in buckets)
        if any(later <= earlier for earlier, later in zip(bounds, bounds[1:])):
            raise ValueError("histogram buckets must be in strictly increasing order")
        self.name = name
        self.help = help
        self._bounds = bounds
        self._counts = [0] * len(bounds)
        self.count = 0
        self.sum = 0.0
        self._lock = threading.Lock()

    def observe(self, value: float) -> None:
        index = bisect.bisect_left(self._bounds, value)
        with self._lock:
            if index < len(self._counts):
                self._counts[index] += 1
            self.count += 1
            self.sum += value

    @property
    def buckets(self) -> dict[float, int]:
        """Cumulative observation counts keyed by upper bound."""
        result: dict[float, int] = {}
        total = 0
        with self._lock:
            for bound, count in zip(self._bounds, self._counts):
                total += count
                result[bound] = total
        return result


POLICY_STATUS_GAUGE = GaugeVec(
    "policy_governance_info",
    "The compliance status of the named policy. 0 == Compliant. 1 == NonCompliant",
    ("type", "policy", "policy_namespace", "cluster_namespace"),
)

ROOT_POLICY_DURATION = Histogram(
    "ocm_handle_root_policy_duration_seconds",
    "Time the handleRootPolicy function takes to complete.",
)