"""
Metric values as seen in a snapshot of the metrics store.

A snapshot maps each metric name to exactly one of:
- Counter: cumulative count
- Gauge: last known instantaneous reading
- Label: opaque string state (never sent to statsd)
- Distribution: summary statistics since the store's last reset
"""
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Dict, Mapping, Union


@dataclass(frozen=True)
class Counter:
    """Cumulative count."""
    value: int


@dataclass(frozen=True)
class Gauge:
    """Instantaneous reading."""
    value: int


@dataclass(frozen=True)
class Label:
    """String valued metric."""
    value: str


@dataclass(frozen=True)
class Distribution:
    """Summary statistics of a series of observations."""
    count: int
    sum: float
    mean: float
    variance: float
    min: float
    max: float

    def with_count(self, count: int) -> 'Distribution':
        """
        Copy of this distribution with a different count.

        Args:
            count (int): The new count

        Returns:
            Distribution: A new distribution, all other fields unchanged
        """
        return replace(self, count=count)


Value = Union[Counter, Gauge, Label, Distribution]

Snapshot = Mapping[str, Value]
DeltaSample = Dict[str, Value]

# Previous sample before the first cycle
EMPTY_SAMPLE: Snapshot = MappingProxyType({})
