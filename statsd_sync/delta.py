"""
Computes what changed between two consecutive snapshots.
"""
import logging
from typing import Optional

from .values import Counter, DeltaSample, Distribution, Gauge, Label, Snapshot, Value

logger = logging.getLogger(__name__)


def diff_samples(prev: Snapshot, curr: Snapshot) -> DeltaSample:
    """
    Compute the metrics to report for this cycle.

    Metrics missing from the previous sample are reported with their full
    current value, so the first cycle sends absolute readings (including the
    lifetime total of every counter). Metrics that disappeared since the
    previous sample are not reported.

    Args:
        prev (Snapshot): The previously sampled metrics
        curr (Snapshot): The metrics sampled this cycle

    Returns:
        dict: Metric name to the value to send
    """
    diff: DeltaSample = {}
    for name, new in curr.items():
        old = prev.get(name)
        if old is None:
            diff[name] = new
            continue

        val = diff_metric(old, new)
        if val is not None:
            diff[name] = val
        elif type(old) is not type(new):
            logger.debug("Metric %s changed kind from %s to %s, skipping",
                         name, type(old).__name__, type(new).__name__)
    return diff


def diff_metric(old: Value, new: Value) -> Optional[Value]:
    """
    Compare two readings of the same metric.

    Args:
        old (Value): Previous reading
        new (Value): Current reading

    Returns:
        Value: The value to send, or None if there is nothing to report
    """
    if isinstance(old, Counter) and isinstance(new, Counter):
        if old.value == new.value:
            return None
        return Counter(new.value - old.value)

    if isinstance(old, Gauge) and isinstance(new, Gauge):
        if old.value == new.value:
            return None
        return new

    if isinstance(old, Label) and isinstance(new, Label):
        # Labels have no statsd representation
        return None

    if isinstance(old, Distribution) and isinstance(new, Distribution):
        if old.count == new.count:
            return None
        return new.with_count(new.count - old.count)

    # Kind changed under the same name
    return None
