"""
Renders metrics as statsd protocol lines.

Each line has the form ``<prefix.><name><.suffix>:<value>|<type>`` and is
sent as its own datagram, without a trailing newline.
"""
from typing import Iterator, List, Mapping, Union

from .values import Counter, Distribution, Gauge, Label, Value

COUNTER_TYPE = "c"
GAUGE_TYPE = "g"

# Sub-metrics sent for a distribution, in send order
DISTRIBUTION_FIELDS = (
    ("mean", GAUGE_TYPE),
    ("variance", GAUGE_TYPE),
    ("count", COUNTER_TYPE),
    ("sum", GAUGE_TYPE),
    ("min", GAUGE_TYPE),
    ("max", GAUGE_TYPE),
)


def full_name(name: str, prefix: str = "", suffix: str = "") -> str:
    """
    Join a metric name with the configured prefix and suffix.

    Empty parts are left out, so there are never leading, trailing or
    doubled dots from an empty prefix or suffix.

    Args:
        name (str): The metric name
        prefix (str): Namespace segment put before the name
        suffix (str): Namespace segment put after the name

    Returns:
        str: The dotted name
    """
    return ".".join(part for part in (prefix, name, suffix) if part)


def format_number(value: Union[int, float]) -> str:
    """
    Format a number for the wire.

    Integers render without a decimal point. Floats use Python's shortest
    round-tripping representation, e.g. ``10.0`` or ``0.1``.

    Args:
        value (int or float): The number to format

    Returns:
        str: The decimal representation
    """
    if isinstance(value, bool):
        raise TypeError("Booleans are not statsd values")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    raise TypeError(f"Unsupported metric value type: {type(value).__name__}")


def format_line(name: str, value: Union[int, float], metric_type: str) -> str:
    return f"{name}:{format_number(value)}|{metric_type}"


def encode_metric(name: str, value: Value, prefix: str = "", suffix: str = "") -> List[str]:
    """
    Encode one metric into protocol lines.

    Args:
        name (str): The metric name, without prefix or suffix
        value (Value): The value to send
        prefix (str): Namespace segment put before the name
        suffix (str): Namespace segment put after the name

    Returns:
        list: The lines to send; empty for labels
    """
    dotted = full_name(name, prefix, suffix)

    if isinstance(value, Counter):
        return [format_line(dotted, value.value, COUNTER_TYPE)]
    if isinstance(value, Gauge):
        return [format_line(dotted, value.value, GAUGE_TYPE)]
    if isinstance(value, Distribution):
        return [
            format_line(f"{dotted}.{field}", getattr(value, field), metric_type)
            for field, metric_type in DISTRIBUTION_FIELDS
        ]
    if isinstance(value, Label):
        return []
    raise TypeError(f"Unknown metric value: {value!r}")


def encode_sample(sample: Mapping[str, Value], prefix: str = "", suffix: str = "") -> Iterator[str]:
    """Yield the protocol lines for every metric in a sample."""
    for name, value in sample.items():
        yield from encode_metric(name, value, prefix, suffix)
