"""
Statsd exporter: periodically sends metric changes to a statsd server.
"""
from .collector import SnapshotSource, CallableSource, CompositeSource
from .delta import diff_samples
from .encoder import encode_metric, encode_sample, format_number, full_name
from .syncer import Statsd, StatsdOptions, default_statsd_options, fork_statsd
from .transport import StatsdTransport, UnsupportedAddressError, resolve_address
from .values import Counter, Gauge, Label, Distribution, Snapshot, EMPTY_SAMPLE

__all__ = [
    'SnapshotSource',
    'CallableSource',
    'CompositeSource',
    'Counter',
    'Gauge',
    'Label',
    'Distribution',
    'Snapshot',
    'EMPTY_SAMPLE',
    'diff_samples',
    'encode_metric',
    'encode_sample',
    'format_number',
    'full_name',
    'StatsdTransport',
    'UnsupportedAddressError',
    'resolve_address',
    'Statsd',
    'StatsdOptions',
    'default_statsd_options',
    'fork_statsd',
]
