"""
Unit tests for the delta engine.
"""
from statsd_sync.delta import diff_metric, diff_samples
from statsd_sync.values import EMPTY_SAMPLE, Counter, Distribution, Gauge, Label


def make_dist(count, sum_=50.0, mean=10.0, variance=2.0, min_=1.0, max_=20.0):
    return Distribution(count=count, sum=sum_, mean=mean, variance=variance, min=min_, max=max_)


def test_first_sample_is_sent_unchanged():
    """Test that every metric of the first sample is reported with its raw value."""
    curr = {
        'hits': Counter(100),
        'queue': Gauge(7),
        'version': Label('1.2'),
        'lat': make_dist(5),
    }

    assert diff_samples(EMPTY_SAMPLE, curr) == curr


def test_unchanged_counter_is_omitted():
    assert diff_samples({'hits': Counter(10)}, {'hits': Counter(10)}) == {}


def test_counter_reports_difference():
    """Test that prev=10, curr=15 reports 5."""
    assert diff_samples({'hits': Counter(10)}, {'hits': Counter(15)}) == {'hits': Counter(5)}


def test_counter_going_backwards_reports_negative_difference():
    assert diff_samples({'hits': Counter(15)}, {'hits': Counter(10)}) == {'hits': Counter(-5)}


def test_gauge_reports_current_value():
    """Test that a changed gauge reports its current reading, not a delta."""
    assert diff_samples({'queue': Gauge(3)}, {'queue': Gauge(8)}) == {'queue': Gauge(8)}
    assert diff_samples({'queue': Gauge(8)}, {'queue': Gauge(8)}) == {}


def test_labels_are_never_reported_after_first_sample():
    assert diff_samples({'v': Label('a')}, {'v': Label('b')}) == {}
    assert diff_samples({'v': Label('a')}, {'v': Label('a')}) == {}


def test_distribution_with_unchanged_count_is_omitted():
    """Test that other field changes do not matter when the count is the same."""
    prev = {'lat': make_dist(5)}
    curr = {'lat': make_dist(5, sum_=99.0, mean=3.0, variance=8.0, min_=0.5, max_=50.0)}

    assert diff_samples(prev, curr) == {}


def test_distribution_reports_count_delta_and_current_fields():
    prev = {'lat': make_dist(5)}
    curr = {'lat': make_dist(8, sum_=80.0, mean=10.0, variance=3.5, min_=0.5, max_=25.0)}

    diff = diff_samples(prev, curr)

    assert diff == {'lat': make_dist(3, sum_=80.0, mean=10.0, variance=3.5, min_=0.5, max_=25.0)}


def test_kind_change_is_skipped():
    """Test that a metric changing kind under the same name produces nothing."""
    assert diff_samples({'m': Gauge(1)}, {'m': Counter(5)}) == {}
    assert diff_metric(Label('x'), make_dist(1)) is None


def test_disappeared_metrics_are_not_reported():
    prev = {'gone': Counter(1), 'kept': Counter(1)}
    curr = {'kept': Counter(2)}

    assert diff_samples(prev, curr) == {'kept': Counter(1)}


def test_identical_samples_produce_empty_diff():
    sample = {
        'hits': Counter(100),
        'queue': Gauge(7),
        'version': Label('1.2'),
        'lat': make_dist(5),
    }

    assert diff_samples(sample, dict(sample)) == {}


def test_inputs_are_not_modified():
    prev = {'hits': Counter(10)}
    curr = {'hits': Counter(15), 'new': Gauge(1)}

    diff_samples(prev, curr)

    assert prev == {'hits': Counter(10)}
    assert curr == {'hits': Counter(15), 'new': Gauge(1)}
