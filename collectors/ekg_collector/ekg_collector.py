import logging
from typing import Any, Dict, Optional

import requests
from retrying import retry

from statsd_sync import config
from statsd_sync.collector import SnapshotSource
from statsd_sync.values import Counter, Distribution, Gauge, Label, Value

logger = logging.getLogger(__name__)


def retry_if_connection_error(exception):
    """Return True if we should retry (in this case when it's a connection error)"""
    return isinstance(exception, (requests.ConnectionError, requests.Timeout))


def parse_value(node: Dict[str, Any]) -> Optional[Value]:
    """
    Convert one ekg JSON leaf into a metric value.

    Args:
        node (dict): A leaf such as {"type": "c", "val": 10}

    Returns:
        Value: The metric value, or None for an unknown type tag

    Raises:
        ValueError: If a known type is missing fields
    """
    metric_type = node['type']
    try:
        if metric_type == 'c':
            return Counter(int(node['val']))
        if metric_type == 'g':
            return Gauge(int(node['val']))
        if metric_type == 'l':
            return Label(str(node['val']))
        if metric_type == 'd':
            return Distribution(
                count=int(node['count']),
                sum=float(node['sum']),
                mean=float(node['mean']),
                variance=float(node['variance']),
                min=float(node['min']),
                max=float(node['max']),
            )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed metric of type {metric_type!r}: {e}")
    return None


def is_leaf(node: Any) -> bool:
    return isinstance(node, dict) and isinstance(node.get('type'), str)


def flatten_document(document: Dict[str, Any]) -> Dict[str, Value]:
    """
    Flatten a nested ekg JSON document into dotted metric names.

    {"rts": {"gc": {"num_gcs": {"type": "c", "val": 3}}}} becomes
    {"rts.gc.num_gcs": Counter(3)}.

    Args:
        document (dict): The decoded JSON document

    Returns:
        dict: Metric name to value

    Raises:
        ValueError: If the document is not a JSON object or a leaf is malformed
    """
    if not isinstance(document, dict):
        raise ValueError(f"Expected a JSON object, got {type(document).__name__}")

    metrics = {}
    stack = [('', document)]
    while stack:
        path, node = stack.pop()
        for key, child in node.items():
            name = f"{path}.{key}" if path else key
            if is_leaf(child):
                value = parse_value(child)
                if value is None:
                    logger.debug("Skipping metric %s with unknown type %s", name, child['type'])
                else:
                    metrics[name] = value
            elif isinstance(child, dict):
                stack.append((name, child))
            else:
                logger.debug("Skipping non-metric entry %s", name)
    return metrics


class EkgCollector(SnapshotSource):
    """Samples a metrics store exposed as ekg JSON over HTTP."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[int] = None
    ):
        """
        Initialize the ekg collector.

        Args:
            url (str, optional): URL of the ekg endpoint. Defaults to config.EKG_URL.
            timeout (float, optional): Request timeout in seconds. Defaults to config.EKG_REQUEST_TIMEOUT.
            max_attempts (int, optional): Attempts per sample on connection errors. Defaults to config.EKG_MAX_ATTEMPTS.
            retry_delay (int, optional): Delay between attempts in ms. Defaults to config.EKG_RETRY_DELAY.
        """
        self.url = url or config.EKG_URL
        self.timeout = float(timeout or config.EKG_REQUEST_TIMEOUT)
        self.max_attempts = int(max_attempts or config.EKG_MAX_ATTEMPTS)
        self.retry_delay = int(retry_delay or config.EKG_RETRY_DELAY)
        self.session = requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    def _fetch(self) -> Dict[str, Any]:
        @retry(
            retry_on_exception=retry_if_connection_error,
            stop_max_attempt_number=self.max_attempts,
            wait_fixed=self.retry_delay
        )
        def _get_document():
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()

        return _get_document()

    def sample(self) -> Dict[str, Value]:
        """
        Fetch and parse the current metrics.

        Returns:
            dict: Metric name to value

        Raises:
            requests.RequestException: If the endpoint cannot be reached after retries
            ValueError: If the response is not a valid ekg document
        """
        try:
            document = self._fetch()
        except requests.RequestException as e:
            logger.error("Failed to fetch metrics from %s: %s", self.url, str(e))
            raise

        metrics = flatten_document(document)
        logger.debug("Sampled %d metrics from %s", len(metrics), self.url)
        return metrics
