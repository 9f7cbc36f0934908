"""
Periodically flushes metric changes to a statsd server.

Example usage:

    source = CallableSource(my_store.sample_all)
    statsd = fork_statsd(default_statsd_options(), source)
    ...
    statsd.stop()

The flush interval should be shorter than the interval statsd itself uses to
flush data to its backends.
"""
import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import pytz

from .collector import SnapshotSource
from .delta import diff_samples
from .encoder import encode_metric
from .transport import StatsdTransport
from .values import EMPTY_SAMPLE, DeltaSample

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatsdOptions:
    """
    Options controlling how to reach the statsd server and how often to flush.

    Attributes:
        host: Server hostname or IP address
        port: Server port
        flush_interval: Data push interval, in ms
        debug: Connect the socket and print every line to stderr
        prefix: Prefix added to all metric names
        suffix: Suffix added to all metric names, e.g. the short hostname to
            send per host stats
    """
    host: str = "127.0.0.1"
    port: int = 8125
    flush_interval: int = 1000
    debug: bool = False
    prefix: str = ""
    suffix: str = ""

    def validate(self) -> None:
        """
        Check the options before starting the exporter.

        Raises:
            ValueError: If any option is out of range
        """
        if not self.host:
            raise ValueError("Statsd host must not be empty")
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid statsd port: {self.port}")
        if self.flush_interval <= 0:
            raise ValueError(f"Flush interval must be positive, got {self.flush_interval} ms")


def default_statsd_options() -> StatsdOptions:
    """
    Defaults: host 127.0.0.1, port 8125, flush interval 1000 ms, no debug
    output, no prefix or suffix.
    """
    return StatsdOptions()


def time_us() -> int:
    """Microseconds on the monotonic clock."""
    return int(time.monotonic() * 1000000)


def flush_sample(sample: DeltaSample, transport: StatsdTransport, options: StatsdOptions) -> int:
    """
    Send every line of a sample, one datagram per line.

    Args:
        sample (dict): The metrics to send
        transport (StatsdTransport): Where to send them
        options (StatsdOptions): Supplies the prefix and suffix

    Returns:
        int: Number of lines sent successfully
    """
    sent = 0
    for name, value in sample.items():
        for line in encode_metric(name, value, options.prefix, options.suffix):
            if transport.send(line):
                sent += 1
    return sent


def loop(source: SnapshotSource,
         transport: StatsdTransport,
         options: StatsdOptions,
         stop_event: threading.Event,
         on_flush: Optional[Callable[[int], None]] = None) -> None:
    """
    Sample, diff and flush until stop_event is set.

    The time spent sampling and sending is subtracted from the wait, so
    cycles start every flush_interval ms. When a cycle takes longer than the
    interval the next one starts immediately.

    Args:
        source (SnapshotSource): Where to sample metrics from
        transport (StatsdTransport): Where to send them
        options (StatsdOptions): Exporter options
        stop_event (threading.Event): Set to end the loop
        on_flush (callable, optional): Called with the number of lines sent
            after each cycle
    """
    last_sample = EMPTY_SAMPLE
    interval_us = options.flush_interval * 1000

    while not stop_event.is_set():
        start = time_us()
        sample = source.sample()
        diff = diff_samples(last_sample, sample)
        sent = flush_sample(diff, transport, options)
        end = time_us()

        if on_flush is not None:
            on_flush(sent)

        delay_us = interval_us - (end - start)
        if delay_us <= 0:
            logger.warning("Flush took %.1f ms, longer than the %d ms interval. "
                           "Next flush will start immediately.",
                           (end - start) / 1000.0, options.flush_interval)
            delay_us = 0
        else:
            logger.debug("Flushed %d lines for %d metrics in %.1f ms",
                         sent, len(diff), (end - start) / 1000.0)

        last_sample = sample
        if stop_event.wait(delay_us / 1000000.0):
            break


class Statsd:
    """
    Handle to the statsd sync thread. Created by fork_statsd().

    Stop the sync with stop(). If the loop dies on an unexpected error the
    error is kept in `error` and set on `future`; a clean stop resolves
    `future` with None.
    """

    def __init__(self,
                 source: SnapshotSource,
                 transport: StatsdTransport,
                 options: StatsdOptions,
                 on_error: Optional[Callable[[BaseException], None]] = None):
        self.options = options
        self.error: Optional[BaseException] = None
        self.future: Future = Future()
        self._source = source
        self._transport = transport
        self._on_error = on_error
        self._stop_event = threading.Event()
        self._cycles = 0
        self._last_flush_at: Optional[datetime] = None
        self.thread = threading.Thread(target=self._run, name="statsd-sync", daemon=True)

    @property
    def thread_id(self) -> Optional[int]:
        """Identifier of the sync thread, None before it starts."""
        return self.thread.ident

    @property
    def cycles(self) -> int:
        """Number of completed flush cycles."""
        return self._cycles

    @property
    def last_flush_at(self) -> Optional[datetime]:
        """UTC time the last cycle finished, None before the first one."""
        return self._last_flush_at

    def is_running(self) -> bool:
        return self.thread.is_alive()

    def _record_flush(self, sent: int) -> None:
        self._cycles += 1
        self._last_flush_at = datetime.now(pytz.UTC)

    def _run(self) -> None:
        if not self.future.set_running_or_notify_cancel():
            logger.info("Statsd sync cancelled before it started")
            self._transport.close()
            return
        logger.info("Starting statsd sync every %d ms", self.options.flush_interval)

        error = None
        try:
            loop(self._source, self._transport, self.options, self._stop_event,
                 on_flush=self._record_flush)
        except BaseException as e:
            # SystemExit raised by a source counts as a failure too
            logger.exception("Statsd sync loop failed: %r", e)
            error = e
        finally:
            self._transport.close()

        if error is None:
            logger.info("Statsd sync stopped after %d cycles", self._cycles)
            self.future.set_result(None)
            return

        self.error = error
        self.future.set_exception(error)
        if self._on_error is not None:
            self._on_error(error)

    def start(self) -> None:
        self.thread.start()

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Ask the sync thread to stop and wait for it.

        Args:
            timeout (float, optional): Seconds to wait; None waits until the
                thread exits

        Returns:
            bool: True if the thread has exited
        """
        self._stop_event.set()
        if self.thread is not threading.current_thread() and self.thread.ident is not None:
            self.thread.join(timeout)
        if self.thread.is_alive():
            logger.warning("Statsd sync thread did not stop within %s seconds", timeout)
            return False
        return True

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the sync thread to exit without asking it to stop."""
        self.thread.join(timeout)


def fork_statsd(options: StatsdOptions,
                source: SnapshotSource,
                on_error: Optional[Callable[[BaseException], None]] = None) -> Statsd:
    """
    Start a thread that periodically flushes the metrics of `source` to statsd.

    The server address is resolved and the socket opened before the thread
    starts, so address problems are raised here rather than in the thread.

    Args:
        options (StatsdOptions): Exporter options
        source (SnapshotSource): Where to sample metrics from
        on_error (callable, optional): Called from the sync thread with the
            exception if the loop fails

    Returns:
        Statsd: Handle to the sync thread

    Raises:
        ValueError: If the options are invalid
        OSError: If the server address cannot be resolved or the socket
            cannot be opened
    """
    options.validate()
    transport = StatsdTransport(options.host, options.port, debug=options.debug)
    try:
        statsd = Statsd(source, transport, options, on_error=on_error)
        statsd.start()
    except BaseException:
        transport.close()
        raise
    return statsd
