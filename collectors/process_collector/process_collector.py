import logging
import os
from typing import Dict, Optional

import psutil

from statsd_sync.collector import SnapshotSource
from statsd_sync.values import Counter, Gauge, Label, Value

logger = logging.getLogger(__name__)


class ProcessCollector(SnapshotSource):
    """Collector for the resource usage of a process (this one by default)."""

    def __init__(self, namespace: str = 'process', pid: Optional[int] = None):
        """
        Args:
            namespace (str): Prefix for the metric names
            pid (int, optional): Process to watch. Defaults to the current process.
        """
        self.namespace = namespace
        self.process = psutil.Process(int(pid) if pid else os.getpid())
        # First call primes psutil's CPU accounting and always returns 0.0
        self.process.cpu_percent(interval=None)

    def _name(self, metric: str) -> str:
        return f"{self.namespace}.{metric}" if self.namespace else metric

    def sample(self) -> Dict[str, Value]:
        """
        Collect process metrics.

        Returns:
            dict: Memory and thread gauges, CPU time and context switch counters
        """
        with self.process.oneshot():
            memory = self.process.memory_info()
            cpu_times = self.process.cpu_times()
            ctx = self.process.num_ctx_switches()
            num_threads = self.process.num_threads()
            cpu_percent = self.process.cpu_percent(interval=None)

        return {
            self._name('pid'): Label(str(self.process.pid)),
            self._name('rss_bytes'): Gauge(memory.rss),
            self._name('vms_bytes'): Gauge(memory.vms),
            self._name('num_threads'): Gauge(num_threads),
            self._name('cpu_percent'): Gauge(int(round(cpu_percent))),
            self._name('cpu_user_ms'): Counter(int(cpu_times.user * 1000)),
            self._name('cpu_system_ms'): Counter(int(cpu_times.system * 1000)),
            self._name('ctx_switches_voluntary'): Counter(ctx.voluntary),
            self._name('ctx_switches_involuntary'): Counter(ctx.involuntary),
        }


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    for name, value in sorted(ProcessCollector().sample().items()):
        print("%s = %r" % (name, value))
