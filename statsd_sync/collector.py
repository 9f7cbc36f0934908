"""
Base class for snapshot sources, plus a couple of generic sources.
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Set

from .values import Snapshot

logger = logging.getLogger(__name__)


class SnapshotSource(ABC):
    """
    Abstract base class for everything the exporter can sample.

    Subclasses implement sample(), which must return a fully materialized
    mapping of metric name to value. It is called from the exporter's
    background thread once per flush interval, so it must be safe to call
    from that thread while the rest of the application keeps running.
    """

    @abstractmethod
    def sample(self) -> Snapshot:
        """
        Take a point-in-time snapshot of the metrics.

        Returns:
            Mapping: Metric name to value
        """
        pass

    @property
    def name(self) -> str:
        """
        Get the name of the source.

        Returns:
            str: The name of the source (class name by default)
        """
        return self.__class__.__name__


class CallableSource(SnapshotSource):
    """Wraps a plain function returning a snapshot."""

    def __init__(self, func: Callable[[], Snapshot]):
        self.func = func

    def sample(self) -> Snapshot:
        return dict(self.func())

    @property
    def name(self) -> str:
        return getattr(self.func, '__name__', super().name)


class CompositeSource(SnapshotSource):
    """
    Merges the snapshots of several sources into one.

    When two sources report the same metric name, the later source wins.
    """

    def __init__(self, sources: Iterable[SnapshotSource]):
        """
        Args:
            sources (Iterable[SnapshotSource]): The sources to merge, in order
        """
        self.sources: List[SnapshotSource] = list(sources)
        self._warned: Set[str] = set()

    def register_source(self, source: SnapshotSource) -> None:
        """
        Add a source to the end of the list.

        Args:
            source (SnapshotSource): The source to add
        """
        self.sources.append(source)
        logger.debug("Registered source: %s", source.name)

    def sample(self) -> Snapshot:
        merged = {}
        for source in self.sources:
            for name, value in source.sample().items():
                if name in merged and name not in self._warned:
                    logger.warning("Metric %s reported by more than one source, %s wins",
                                   name, source.name)
                    self._warned.add(name)
                merged[name] = value
        return merged
