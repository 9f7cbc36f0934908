from .process_collector import ProcessCollector

__all__ = ['ProcessCollector']
