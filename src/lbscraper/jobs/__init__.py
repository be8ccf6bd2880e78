"""Background jobs."""

from .aggregation import AggregationBusy, AggregationRunner, register_scheduler

__all__ = ["AggregationBusy", "AggregationRunner", "register_scheduler"]
