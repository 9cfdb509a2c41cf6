"""Adapters for external data sources.

- SchedulingAdapter: Load users from the scheduling system for matching
"""

from src.adapters.scheduling_adapter import SchedulingAdapter

__all__ = [
    "SchedulingAdapter",
]
