"""Tasks."""

from .aggregated import AggregatedTask
from .task import HessianType, LinearTask, Objective, Task

__all__ = (
    "AggregatedTask",
    "HessianType",
    "LinearTask",
    "Objective",
    "Task",
)
