"""Priority-ordered stacks of tasks."""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from .constraints import (
    DEFAULT_POLICY,
    AggregatedConstraint,
    AggregationPolicy,
    Constraint,
)
from .exceptions import ConfigurationError, SizeMismatch
from .tasks import Task


class Stack:
    """Priority-ordered sequence of tasks sharing a set of global bounds.

    Level 0 has the highest priority. How the levels are solved is left to the
    solver; the stack only keeps them and their bounds up to date.

    Stacks are usually written with operators:

    .. code-block:: python

        stack = (right_leg / ((left_arm + right_arm) << self_collision) / postural)
        stack << joint_limits << velocity_limits
        stack.update(q)

    Attributes:
        x_size: Size of the decision vector shared by every level and bound.
        policy: Aggregation policy of the global bounds.
    """

    def __init__(
        self,
        levels: Sequence[Task],
        bounds: Sequence[Constraint] = (),
        policy: int = DEFAULT_POLICY,
    ):
        if not levels:
            raise ConfigurationError(
                f"{self.__class__.__name__} needs at least one task."
            )
        self.x_size = levels[0].x_size
        self.policy = AggregationPolicy.validate(policy)
        self._levels: List[Task] = []
        self._bounds: List[Constraint] = []
        self._aggregated_bounds: Optional[AggregatedConstraint] = None
        for task in levels:
            self.add_level(task)
        for c in bounds:
            self.add_bound(c)

    def __repr__(self) -> str:
        levels = " / ".join(t.task_id for t in self._levels)
        return f"{self.__class__.__name__}({levels})"

    @property
    def levels(self) -> Tuple[Task, ...]:
        return tuple(self._levels)

    @property
    def bounds(self) -> Optional[AggregatedConstraint]:
        """Aggregate of the global bounds, or None if there are no bounds."""
        return self._aggregated_bounds

    def __len__(self) -> int:
        return len(self._levels)

    def __getitem__(self, index: int) -> Task:
        return self._levels[index]

    def __iter__(self) -> Iterator[Task]:
        return iter(self._levels)

    def add_level(self, task: Task) -> Stack:
        """Append a task with a lower priority than every existing level."""
        if task.x_size != self.x_size:
            raise SizeMismatch("stack", self.x_size, task.task_id, task.x_size)
        self._levels.append(task)
        return self

    def add_bound(self, constraint: Constraint) -> Stack:
        """Add a constraint applying to every level of the stack."""
        if constraint.x_size != self.x_size:
            raise SizeMismatch(
                "stack", self.x_size, constraint.constraint_id, constraint.x_size
            )
        self._bounds.append(constraint)
        self._aggregated_bounds = AggregatedConstraint(
            self._bounds, self.x_size, self.policy
        )
        logging.debug(
            "Stack bounds are now '%s'", self._aggregated_bounds.constraint_id
        )
        return self

    def update(self, x: np.ndarray) -> None:
        """Update every level and the global bounds at state ``x``."""
        for task in self._levels:
            task.update(x)
        if self._aggregated_bounds is not None:
            self._aggregated_bounds.update(x)

    def __truediv__(self, other: Union[Task, Stack]) -> Stack:
        # Both operands are left untouched.
        if isinstance(other, Stack):
            return Stack(
                self._levels + other._levels,
                self._bounds + other._bounds,
                self.policy,
            )
        if isinstance(other, Task):
            return Stack(self._levels + [other], self._bounds, self.policy)
        return NotImplemented

    def __rtruediv__(self, other: Task) -> Stack:
        if isinstance(other, Task):
            return Stack([other] + self._levels, self._bounds, self.policy)
        return NotImplemented

    def __lshift__(self, constraint: Constraint) -> Stack:
        if not isinstance(constraint, Constraint):
            return NotImplemented
        return self.add_bound(constraint)
