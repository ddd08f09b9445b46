"""Aggregation of several tasks into one weighted task."""

from __future__ import annotations

import logging
from typing import Iterator, List, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from ..constraints.constraint import Constraint
from ..exceptions import ConfigurationError, DimensionMismatch, SizeMismatch
from ..linalg import pile
from .task import HessianType, Task


class AggregatedTask(Task):
    r"""Merge a list of tasks into a single task.

    Each child task :math:`i` contributes the rows :math:`W_i A_i` to the merged
    matrix and :math:`\lambda_i W_i b_i` to the merged reference, so that the
    merged task has a unit gain and, by default, an identity weight. The merged
    constraint list is the concatenation of the children's constraint lists, in
    order and without removing duplicates, followed by the constraints attached to
    the aggregate itself.

    Example:

    .. code-block:: python

        arms = AggregatedTask([left_arm, right_arm], x_size=model.nv)
        arms.update(q)

        # Equivalently:
        arms = left_arm + right_arm
    """

    def __init__(self, tasks: Sequence[Task], x_size: int):
        self._setup(tasks, x_size)
        self.generate_all()

    @classmethod
    def from_state(cls, tasks: Sequence[Task], x: npt.ArrayLike) -> AggregatedTask:
        """Build the aggregate by updating its children at state ``x``.

        The children are merged only after this first update.
        """
        x = np.asarray(x, dtype=np.float64)
        aggregated = cls.__new__(cls)
        aggregated._setup(tasks, x.shape[0])
        aggregated.update(x)
        return aggregated

    def _setup(self, tasks: Sequence[Task], x_size: int) -> None:
        self._tasks: List[Task] = list(tasks)
        if not self._tasks:
            raise ConfigurationError(
                f"{self.__class__.__name__} needs at least one task."
            )
        super().__init__("+".join(t.task_id for t in self._tasks), x_size)
        self._own_constraints: List[Constraint] = []
        self.check_sizes()
        logging.debug(
            "Aggregating %d tasks into '%s'", len(self._tasks), self.task_id
        )

    @property
    def tasks(self) -> Tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def own_constraints(self) -> Tuple[Constraint, ...]:
        """Constraints attached to the aggregate itself rather than its children."""
        return tuple(self._own_constraints)

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    def check_sizes(self) -> None:
        """Check that every child task shares the aggregate's decision vector size.

        Raises:
            SizeMismatch: If a child has a different ``x_size``.
        """
        for t in self._tasks:
            if t.x_size != self.x_size:
                raise SizeMismatch(self.task_id, self.x_size, t.task_id, t.x_size)

    def add_constraint(self, constraint: Constraint) -> Task:
        super().add_constraint(constraint)
        self._own_constraints.append(constraint)
        return self

    def _update(self, x: np.ndarray) -> None:
        for t in self._tasks:
            t.update(x)
        for c in self._own_constraints:
            c.update(x)
        self.generate_all()

    def update(self, x: np.ndarray) -> None:
        # Child tasks update their own constraints.
        self._update(x)

    def generate_all(self) -> None:
        """Recompute the merged task from the current state of the children."""
        A = np.zeros((0, self.x_size))
        b = np.zeros((0,))
        constraints: List[Constraint] = []
        for t in self._tasks:
            W = t.weight
            if W.shape != (t.rows, t.rows):
                raise DimensionMismatch(
                    f"{t.task_id} weight has shape {W.shape} but the task has "
                    f"{t.rows} rows."
                )
            A = pile(A, W @ t.A)
            b = pile(b, t.lambda_ * (W @ t.b))
            constraints.extend(t.constraints)
        constraints.extend(self._own_constraints)

        if self._weight is not None and self._weight.shape[0] != A.shape[0]:
            raise DimensionMismatch(
                f"{self.task_id} weight was set for {self._weight.shape[0]} rows but "
                f"the merged task now has {A.shape[0]} rows."
            )
        if self._weight is None and A.shape[0] != self.A.shape[0]:
            logging.debug(
                "Resizing identity weight of '%s' to %d rows", self.task_id, A.shape[0]
            )

        self.A = A
        self.b = b
        self.constraints = constraints
        self.hessian_type = HessianType.SEMIDEF
