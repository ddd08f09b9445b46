"""All tasks derive from the :class:`Task` base class."""

from __future__ import annotations

import abc
import enum
from typing import TYPE_CHECKING, List, NamedTuple, Optional, Type

import numpy as np
import numpy.typing as npt

from ..constraints.constraint import Constraint, ConstraintT, find_constraint
from ..exceptions import (
    ConfigurationError,
    InvalidGain,
    SizeMismatch,
    TaskDefinitionError,
)
from ..linalg import as_matrix, as_vector

if TYPE_CHECKING:
    from ..stack import Stack
    from .aggregated import AggregatedTask


class HessianType(enum.Enum):
    """Structure of the Hessian :math:`A^T W A` of a task."""

    UNKNOWN = "unknown"
    ZERO = "zero"
    SEMIDEF = "semidefinite"
    POSDEF = "definite"


class Objective(NamedTuple):
    r"""Quadratic objective of the form :math:`\frac{1}{2} x^T H x + c^T x`."""

    H: np.ndarray
    """Hessian matrix, of shape (x_size, x_size)."""
    c: np.ndarray
    """Linear vector, of shape (x_size,)."""

    def value(self, x: np.ndarray) -> float:
        """Returns the value of the objective at the input vector."""
        return float(0.5 * x.T @ self.H @ x + self.c @ x)


class Task(abc.ABC):
    r"""Abstract base class for tasks.

    A task is a weighted linear least-squares objective over the decision vector
    :math:`x`:

    .. math::

        \min_x \| A x - \lambda b \|_W^2

    where :math:`A \in \mathbb{R}^{k \times n}` is the task matrix, :math:`b` the
    task reference, :math:`W` a symmetric positive semi-definite weight matrix and
    :math:`\lambda \in [0, 1]` a gain on the reference. Subclasses recompute
    :math:`A` and :math:`b` in :py:meth:`~Task._update`.

    A task can carry constraints of its own. They are updated along with the task
    and handed to any solver that accepts per-task constraints.

    Attributes:
        task_id: Name of the task, used for debugging.
        x_size: Size of the decision vector.
        A: Task matrix, of shape (k, x_size).
        b: Task reference, of shape (k,).
        lambda_: Gain on the task reference.
        hessian_type: Structure of the task Hessian.
        constraints: Constraints attached to the task.
    """

    def __init__(self, task_id: str, x_size: int, lambda_: float = 1.0):
        if x_size < 0:
            raise ConfigurationError(f"{task_id} x_size must be >= 0. Got {x_size}.")
        self.task_id = task_id
        self.x_size = x_size
        self.A = np.zeros((0, x_size))
        self.b = np.zeros((0,))
        self.hessian_type = HessianType.UNKNOWN
        self.constraints: List[Constraint] = []
        self._weight: Optional[np.ndarray] = None
        self.set_lambda(lambda_)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(task_id={self.task_id!r}, "
            f"x_size={self.x_size}, rows={self.rows})"
        )

    @property
    def rows(self) -> int:
        return self.A.shape[0]

    @abc.abstractmethod
    def _update(self, x: np.ndarray) -> None:
        """Recompute :math:`A` and :math:`b` at state ``x``."""
        raise NotImplementedError

    def update(self, x: np.ndarray) -> None:
        """Update the task and its constraints at state ``x``.

        Args:
            x: State vector, e.g. the joint configuration of the robot.
        """
        self._update(x)
        for c in self.constraints:
            c.update(x)

    def set_lambda(self, lambda_: float) -> None:
        if not 0.0 <= lambda_ <= 1.0:
            raise InvalidGain("`lambda_` must be in the range [0, 1]")
        self.lambda_ = float(lambda_)

    @property
    def weight(self) -> np.ndarray:
        """Weight matrix of shape (k, k). Identity unless set explicitly."""
        if self._weight is None:
            return np.eye(self.rows)
        return self._weight

    @property
    def has_default_weight(self) -> bool:
        return self._weight is None

    def set_weight(self, weight: npt.ArrayLike) -> None:
        """Set the weight matrix of the task.

        Args:
            weight: Symmetric matrix of shape (k, k), or a vector of shape (k,)
                holding its diagonal.
        """
        weight = np.asarray(weight, dtype=np.float64)
        if weight.ndim == 1:
            weight = np.diag(weight)
        if weight.shape != (self.rows, self.rows):
            raise TaskDefinitionError(
                f"{self.task_id} weight must have shape ({self.rows}, {self.rows}). "
                f"Got {weight.shape}."
            )
        if not np.allclose(weight, weight.T):
            raise TaskDefinitionError(f"{self.task_id} weight must be symmetric")
        self._weight = weight

    def reset_weight(self) -> None:
        """Go back to the identity weight."""
        self._weight = None

    def add_constraint(self, constraint: Constraint) -> Task:
        """Attach a constraint to the task.

        Returns:
            The task itself, so that calls can be chained.
        """
        if constraint.x_size != self.x_size:
            raise SizeMismatch(
                self.task_id, self.x_size, constraint.constraint_id, constraint.x_size
            )
        self.constraints.append(constraint)
        return self

    def find_constraint(
        self, constraint_type: Type[ConstraintT]
    ) -> Optional[ConstraintT]:
        """First attached constraint of a given type, or None."""
        return find_constraint(self.constraints, constraint_type)

    def compute_qp_objective(self) -> Objective:
        r"""Compute the matrix-vector pair :math:`(H, c)` of the QP objective.

        Expanding the task's least-squares cost gives, up to a constant:

        .. math::

            \| A x - \lambda b \|_W^2 = x^T A^T W A x - 2 \lambda b^T W A x

        so that :math:`H = 2 A^T W A` and :math:`c = -2 \lambda A^T W b`. The
        common factor 2 is dropped.

        Returns:
            Pair :math:`(H, c)`.
        """
        W = self.weight
        if W.shape != (self.rows, self.rows):
            raise TaskDefinitionError(
                f"{self.task_id} weight has shape {W.shape} but the task has "
                f"{self.rows} rows."
            )
        WA = W @ self.A
        H = self.A.T @ WA
        c = -self.lambda_ * (WA.T @ self.b)
        return Objective(H, c)

    def __lshift__(self, constraint: Constraint) -> Task:
        return self.add_constraint(constraint)

    def __add__(self, other: Task) -> AggregatedTask:
        """Aggregate two tasks.

        Aggregates with a default weight are flattened into the result, which
        takes over the constraints attached to them. Aggregates with a custom
        weight are kept as single children.
        """
        from .aggregated import AggregatedTask

        if not isinstance(other, Task):
            return NotImplemented
        tasks: List[Task] = []
        own_constraints: List[Constraint] = []
        for t in (self, other):
            if isinstance(t, AggregatedTask) and t.has_default_weight:
                tasks.extend(t.tasks)
                own_constraints.extend(t.own_constraints)
            else:
                tasks.append(t)
        aggregated = AggregatedTask(tasks, self.x_size)
        for c in own_constraints:
            aggregated.add_constraint(c)
        return aggregated

    def __truediv__(self, other: Task) -> Stack:
        from ..stack import Stack

        if not isinstance(other, Task):
            return NotImplemented
        return Stack([self, other])


class LinearTask(Task):
    """Task whose matrix and reference are set explicitly.

    :py:meth:`update` leaves :math:`(A, b)` untouched; use :py:meth:`set_A_b` to
    change them.

    Example:

    .. code-block:: python

        task = LinearTask("postural", np.eye(7), q_ref - q, lambda_=0.3)
    """

    def __init__(
        self,
        task_id: str,
        A: npt.ArrayLike,
        b: npt.ArrayLike,
        lambda_: float = 1.0,
    ):
        A = np.asarray(A, dtype=np.float64)
        if A.ndim != 2:
            raise TaskDefinitionError(
                f"{task_id} matrix must be 2-dimensional. Got shape {A.shape}."
            )
        super().__init__(task_id, A.shape[1], lambda_)
        self.set_A_b(A, b)

    def _update(self, x: np.ndarray) -> None:
        del x  # Unused.

    def set_A_b(self, A: npt.ArrayLike, b: npt.ArrayLike) -> None:
        A = as_matrix(A, self.x_size)
        b = as_vector(b)
        if A.shape[1] != self.x_size or A.shape[0] != b.shape[0]:
            raise TaskDefinitionError(
                f"{self.task_id} expects A of shape (k, {self.x_size}) and b of "
                f"shape (k,). Got {A.shape} and {b.shape}."
            )
        if self._weight is not None and self._weight.shape[0] != A.shape[0]:
            raise TaskDefinitionError(
                f"{self.task_id} weight has shape {self._weight.shape} but the task "
                f"now has {A.shape[0]} rows."
            )
        self.A = A
        self.b = b
