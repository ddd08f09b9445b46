"""All constraints derive from the :class:`Constraint` base class."""

from __future__ import annotations

import abc
import enum
from typing import Iterable, List, Optional, Type, TypeVar

import numpy as np
import numpy.typing as npt

from ..exceptions import ConfigurationError, ConstraintDefinitionError
from ..linalg import as_matrix, as_vector


class AggregationPolicy(enum.IntFlag):
    """How an aggregate normalizes the representations of its children.

    The two flags are independent:

    * ``EQUALITIES_TO_INEQUALITIES``: equality blocks are folded into the
      inequality block instead of the equality block.
    * ``UNILATERAL_TO_BILATERAL``: every inequality row carries both a lower and
      an upper bound. Without this flag, the aggregate only holds rows of the form
      :math:`A x \\leq b` and has no inequality lower bound at all.
    """

    NONE = 0
    EQUALITIES_TO_INEQUALITIES = 1
    UNILATERAL_TO_BILATERAL = 2
    DEFAULT = EQUALITIES_TO_INEQUALITIES | UNILATERAL_TO_BILATERAL

    @classmethod
    def validate(cls, policy: int) -> AggregationPolicy:
        """Return ``policy`` as an :class:`AggregationPolicy`.

        Raises:
            ConfigurationError: If ``policy`` sets bits outside of the two flags.
        """
        if isinstance(policy, bool) or not isinstance(policy, int):
            raise ConfigurationError(
                f"Aggregation policy must be an integer flag. Got {policy!r}."
            )
        if policy & ~int(cls.DEFAULT):
            raise ConfigurationError(f"Invalid aggregation policy {policy}.")
        return cls(policy)


DEFAULT_POLICY = AggregationPolicy.DEFAULT


class Constraint(abc.ABC):
    r"""Abstract base class for linear constraints on the decision vector.

    A constraint holds up to three representations over a decision vector
    :math:`x` of size ``x_size``:

    * box bounds :math:`l \leq x \leq u` (``lower_bound``, ``upper_bound``);
    * equalities :math:`A_{eq} x = b_{eq}` (``Aeq``, ``beq``);
    * inequalities :math:`b_l \leq A_{ineq} x \leq b_u` (``Aineq``,
      ``b_lower_bound``, ``b_upper_bound``), either side of which may be empty.

    An empty array means the representation does not apply. Subclasses recompute
    their representations in :py:meth:`~Constraint.update`.

    Attributes:
        constraint_id: Name of the constraint, used for debugging.
        x_size: Size of the decision vector.
    """

    def __init__(self, constraint_id: str, x_size: int):
        if x_size < 0:
            raise ConfigurationError(
                f"{constraint_id} x_size must be >= 0. Got {x_size}."
            )
        self.constraint_id = constraint_id
        self.x_size = x_size

        self.lower_bound = np.zeros((0,))
        self.upper_bound = np.zeros((0,))
        self.Aeq = np.zeros((0, x_size))
        self.beq = np.zeros((0,))
        self.Aineq = np.zeros((0, x_size))
        self.b_lower_bound = np.zeros((0,))
        self.b_upper_bound = np.zeros((0,))

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(constraint_id={self.constraint_id!r}, "
            f"x_size={self.x_size})"
        )

    @abc.abstractmethod
    def update(self, x: np.ndarray) -> None:
        """Recompute the representations of the constraint.

        Args:
            x: State vector, e.g. the joint configuration of the robot.
        """
        raise NotImplementedError

    def has_bounds(self) -> bool:
        return self.lower_bound.size != 0 or self.upper_bound.size != 0

    def has_equalities(self) -> bool:
        return self.Aeq.shape[0] != 0 or self.beq.size != 0

    def has_inequalities(self) -> bool:
        return (
            self.Aineq.shape[0] != 0
            or self.b_lower_bound.size != 0
            or self.b_upper_bound.size != 0
        )


class LinearConstraint(Constraint):
    """Constraint whose representations are set explicitly.

    The representations do not depend on the state vector: :py:meth:`update` leaves
    them untouched. Use the setters to change them between control cycles.

    Example:

    .. code-block:: python

        joint_limits = LinearConstraint(
            "joint_limits", 7, lower_bound=-np.ones(7), upper_bound=np.ones(7)
        )
    """

    def __init__(
        self,
        constraint_id: str,
        x_size: int,
        lower_bound: Optional[npt.ArrayLike] = None,
        upper_bound: Optional[npt.ArrayLike] = None,
        Aeq: Optional[npt.ArrayLike] = None,
        beq: Optional[npt.ArrayLike] = None,
        Aineq: Optional[npt.ArrayLike] = None,
        b_lower_bound: Optional[npt.ArrayLike] = None,
        b_upper_bound: Optional[npt.ArrayLike] = None,
    ):
        super().__init__(constraint_id, x_size)
        self.set_bounds(lower_bound, upper_bound)
        self.set_equalities(Aeq, beq)
        self.set_inequalities(Aineq, b_lower_bound, b_upper_bound)

    def update(self, x: np.ndarray) -> None:
        del x  # Unused.

    def set_bounds(
        self,
        lower_bound: Optional[npt.ArrayLike],
        upper_bound: Optional[npt.ArrayLike],
    ) -> None:
        """Set the box bounds :math:`l \\leq x \\leq u`.

        Args:
            lower_bound: Vector of shape (x_size,), or None.
            upper_bound: Vector of shape (x_size,), or None.
        """
        lower_bound = as_vector(lower_bound)
        upper_bound = as_vector(upper_bound)
        if (lower_bound.size == 0) != (upper_bound.size == 0):
            raise ConstraintDefinitionError(
                f"{self.constraint_id} box bounds must have both a lower and an "
                "upper side."
            )
        if lower_bound.size != 0 and (
            lower_bound.shape[0] != self.x_size or upper_bound.shape[0] != self.x_size
        ):
            raise ConstraintDefinitionError(
                f"{self.constraint_id} box bounds must have shape ({self.x_size},). "
                f"Got {lower_bound.shape} and {upper_bound.shape}."
            )
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound

    def set_equalities(
        self, Aeq: Optional[npt.ArrayLike], beq: Optional[npt.ArrayLike]
    ) -> None:
        """Set the equalities :math:`A_{eq} x = b_{eq}`."""
        Aeq = as_matrix(Aeq, self.x_size)
        beq = as_vector(beq)
        if Aeq.shape[1] != self.x_size or Aeq.shape[0] != beq.shape[0]:
            raise ConstraintDefinitionError(
                f"{self.constraint_id} equalities must have shapes (m, {self.x_size}) "
                f"and (m,). Got {Aeq.shape} and {beq.shape}."
            )
        self.Aeq = Aeq
        self.beq = beq

    def set_inequalities(
        self,
        Aineq: Optional[npt.ArrayLike],
        b_lower_bound: Optional[npt.ArrayLike] = None,
        b_upper_bound: Optional[npt.ArrayLike] = None,
    ) -> None:
        """Set the inequalities :math:`b_l \\leq A_{ineq} x \\leq b_u`.

        Either bound may be None, meaning the rows are unbounded on that side.
        """
        Aineq = as_matrix(Aineq, self.x_size)
        b_lower_bound = as_vector(b_lower_bound)
        b_upper_bound = as_vector(b_upper_bound)
        rows = Aineq.shape[0]
        if Aineq.shape[1] != self.x_size:
            raise ConstraintDefinitionError(
                f"{self.constraint_id} inequality matrix must have {self.x_size} "
                f"columns. Got {Aineq.shape[1]}."
            )
        if rows > 0 and b_lower_bound.size == 0 and b_upper_bound.size == 0:
            raise ConstraintDefinitionError(
                f"{self.constraint_id} inequalities need a lower or an upper bound."
            )
        for bound in (b_lower_bound, b_upper_bound):
            if bound.size != 0 and bound.shape[0] != rows:
                raise ConstraintDefinitionError(
                    f"{self.constraint_id} inequality bounds must have shape "
                    f"({rows},). Got {bound.shape}."
                )
        self.Aineq = Aineq
        self.b_lower_bound = b_lower_bound
        self.b_upper_bound = b_upper_bound


ConstraintT = TypeVar("ConstraintT", bound=Constraint)


def find_constraints(
    constraints: Iterable[Constraint], constraint_type: Type[ConstraintT]
) -> List[ConstraintT]:
    """Return every constraint of a given type, in order."""
    return [c for c in constraints if isinstance(c, constraint_type)]


def find_constraint(
    constraints: Iterable[Constraint], constraint_type: Type[ConstraintT]
) -> Optional[ConstraintT]:
    """Return the first constraint of a given type, or None if there is none.

    Example:

    .. code-block:: python

        limits = find_constraint(task.constraints, VelocityLimits)
        if limits is not None:
            limits.set_velocity_limits(0.9)
    """
    for c in constraints:
        if isinstance(c, constraint_type):
            return c
    return None
