"""Aggregation of several constraints into one."""

from __future__ import annotations

import logging
from typing import Iterator, List, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from ..exceptions import ConfigurationError, DimensionMismatch, SizeMismatch
from ..linalg import (
    equality_to_bilateral,
    equality_to_unilateral,
    pile,
    to_bilateral,
    to_unilateral,
)
from .constraint import DEFAULT_POLICY, AggregationPolicy, Constraint


def concatenate_constraint_ids(constraints: Sequence[Constraint]) -> str:
    return "+".join(c.constraint_id for c in constraints)


class AggregatedConstraint(Constraint):
    """Merge a list of constraints into a single constraint.

    The merged box bounds are the intersection of the children's boxes. Equalities
    and inequalities are stacked row-wise after being normalized according to the
    aggregation policy (see :class:`~.AggregationPolicy`).

    Children are shared, not owned: the aggregate only ever calls their
    :py:meth:`~.Constraint.update` method and reads their representations.

    Example:

    .. code-block:: python

        bounds = AggregatedConstraint(
            [joint_limits, velocity_limits, self_collision],
            x_size=model.nv,
            policy=AggregationPolicy.UNILATERAL_TO_BILATERAL,
        )
        bounds.update(q)
        G, h = bounds.Aineq, bounds.b_upper_bound
    """

    def __init__(
        self,
        constraints: Sequence[Constraint],
        x_size: int,
        policy: int = DEFAULT_POLICY,
    ):
        """Build the aggregate and merge the current state of its children.

        Args:
            constraints: Constraints to merge, at least one.
            x_size: Size of the decision vector, shared by every child.
            policy: Aggregation policy.

        Raises:
            ConfigurationError: If ``constraints`` is empty, ``policy`` is invalid,
                or the children are mutually inconsistent.
        """
        self._setup(constraints, x_size, policy)
        self.generate_all()

    @classmethod
    def from_state(
        cls,
        constraints: Sequence[Constraint],
        x: npt.ArrayLike,
        policy: int = DEFAULT_POLICY,
    ) -> AggregatedConstraint:
        """Build the aggregate by updating its children at state ``x``.

        The size of the decision vector is taken to be the size of ``x``. The
        children are merged only after this first update, so they may expose
        incomplete representations until then.
        """
        x = np.asarray(x, dtype=np.float64)
        aggregated = cls.__new__(cls)
        aggregated._setup(constraints, x.shape[0], policy)
        aggregated.update(x)
        return aggregated

    def _setup(
        self, constraints: Sequence[Constraint], x_size: int, policy: int
    ) -> None:
        self._constraints: List[Constraint] = list(constraints)
        if not self._constraints:
            raise ConfigurationError(
                f"{self.__class__.__name__} needs at least one constraint."
            )
        self.policy = AggregationPolicy.validate(policy)
        super().__init__(concatenate_constraint_ids(self._constraints), x_size)
        self.check_sizes()
        logging.debug(
            "Aggregating %d constraints into '%s' with policy %s",
            len(self._constraints),
            self.constraint_id,
            self.policy,
        )

    @property
    def constraints(self) -> Tuple[Constraint, ...]:
        return tuple(self._constraints)

    def __len__(self) -> int:
        return len(self._constraints)

    def __iter__(self) -> Iterator[Constraint]:
        return iter(self._constraints)

    @property
    def bilateral(self) -> bool:
        return bool(self.policy & AggregationPolicy.UNILATERAL_TO_BILATERAL)

    @property
    def equalities_to_inequalities(self) -> bool:
        return bool(self.policy & AggregationPolicy.EQUALITIES_TO_INEQUALITIES)

    def check_sizes(self) -> None:
        """Check that every child shares the aggregate's decision vector size.

        Raises:
            SizeMismatch: If a child has a different ``x_size``.
        """
        for c in self._constraints:
            if c.x_size != self.x_size:
                raise SizeMismatch(
                    self.constraint_id, self.x_size, c.constraint_id, c.x_size
                )

    def update(self, x: np.ndarray) -> None:
        for c in self._constraints:
            c.update(x)
        self.generate_all()

    def generate_all(self) -> None:
        """Recompute the merged representations from the children.

        Must be called after every update of the children. The children are not
        modified.

        Raises:
            ConfigurationError: If the children expose representations that cannot
                be merged into a well-formed linear system. The merged state is
                left unchanged in that case.
        """
        n = self.x_size
        lower_bound = np.zeros((0,))
        upper_bound = np.zeros((0,))
        Aeq = np.zeros((0, n))
        beq = np.zeros((0,))
        Aineq = np.zeros((0, n))
        b_lower_bound = np.zeros((0,))
        b_upper_bound = np.zeros((0,))

        for c in self._constraints:
            # Box bounds: intersection of the boxes.
            if c.has_bounds():
                self._check_box(c)
                if upper_bound.size == 0:
                    lower_bound = np.array(c.lower_bound, dtype=np.float64)
                    upper_bound = np.array(c.upper_bound, dtype=np.float64)
                else:
                    lower_bound = np.maximum(lower_bound, c.lower_bound)
                    upper_bound = np.minimum(upper_bound, c.upper_bound)

            if c.has_equalities():
                self._check_rows(c, c.Aeq, c.beq, "equality")
                if not self.equalities_to_inequalities:
                    Aeq = pile(Aeq, c.Aeq)
                    beq = pile(beq, c.beq)
                elif self.bilateral:
                    G, lower, upper = equality_to_bilateral(c.Aeq, c.beq)
                    Aineq = pile(Aineq, G)
                    b_lower_bound = pile(b_lower_bound, lower)
                    b_upper_bound = pile(b_upper_bound, upper)
                else:
                    G, h = equality_to_unilateral(c.Aeq, c.beq)
                    Aineq = pile(Aineq, G)
                    b_upper_bound = pile(b_upper_bound, h)

            if c.has_inequalities():
                if c.Aineq.shape[0] == 0:
                    raise DimensionMismatch(
                        f"{c.constraint_id} has inequality bounds but no inequality "
                        "rows."
                    )
                self._check_columns(c, c.Aineq, "inequality")
                if self.bilateral:
                    G, lower, upper = to_bilateral(
                        c.Aineq, c.b_lower_bound, c.b_upper_bound
                    )
                    Aineq = pile(Aineq, G)
                    b_lower_bound = pile(b_lower_bound, lower)
                    b_upper_bound = pile(b_upper_bound, upper)
                else:
                    G, h = to_unilateral(c.Aineq, c.b_lower_bound, c.b_upper_bound)
                    Aineq = pile(Aineq, G)
                    b_upper_bound = pile(b_upper_bound, h)

        self._check_consistency(
            lower_bound, upper_bound, Aeq, beq, Aineq, b_lower_bound, b_upper_bound
        )

        self.lower_bound = lower_bound
        self.upper_bound = upper_bound
        self.Aeq = Aeq
        self.beq = beq
        self.Aineq = Aineq
        self.b_lower_bound = b_lower_bound
        self.b_upper_bound = b_upper_bound

    # Helper functions.

    def _check_box(self, c: Constraint) -> None:
        expected = (self.x_size,)
        if c.lower_bound.shape != expected or c.upper_bound.shape != expected:
            raise DimensionMismatch(
                f"{c.constraint_id} box bounds must have shape ({self.x_size},). "
                f"Got {c.lower_bound.shape} and {c.upper_bound.shape}."
            )

    def _check_columns(self, c: Constraint, A: np.ndarray, kind: str) -> None:
        if A.ndim != 2 or A.shape[1] != self.x_size:
            raise DimensionMismatch(
                f"{c.constraint_id} {kind} matrix must have {self.x_size} columns. "
                f"Got shape {A.shape}."
            )

    def _check_rows(
        self, c: Constraint, A: np.ndarray, b: np.ndarray, kind: str
    ) -> None:
        self._check_columns(c, A, kind)
        if A.shape[0] != b.shape[0]:
            raise DimensionMismatch(
                f"{c.constraint_id} {kind} matrix has {A.shape[0]} rows but its "
                f"right-hand side has {b.shape[0]} entries."
            )

    def _check_consistency(
        self,
        lower_bound: np.ndarray,
        upper_bound: np.ndarray,
        Aeq: np.ndarray,
        beq: np.ndarray,
        Aineq: np.ndarray,
        b_lower_bound: np.ndarray,
        b_upper_bound: np.ndarray,
    ) -> None:
        n = self.x_size
        for name, bound in (("lower", lower_bound), ("upper", upper_bound)):
            if bound.size not in (0, n):
                raise DimensionMismatch(
                    f"{self.constraint_id} merged {name} bound has {bound.size} "
                    f"entries, expected 0 or {n}."
                )
        if Aeq.shape[0] != beq.shape[0] or (Aeq.shape[0] > 0 and Aeq.shape[1] != n):
            raise DimensionMismatch(
                f"{self.constraint_id} merged equalities have shapes {Aeq.shape} "
                f"and {beq.shape}."
            )
        if Aineq.shape[0] != b_upper_bound.shape[0] or (
            Aineq.shape[0] > 0 and Aineq.shape[1] != n
        ):
            raise DimensionMismatch(
                f"{self.constraint_id} merged inequalities have shapes {Aineq.shape} "
                f"and {b_upper_bound.shape}."
            )
        expected_lower = Aineq.shape[0] if self.bilateral else 0
        if b_lower_bound.shape[0] != expected_lower:
            raise DimensionMismatch(
                f"{self.constraint_id} merged inequality lower bound has "
                f"{b_lower_bound.shape[0]} entries, expected {expected_lower}."
            )
