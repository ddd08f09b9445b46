"""Hand aggregated tasks and constraints over to a QP solver."""

from typing import List, Optional, Tuple

import numpy as np
import qpsolvers

from .constraints import AggregatedConstraint, AggregationPolicy, Constraint
from .tasks import Task

_MAX_FLOAT = np.finfo(np.float64).max


def _drop_unbounded_rows(
    G: np.ndarray, h: np.ndarray
) -> Tuple[Optional[np.ndarray], Optional[np.ndarray]]:
    keep = h < _MAX_FLOAT
    if not np.any(keep):
        return None, None
    return G[keep], h[keep]


def build_problem(
    task: Task,
    constraint: Optional[Constraint] = None,
) -> qpsolvers.Problem:
    r"""Build the quadratic program of a task and its constraints.

    The quadratic program is defined as:

    .. math::

        \begin{align*}
            \min_{x} & \frac{1}{2} x^T H x + c^T x \\
            \text{s.t.} \quad & G x \leq h \\
                              & A x = b \\
                              & lb \leq x \leq ub
        \end{align*}

    where :math:`(H, c)` is the task objective. The constraints attached to the
    task and ``constraint`` are merged with :class:`~.AggregatedConstraint`.
    Inequality rows that are unbounded (infinite right-hand side) are dropped.

    Args:
        task: Task providing the objective. Usually an aggregated task.
        constraint: Additional constraint, e.g. the global bounds of a stack.

    Returns:
        Quadratic program, ready to be passed to ``qpsolvers.solve_problem``.
    """
    P, q = task.compute_qp_objective()

    constraints: List[Constraint] = list(task.constraints)
    if constraint is not None:
        constraints.append(constraint)
    if not constraints:
        return qpsolvers.Problem(P, q)

    merged = AggregatedConstraint(constraints, task.x_size, AggregationPolicy.NONE)
    G: Optional[np.ndarray] = None
    h: Optional[np.ndarray] = None
    if merged.Aineq.shape[0] > 0:
        G, h = _drop_unbounded_rows(merged.Aineq, merged.b_upper_bound)
    A: Optional[np.ndarray] = None
    b: Optional[np.ndarray] = None
    if merged.Aeq.shape[0] > 0:
        A, b = merged.Aeq, merged.beq
    lb: Optional[np.ndarray] = None
    ub: Optional[np.ndarray] = None
    if merged.has_bounds():
        lb, ub = merged.lower_bound, merged.upper_bound
    return qpsolvers.Problem(P, q, G, h, A, b, lb, ub)
