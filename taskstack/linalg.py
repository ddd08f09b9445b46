"""Stacking and sidedness transformations for linear systems."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from .exceptions import ConstraintDefinitionError, DimensionMismatch

_INF = np.inf
_MOST_NEGATIVE = -np.finfo(np.float64).max


def as_vector(v: Optional[npt.ArrayLike]) -> np.ndarray:
    """Convert to a float vector, mapping ``None`` to the empty vector."""
    if v is None:
        return np.zeros((0,))
    v = np.asarray(v, dtype=np.float64)
    if v.ndim != 1:
        raise DimensionMismatch(
            f"Expected a vector but got an array of shape {v.shape}."
        )
    return v


def as_matrix(M: Optional[npt.ArrayLike], cols: int) -> np.ndarray:
    """Convert to a float matrix, mapping ``None`` to a ``(0, cols)`` matrix."""
    if M is None:
        return np.zeros((0, cols))
    M = np.asarray(M, dtype=np.float64)
    if M.size == 0:
        return np.zeros((0, cols))
    if M.ndim != 2:
        raise DimensionMismatch(
            f"Expected a matrix but got an array of shape {M.shape}."
        )
    return M


def pile(top: np.ndarray, bottom: np.ndarray) -> np.ndarray:
    """Stack two matrices vertically, or concatenate two vectors.

    Args:
        top: Matrix of shape (m, n) or vector of shape (m,).
        bottom: Matrix of shape (k, n) or vector of shape (k,).

    Returns:
        Matrix of shape (m + k, n) or vector of shape (m + k,).

    Raises:
        DimensionMismatch: If the column counts differ, or a vector is piled
            with a matrix.
    """
    if top.ndim != bottom.ndim:
        raise DimensionMismatch(
            f"Cannot pile an array of shape {top.shape} with one of shape "
            f"{bottom.shape}."
        )
    if top.ndim == 1:
        return np.concatenate((top, bottom))
    if top.shape[1] != bottom.shape[1]:
        raise DimensionMismatch(
            f"Cannot pile a matrix with {top.shape[1]} columns on a matrix with "
            f"{bottom.shape[1]} columns."
        )
    return np.vstack((top, bottom))


def pile_all(blocks: Sequence[np.ndarray], cols: int) -> np.ndarray:
    """Stack a sequence of matrices with ``cols`` columns each."""
    out = np.zeros((0, cols))
    for block in blocks:
        out = pile(out, block)
    return out


def flip_sign(A: np.ndarray, b: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    r"""Turn :math:`l \leq A x` into :math:`-A x \leq -l`."""
    return -A, -b


def upper_sentinel(n: int) -> np.ndarray:
    """Upper bound standing for "unbounded above"."""
    return np.full((n,), _INF)


def lower_sentinel(n: int) -> np.ndarray:
    """Lower bound standing for "unbounded below"."""
    return np.full((n,), _MOST_NEGATIVE)


def _check_inequality(A: np.ndarray, lower: np.ndarray, upper: np.ndarray) -> None:
    if lower.size == 0 and upper.size == 0:
        raise ConstraintDefinitionError(
            f"Inequality matrix has {A.shape[0]} rows but no lower or upper bound."
        )
    for name, bound in (("lower", lower), ("upper", upper)):
        if bound.size != 0 and bound.shape[0] != A.shape[0]:
            raise DimensionMismatch(
                f"Inequality matrix has {A.shape[0]} rows but its {name} bound "
                f"has {bound.shape[0]} entries."
            )


def to_bilateral(
    A: np.ndarray, lower: np.ndarray, upper: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    r"""Rewrite an inequality block in the form :math:`l \leq A x \leq u`.

    A missing upper bound becomes :math:`+\infty`, a missing lower bound the most
    negative representable double.

    Returns:
        Triplet :math:`(A, l, u)`.
    """
    _check_inequality(A, lower, upper)
    if upper.size == 0:
        upper = upper_sentinel(A.shape[0])
    elif lower.size == 0:
        lower = lower_sentinel(A.shape[0])
    return A, lower, upper


def to_unilateral(
    A: np.ndarray, lower: np.ndarray, upper: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    r"""Rewrite an inequality block in the form :math:`G x \leq h`.

    Rows bounded only from below are sign-flipped. Rows bounded on both sides are
    split into :math:`A x \leq u` followed by :math:`-A x \leq -l`.

    Returns:
        Pair :math:`(G, h)`.
    """
    _check_inequality(A, lower, upper)
    if upper.size == 0:
        return flip_sign(A, lower)
    if lower.size == 0:
        return A, upper
    A_flipped, lower_flipped = flip_sign(A, lower)
    return pile(A, A_flipped), pile(upper, lower_flipped)


def equality_to_bilateral(
    Aeq: np.ndarray, beq: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    r""":math:`A x = b` becomes :math:`b \leq A x \leq b`."""
    return Aeq, beq, beq


def equality_to_unilateral(
    Aeq: np.ndarray, beq: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    r""":math:`A x = b` becomes :math:`A x \leq b` and :math:`-A x \leq -b`."""
    Aeq_flipped, beq_flipped = flip_sign(Aeq, beq)
    return pile(Aeq, Aeq_flipped), pile(beq, beq_flipped)
