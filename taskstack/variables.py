"""Named segments of a flat decision vector."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple, Union

import numpy as np
import numpy.typing as npt

from .exceptions import (
    ConfigurationError,
    DimensionMismatch,
    DuplicateVariableName,
    VariableNotFound,
)
from .linalg import pile


@dataclass(frozen=True, eq=False)
class AffineExpression:
    r"""Affine map :math:`x \mapsto M x + q` of the decision vector.

    Attributes:
        M: Matrix of shape (output_size, input_size).
        q: Vector of shape (output_size,).
    """

    M: np.ndarray
    q: np.ndarray

    # Let numpy defer `ndarray @ expression` to __rmatmul__.
    __array_ufunc__ = None

    def __post_init__(self) -> None:
        if self.M.ndim != 2 or self.q.ndim != 1 or self.M.shape[0] != self.q.shape[0]:
            raise DimensionMismatch(
                f"Expected M of shape (n, m) and q of shape (n,) but got "
                f"{self.M.shape} and {self.q.shape}."
            )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(output_size={self.output_size}, "
            f"input_size={self.input_size})"
        )

    @classmethod
    def zero(cls, rows: int, input_size: int) -> AffineExpression:
        return cls(M=np.zeros((rows, input_size)), q=np.zeros((rows,)))

    @property
    def input_size(self) -> int:
        return self.M.shape[1]

    @property
    def output_size(self) -> int:
        return self.M.shape[0]

    def value(self, x: npt.ArrayLike) -> np.ndarray:
        """Evaluate the expression at ``x``."""
        return self.M @ np.asarray(x, dtype=np.float64) + self.q

    def pile(self, other: AffineExpression) -> AffineExpression:
        """Stack two expressions of the same input vector."""
        return AffineExpression(M=pile(self.M, other.M), q=pile(self.q, other.q))

    def _check_same_shape(self, other: AffineExpression) -> None:
        if self.M.shape != other.M.shape:
            raise DimensionMismatch(
                f"Cannot combine affine expressions of shapes {self.M.shape} and "
                f"{other.M.shape}."
            )

    def __add__(self, other: AffineExpression) -> AffineExpression:
        if not isinstance(other, AffineExpression):
            return NotImplemented
        self._check_same_shape(other)
        return AffineExpression(M=self.M + other.M, q=self.q + other.q)

    def __sub__(self, other: AffineExpression) -> AffineExpression:
        if not isinstance(other, AffineExpression):
            return NotImplemented
        self._check_same_shape(other)
        return AffineExpression(M=self.M - other.M, q=self.q - other.q)

    def __neg__(self) -> AffineExpression:
        return AffineExpression(M=-self.M, q=-self.q)

    def __rmul__(self, other: Union[float, np.ndarray]) -> AffineExpression:
        if np.isscalar(other):
            return AffineExpression(M=other * self.M, q=other * self.q)
        return self.__rmatmul__(other)

    def __rmatmul__(self, other: np.ndarray) -> AffineExpression:
        other = np.asarray(other, dtype=np.float64)
        if other.ndim != 2 or other.shape[1] != self.output_size:
            raise DimensionMismatch(
                f"Cannot multiply a matrix of shape {other.shape} with an affine "
                f"expression of output size {self.output_size}."
            )
        return AffineExpression(M=other @ self.M, q=other @ self.q)


class VariableLayout:
    """Layout of named variables inside a flat decision vector.

    Variables are placed one after the other in the order they are given.

    Example:

    .. code-block:: python

        layout = VariableLayout([("qdot", 7), ("tau", 7)])
        tau = layout.get_var("tau")  # tau.value(x) == x[7:14]
    """

    def __init__(self, name_size_pairs: Sequence[Tuple[str, int]]):
        self._offsets: Dict[str, int] = {}
        self._sizes: Dict[str, int] = {}
        self._names: List[str] = []
        size = 0
        for name, var_size in name_size_pairs:
            if name in self._offsets:
                raise DuplicateVariableName(name)
            if var_size < 0:
                raise ConfigurationError(
                    f"Variable '{name}' must have a size >= 0. Got {var_size}."
                )
            self._offsets[name] = size
            self._sizes[name] = var_size
            self._names.append(name)
            size += var_size
        self._size = size

    def __repr__(self) -> str:
        fields = ", ".join(f"{n}={self._sizes[n]}" for n in self._names)
        return f"{self.__class__.__name__}({fields})"

    def __contains__(self, name: object) -> bool:
        return name in self._offsets

    @property
    def size(self) -> int:
        """Total size of the decision vector."""
        return self._size

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._names)

    def _lookup(self, name: str) -> int:
        try:
            return self._offsets[name]
        except KeyError:
            raise VariableNotFound(name, self.names) from None

    def offset(self, name: str) -> int:
        return self._lookup(name)

    def var_size(self, name: str) -> int:
        self._lookup(name)
        return self._sizes[name]

    def get_var(self, name: str) -> AffineExpression:
        """Selection operator of a variable.

        Args:
            name: Name of the variable.

        Returns:
            Expression :math:`(M, q)` such that :math:`M x + q` is the segment of
            the decision vector :math:`x` holding the variable.

        Raises:
            VariableNotFound: If no variable with this name was registered.
        """
        start = self._lookup(name)
        var_size = self._sizes[name]
        M = np.zeros((var_size, self._size))
        M[:, start : start + var_size] = np.eye(var_size)
        return AffineExpression(M=M, q=np.zeros((var_size,)))

    def extract(self, name: str, x: npt.ArrayLike) -> np.ndarray:
        """Extract the segment of ``x`` holding a variable."""
        x = np.asarray(x, dtype=np.float64)
        if x.shape != (self._size,):
            raise DimensionMismatch(
                f"Expected a decision vector of shape ({self._size},) but got "
                f"{x.shape}."
            )
        return self.get_var(name).value(x)
