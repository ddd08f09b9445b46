"""Linear constraints on the decision vector."""

from .aggregated import AggregatedConstraint
from .constraint import (
    DEFAULT_POLICY,
    AggregationPolicy,
    Constraint,
    LinearConstraint,
    find_constraint,
    find_constraints,
)

__all__ = (
    "AggregatedConstraint",
    "AggregationPolicy",
    "Constraint",
    "DEFAULT_POLICY",
    "LinearConstraint",
    "find_constraint",
    "find_constraints",
)
