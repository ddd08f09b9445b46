"""taskstack: composition of tasks and constraints for stack-of-tasks control."""

from .constraints import (
    DEFAULT_POLICY,
    AggregatedConstraint,
    AggregationPolicy,
    Constraint,
    LinearConstraint,
    find_constraint,
    find_constraints,
)
from .exceptions import (
    ConfigurationError,
    ConstraintDefinitionError,
    DimensionMismatch,
    DuplicateVariableName,
    InvalidGain,
    SizeMismatch,
    TaskDefinitionError,
    TaskStackError,
    VariableNotFound,
)
from .qp import build_problem
from .stack import Stack
from .tasks import AggregatedTask, HessianType, LinearTask, Objective, Task
from .variables import AffineExpression, VariableLayout

__version__ = "0.1.0"

__all__ = (
    "AffineExpression",
    "AggregatedConstraint",
    "AggregatedTask",
    "AggregationPolicy",
    "ConfigurationError",
    "Constraint",
    "ConstraintDefinitionError",
    "DEFAULT_POLICY",
    "DimensionMismatch",
    "DuplicateVariableName",
    "HessianType",
    "InvalidGain",
    "LinearConstraint",
    "LinearTask",
    "Objective",
    "SizeMismatch",
    "Stack",
    "Task",
    "TaskDefinitionError",
    "TaskStackError",
    "VariableLayout",
    "VariableNotFound",
    "build_problem",
    "find_constraint",
    "find_constraints",
)
