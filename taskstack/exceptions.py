"""Exceptions specific to taskstack."""


class TaskStackError(Exception):
    """Base class for taskstack exceptions."""


class ConfigurationError(TaskStackError):
    """Exception raised when a hierarchy is assembled from inconsistent parts.

    These errors are not recoverable at runtime: the aggregate refuses to produce
    a malformed linear system.
    """


class SizeMismatch(ConfigurationError):
    """Exception raised when an element does not share the aggregate's x_size."""

    def __init__(self, owner: str, expected: int, element: str, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{owner} has x_size {expected} but {element} has x_size {actual}."
        )


class DimensionMismatch(ConfigurationError):
    """Exception raised when row or column counts disagree."""


class DuplicateVariableName(ConfigurationError):
    """Exception raised when a variable layout registers the same name twice."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Duplicate variable name '{name}' is not allowed.")


class ConstraintDefinitionError(ConfigurationError):
    """Exception raised when a constraint exposes a malformed representation."""


class TaskDefinitionError(ConfigurationError):
    """Exception raised when a task is ill-defined."""


class InvalidGain(TaskDefinitionError):
    """Exception raised when a task gain is outside [0, 1]."""


class VariableNotFound(TaskStackError, KeyError):
    """Exception raised when querying a variable that was never registered."""

    def __init__(self, name: str, available: tuple):
        self.name = name
        self.available = available
        super().__init__(
            f"Variable '{name}' does not exist. Available variables: {available}."
        )

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0])
