"""Constraints and tasks used across tests."""

import numpy as np

from taskstack import Constraint, Task


class RawConstraint(Constraint):
    """Constraint exposing whatever arrays it is given, without validation."""

    def __init__(self, constraint_id, x_size, **representations):
        super().__init__(constraint_id, x_size)
        for name, value in representations.items():
            setattr(self, name, np.asarray(value, dtype=np.float64))

    def update(self, x):
        del x  # Unused.


class StateBounds(Constraint):
    """Box bounds of half-width ``width`` centered on the state vector."""

    def __init__(self, constraint_id, x_size, width=1.0):
        super().__init__(constraint_id, x_size)
        self.width = width
        self.num_updates = 0

    def update(self, x):
        self.lower_bound = np.asarray(x, dtype=np.float64) - self.width
        self.upper_bound = np.asarray(x, dtype=np.float64) + self.width
        self.num_updates += 1


class StateTask(Task):
    """Task driving the decision vector towards minus the state."""

    def __init__(self, task_id, x_size, lambda_=1.0):
        super().__init__(task_id, x_size, lambda_)
        self.A = np.eye(x_size)
        self.b = np.zeros(x_size)
        self.num_updates = 0

    def _update(self, x):
        self.b = -np.asarray(x, dtype=np.float64)
        self.num_updates += 1


class StateLimits(Constraint):
    """Inequalities ``x - width <= I dx <= x + width`` with bounds set on update."""

    def __init__(self, constraint_id, x_size, width=1.0):
        super().__init__(constraint_id, x_size)
        self.width = width
        self.Aineq = np.eye(x_size)

    def update(self, x):
        self.b_lower_bound = np.asarray(x, dtype=np.float64) - self.width
        self.b_upper_bound = np.asarray(x, dtype=np.float64) + self.width


class TargetTask(Task):
    """Task with a fixed reference and a matrix that is only known after update."""

    def __init__(self, task_id, target):
        target = np.asarray(target, dtype=np.float64)
        super().__init__(task_id, target.shape[0])
        self.b = target

    def _update(self, x):
        self.A = np.diag(np.asarray(x, dtype=np.float64))
