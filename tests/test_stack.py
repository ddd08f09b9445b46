"""Tests for stack.py."""

import numpy as np
from absl.testing import absltest

from taskstack import (
    AggregatedTask,
    AggregationPolicy,
    ConfigurationError,
    LinearConstraint,
    LinearTask,
    SizeMismatch,
    Stack,
)

from .utils import StateBounds, StateTask


class TestStack(absltest.TestCase):
    """Test composition of stacks with operators."""

    def setUp(self):
        self.leg = LinearTask("leg", np.eye(2), np.zeros(2))
        self.left_arm = StateTask("left_arm", 2)
        self.right_arm = StateTask("right_arm", 2)
        self.postural = LinearTask("postural", np.eye(2), np.ones(2))

    def test_division_builds_levels(self):
        stack = self.leg / (self.left_arm + self.right_arm) / self.postural
        self.assertIsInstance(stack, Stack)
        self.assertLen(stack, 3)
        self.assertIs(stack[0], self.leg)
        self.assertIsInstance(stack[1], AggregatedTask)
        self.assertIs(stack[2], self.postural)
        self.assertIsNone(stack.bounds)

    def test_global_bounds(self):
        limits = LinearConstraint("limits", 2, lower_bound=[-1, -1], upper_bound=[1, 1])
        moving = StateBounds("moving", 2, width=0.5)
        stack = (self.leg / self.postural) << limits << moving
        self.assertEqual(stack.bounds.constraint_id, "limits+moving")
        stack.update(np.array([0.75, 0.0]))
        np.testing.assert_array_equal(stack.bounds.lower_bound, [0.25, -0.5])
        np.testing.assert_array_equal(stack.bounds.upper_bound, [1.0, 0.5])

    def test_update_reaches_every_level(self):
        arms = (self.left_arm + self.right_arm) << StateBounds("collision", 2)
        stack = self.leg / arms
        stack.update(np.array([1.0, -1.0]))
        self.assertEqual(self.left_arm.num_updates, 1)
        self.assertEqual(self.right_arm.num_updates, 1)
        np.testing.assert_array_equal(arms.b, [-1.0, 1.0, -1.0, 1.0])
        np.testing.assert_array_equal(arms.constraints[0].upper_bound, [2.0, 0.0])

    def test_policy_is_used_for_bounds(self):
        eq = LinearConstraint("eq", 2, Aeq=[[1.0, 1.0]], beq=[0.0])
        stack = Stack([self.leg], [eq], policy=AggregationPolicy.NONE)
        np.testing.assert_array_equal(stack.bounds.Aeq, [[1.0, 1.0]])

    def test_concatenating_stacks(self):
        first = self.leg / self.postural
        second = Stack([self.left_arm], [LinearConstraint("empty", 2)])
        stack = first / second
        self.assertEqual(stack.levels, (self.leg, self.postural, self.left_arm))
        self.assertEqual(stack.bounds.constraint_id, "empty")

    def test_division_leaves_operands_untouched(self):
        limits = LinearConstraint("limits", 2, lower_bound=[-1, -1], upper_bound=[1, 1])
        base = (self.leg / self.postural) << limits
        with_arm = base / self.left_arm
        with_stack = base / Stack([self.right_arm])
        self.assertIsNot(with_arm, base)
        self.assertLen(base, 2)
        self.assertEqual(with_arm.levels, (self.leg, self.postural, self.left_arm))
        self.assertEqual(with_stack.levels, (self.leg, self.postural, self.right_arm))
        self.assertEqual(with_arm.bounds.constraint_id, "limits")
        self.assertIsNot(with_arm.bounds, base.bounds)

    def test_task_over_stack(self):
        tail = self.left_arm / self.postural
        stack = self.leg / tail
        self.assertIsInstance(stack, Stack)
        self.assertEqual(stack.levels, (self.leg, self.left_arm, self.postural))
        self.assertLen(tail, 2)

    def test_empty_stack_throws(self):
        with self.assertRaises(ConfigurationError):
            Stack([])

    def test_size_mismatch_throws(self):
        with self.assertRaises(SizeMismatch):
            self.leg / StateTask("wide", 3)
        with self.assertRaises(SizeMismatch):
            Stack([self.leg]) << LinearConstraint("wide", 3)


if __name__ == "__main__":
    absltest.main()
