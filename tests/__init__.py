"""Test package for goal-lights."""
