"""Exceptions raised by the CTO optimizer.

Every error derives from :class:`OptimizationError` so callers can catch
the whole family at once; it is a ``ValueError`` because all of them
describe bad input rather than an internal failure.
"""

from __future__ import annotations


class OptimizationError(ValueError):
    """Base class for rejected optimizer input."""


class InvalidBudgetError(OptimizationError):
    """The requested number of CTO days is not a positive integer."""


class InvalidRangeError(OptimizationError):
    """The date range, a date value or the weekend definition is malformed."""


class InsufficientWorkdaysError(OptimizationError):
    """The range does not contain enough workdays to spend the budget."""


class UnknownStrategyError(OptimizationError):
    """The strategy name does not match any known profile."""
