"""CTO Planner.

Place a fixed number of paid time off (CTO) days around weekends,
holidays and other days off to get the longest, best-placed breaks.
"""

from cto.breaks import Break, OptimizationResult, OptimizationStats
from cto.days import CalendarDay, NamedDate, RecurringDayOff, expand_recurring
from cto.errors import (
    InsufficientWorkdaysError,
    InvalidBudgetError,
    InvalidRangeError,
    OptimizationError,
    UnknownStrategyError,
)
from cto.holidays import get_holidays
from cto.optimizer import CTOOptimizer, optimize
from cto.strategies import PROFILES, StrategyProfile

__all__ = [
    "PROFILES",
    "Break",
    "CTOOptimizer",
    "CalendarDay",
    "InsufficientWorkdaysError",
    "InvalidBudgetError",
    "InvalidRangeError",
    "NamedDate",
    "OptimizationError",
    "OptimizationResult",
    "OptimizationStats",
    "RecurringDayOff",
    "StrategyProfile",
    "UnknownStrategyError",
    "expand_recurring",
    "get_holidays",
    "optimize",
]
