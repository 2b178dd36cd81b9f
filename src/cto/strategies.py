"""Strategy profiles and the break scoring function.

A break is scored as::

    length * bucket_multiplier * min(efficiency, cap) * position * holiday

where ``efficiency`` is days off per CTO day spent. Four profiles weight
the length buckets differently:

  1. longWeekends       - many 3-4 day weekends
  2. weekLongBreaks     - 5-7 day breaks
  3. extendedVacations  - breaks of 8 days and more
  4. balanced           - a blend that favours nothing too strongly

The numbers below are tuning, not contract; they are kept in one table so
the behaviour of every profile can be read at a glance.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import NamedTuple

from cto.days import CalendarDay
from cto.errors import UnknownStrategyError

# ---------------------------------------------------------------------------
# Length buckets
# ---------------------------------------------------------------------------


class LengthBucket(NamedTuple):
    name: str
    min_length: int
    max_length: int

    def distance(self, length: int) -> int:
        """How many days *length* lies outside this bucket (0 if inside)."""
        if length < self.min_length:
            return self.min_length - length
        if length > self.max_length:
            return length - self.max_length
        return 0


LONG_WEEKEND = LengthBucket("long_weekend", 3, 4)
WEEK_LONG = LengthBucket("week_long", 5, 7)
EXTENDED = LengthBucket("extended", 8, 15)

BUCKETS: tuple[LengthBucket, ...] = (LONG_WEEKEND, WEEK_LONG, EXTENDED)


def bucket_for(length: int) -> LengthBucket | None:
    """Bucket of a break *length*; lengths past 15 count as extended."""
    if length < LONG_WEEKEND.min_length:
        return None
    for bucket in BUCKETS:
        if length <= bucket.max_length:
            return bucket
    return EXTENDED


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class ScoringConstants(NamedTuple):
    """Multipliers shared by every profile."""

    efficiency_cap: float = 2.5
    position_bonus: float = 1.1
    holiday_radius: int = 2
    holiday_proximity: float = 1.3
    holiday_inclusion: float = 1.5
    spacing_penalty: float = 0.5
    overlong_decay: float = 0.97
    blend_falloff: float = 0.6


DEFAULT_CONSTANTS = ScoringConstants()


class StrategyProfile(NamedTuple):
    """Scoring weights and search bounds for one strategy.

    ``weights`` lines up with :data:`BUCKETS`. For a blended profile they are
    blend weights, otherwise plain multipliers.
    """

    name: str
    label: str
    description: str
    weights: tuple[float, float, float]
    blend: bool
    short_multiplier: float
    spacing_window: int
    max_extension: int
    max_bridge: int
    standalone_lengths: tuple[int, ...]
    refine_radius: int


PROFILES: dict[str, StrategyProfile] = {
    "balanced": StrategyProfile(
        name="balanced",
        label="Balanced Mix",
        description="A mix of long weekends and week-long breaks spread through the range.",
        weights=(0.35, 0.35, 0.30),
        blend=True,
        short_multiplier=0.25,
        spacing_window=21,
        max_extension=3,
        max_bridge=8,
        standalone_lengths=(3, 5),
        refine_radius=5,
    ),
    "longWeekends": StrategyProfile(
        name="longWeekends",
        label="Long Weekends",
        description="Many 3-4 day weekends built on Mondays and Fridays.",
        weights=(1.0, 0.9, 0.3),
        blend=False,
        short_multiplier=0.25,
        spacing_window=7,
        max_extension=2,
        max_bridge=4,
        standalone_lengths=(3,),
        refine_radius=3,
    ),
    "weekLongBreaks": StrategyProfile(
        name="weekLongBreaks",
        label="Week-long Breaks",
        description="Breaks of five to seven days, bridged around weekends and holidays.",
        weights=(0.4, 1.0, 0.7),
        blend=False,
        short_multiplier=0.2,
        spacing_window=21,
        max_extension=4,
        max_bridge=10,
        standalone_lengths=(5,),
        refine_radius=5,
    ),
    "extendedVacations": StrategyProfile(
        name="extendedVacations",
        label="Extended Vacations",
        description="Few long vacations of eight days or more.",
        weights=(0.2, 0.5, 1.0),
        blend=False,
        short_multiplier=0.1,
        spacing_window=30,
        max_extension=5,
        max_bridge=15,
        standalone_lengths=(5,),
        refine_radius=7,
    ),
}

DEFAULT_STRATEGY = "balanced"


def get_profile(name: str) -> StrategyProfile:
    """Look up a profile by its strategy name.

    Raises :class:`UnknownStrategyError` for names outside :data:`PROFILES`.
    """
    profile = PROFILES.get(name)
    if profile is None:
        supported = ", ".join(PROFILES)
        raise UnknownStrategyError(f"Unknown strategy {name!r}. Choose from: {supported}")
    return profile


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def bucket_multiplier(
    length: int,
    profile: StrategyProfile,
    constants: ScoringConstants = DEFAULT_CONSTANTS,
) -> float:
    if length < LONG_WEEKEND.min_length:
        return profile.short_multiplier

    if profile.blend:
        return sum(
            weight * constants.blend_falloff ** bucket.distance(length)
            for bucket, weight in zip(BUCKETS, profile.weights, strict=True)
        )

    bucket = bucket_for(length)
    multiplier = profile.weights[BUCKETS.index(bucket)]  # type: ignore[arg-type]
    if length > EXTENDED.max_length:
        multiplier *= constants.overlong_decay ** (length - EXTENDED.max_length)
    return multiplier


def _holiday_bonus(
    days: list[CalendarDay], start: int, end: int, constants: ScoringConstants
) -> float:
    if any(days[i].is_holiday for i in range(start, end + 1)):
        return constants.holiday_inclusion
    lo = max(0, start - constants.holiday_radius)
    hi = min(len(days) - 1, end + constants.holiday_radius)
    nearby = [*range(lo, start), *range(end + 1, hi + 1)]
    if any(days[i].is_holiday for i in nearby):
        return constants.holiday_proximity
    return 1.0


def _touches_weekend(days: list[CalendarDay], first_cto: int, last_cto: int) -> bool:
    before = first_cto > 0 and days[first_cto - 1].is_weekend
    after = last_cto + 1 < len(days) and days[last_cto + 1].is_weekend
    return before or after


def score_range(
    days: list[CalendarDay],
    start: int,
    end: int,
    profile: StrategyProfile,
    constants: ScoringConstants = DEFAULT_CONSTANTS,
) -> float:
    """Score the break ``days[start..end]`` with every workday in it spent as CTO.

    The same function scores a candidate before it is taken and an off run
    of the current allocation: in both cases the CTO days are exactly the
    days of the range that are not off by default. A range without any
    such day scores 0.
    """
    cto = [i for i in range(start, end + 1) if days[i].is_workday]
    if not cto:
        return 0.0

    length = end - start + 1
    efficiency = min(length / len(cto), constants.efficiency_cap)
    score = length * bucket_multiplier(length, profile, constants) * efficiency

    if _touches_weekend(days, cto[0], cto[-1]):
        score *= constants.position_bonus
    score *= _holiday_bonus(days, start, end, constants)
    return score


def spacing_factor(
    start: int,
    end: int,
    others: Iterable[tuple[int, int]],
    profile: StrategyProfile,
    constants: ScoringConstants = DEFAULT_CONSTANTS,
) -> float:
    """Penalty for a break of the same length bucket nearby.

    *others* must be ordered by start; ranges ending before *start* are
    scanned backwards and the scan stops at the first one further away
    than the profile's spacing window.
    """
    bucket = bucket_for(end - start + 1)
    if bucket is None:
        return 1.0

    for other_start, other_end in reversed(list(others)):
        if other_end < start:
            gap = start - other_end
            if gap > profile.spacing_window:
                break
        elif other_start > end:
            gap = other_start - end
        else:
            gap = 0
        if gap <= profile.spacing_window and bucket_for(other_end - other_start + 1) == bucket:
            return constants.spacing_penalty
    return 1.0
