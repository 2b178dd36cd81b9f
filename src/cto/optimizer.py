"""CTO Optimizer

Spend a fixed number of CTO (paid time off) days inside a date range so
that, together with weekends, holidays, company days off and days already
booked, they form the best possible breaks.

The pipeline runs in fixed stages:

  1. Calendar      - one record per date, off-by-default days flagged
  2. Candidates    - extensions, bridges and standalone runs, scored
  3. Selection     - greedy pick of non-overlapping candidates
  4. Budget repair - add or remove days until exactly the budget is spent
  5. Refinement    - hill-climb by moving single CTO days
  6. Extraction    - breaks and statistics of the final calendar

Given the same input the result is always the same: the engine uses no
randomness and never reads the clock.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable

from cto.breaks import OptimizationResult, compute_stats, extract_breaks, mark_breaks
from cto.candidates import KIND_ORDER, BreakCandidate, generate_candidates
from cto.days import (
    DEFAULT_WEEKEND,
    CalendarDay,
    DateLike,
    build_calendar,
    count_workdays,
    find_off_blocks,
    normalize_weekend,
    resolve_range,
)
from cto.errors import InsufficientWorkdaysError, InvalidBudgetError
from cto.strategies import (
    DEFAULT_CONSTANTS,
    DEFAULT_STRATEGY,
    ScoringConstants,
    get_profile,
    score_range,
    spacing_factor,
)

logger = logging.getLogger(__name__)

DEFAULT_REFINE_PASSES = 10

# Minimum gain for a refinement move to count as an improvement.
EPS = 1e-9


class CTOOptimizer:
    """Places CTO days so they extend or join existing days off.

    Weekends and holidays already form short blocks of days off. Spending a
    few workdays next to or between those blocks turns them into much longer
    breaks; the strategy profile decides which break lengths are worth most.

    Input is validated here, before any work: a non-positive budget raises
    :class:`InvalidBudgetError`, a malformed range or weekend raises
    :class:`InvalidRangeError`, and a budget larger than the number of
    workdays raises :class:`InsufficientWorkdaysError`.
    """

    def __init__(
        self,
        number_of_days: int,
        strategy: str = DEFAULT_STRATEGY,
        *,
        year: int | None = None,
        start_date: DateLike | None = None,
        end_date: DateLike | None = None,
        weekend_days: Iterable[int] = DEFAULT_WEEKEND,
        holidays: Iterable[object] = (),
        company_days_off: Iterable[object] = (),
        pre_booked_days: Iterable[object] = (),
        constants: ScoringConstants = DEFAULT_CONSTANTS,
        refine_passes: int = DEFAULT_REFINE_PASSES,
    ):
        if isinstance(number_of_days, bool) or not isinstance(number_of_days, int):
            raise InvalidBudgetError(
                f"Number of CTO days must be an integer, got {number_of_days!r}."
            )
        if number_of_days <= 0:
            raise InvalidBudgetError(
                f"Number of CTO days must be positive, got {number_of_days}."
            )

        self.number_of_days = number_of_days
        self.profile = get_profile(strategy)
        self.constants = constants
        self.refine_passes = refine_passes

        self.date_range = resolve_range(year, start_date, end_date)
        self.weekend_days = normalize_weekend(weekend_days)
        self.days: list[CalendarDay] = build_calendar(
            self.date_range,
            self.weekend_days,
            holidays=holidays,
            company_days_off=company_days_off,
            pre_booked_days=pre_booked_days,
        )

        self.available_workdays = count_workdays(self.days)
        if number_of_days > self.available_workdays:
            raise InsufficientWorkdaysError(
                f"Cannot place {number_of_days} CTO days: only "
                f"{self.available_workdays} workdays between "
                f"{self.date_range.start.isoformat()} and {self.date_range.end.isoformat()}."
            )

    @property
    def strategy(self) -> str:
        return self.profile.name

    # ------------------------------------------------------------------
    # Allocation helpers
    # ------------------------------------------------------------------

    def _cto_indices(self) -> list[int]:
        return [i for i, d in enumerate(self.days) if d.is_cto]

    def _off_runs(self) -> list[tuple[int, int]]:
        """Maximal runs of off days that contain at least one CTO day."""
        runs: list[tuple[int, int]] = []
        start: int | None = None
        has_cto = False
        for i, day in enumerate(self.days):
            if day.is_off:
                if start is None:
                    start, has_cto = i, False
                has_cto = has_cto or day.is_cto
            elif start is not None:
                if has_cto:
                    runs.append((start, i - 1))
                start = None
        if start is not None and has_cto:
            runs.append((start, len(self.days) - 1))
        return runs

    def _run_length_at(self, index: int) -> int:
        """Length of the off run containing *index*."""
        start = end = index
        while start > 0 and self.days[start - 1].is_off:
            start -= 1
        while end + 1 < len(self.days) and self.days[end + 1].is_off:
            end += 1
        return end - start + 1

    def _allocation_score(self) -> float:
        """Total score of the current allocation.

        Each off run holding a CTO day is scored as a break, then penalised
        if an earlier run of the same length bucket sits within the spacing
        window.
        """
        total = 0.0
        scored: list[tuple[int, int]] = []
        for start, end in self._off_runs():
            score = score_range(self.days, start, end, self.profile, self.constants)
            total += score * spacing_factor(start, end, scored, self.profile, self.constants)
            scored.append((start, end))
        return total

    def _placement_score(self, index: int) -> int:
        days = self.days
        prev_off = index > 0 and days[index - 1].is_off
        next_off = index + 1 < len(days) and days[index + 1].is_off
        next_to_weekend = (index > 0 and days[index - 1].is_weekend) or (
            index + 1 < len(days) and days[index + 1].is_weekend
        )

        score = 1
        if prev_off:
            score += 2
        if next_off:
            score += 2
        if next_to_weekend:
            score += 1
        if not prev_off and not next_off:
            score -= 1
        return score

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def _select(self, candidates: list[BreakCandidate]) -> None:
        """Greedily accept the best remaining candidate until the budget runs out.

        A candidate is eligible while its CTO days fit the remaining budget
        and its range neither overlaps nor touches an accepted one. Two
        touching ranges would merge into a single break that neither score
        describes. Scores are re-weighted for spacing against the breaks
        accepted so far.
        """
        remaining = self.number_of_days
        accepted: list[tuple[int, int]] = []
        pool = [c for c in candidates if c.cto_days_used <= remaining]

        def rank(c: BreakCandidate) -> tuple[float, int, int, int]:
            weighted = c.score * spacing_factor(
                c.start, c.end, accepted, self.profile, self.constants
            )
            return (weighted, -c.start, -c.cto_days_used, -KIND_ORDER[c.kind])

        while pool and remaining > 0:
            best = max(pool, key=rank)
            for i in best.cto_indices:
                self.days[i].is_cto = True
            remaining -= best.cto_days_used
            accepted.append((best.start, best.end))
            accepted.sort()
            logger.debug(
                "Accepted %s %s..%s (%d CTO days, score %.3f), %d left",
                best.kind,
                self.days[best.start].date,
                self.days[best.end].date,
                best.cto_days_used,
                best.score,
                remaining,
            )
            pool = [
                c
                for c in pool
                if c.cto_days_used <= remaining
                and (c.end < best.start - 1 or c.start > best.end + 1)
            ]

    def _repair_budget(self) -> None:
        """Add or remove CTO days until exactly ``number_of_days`` are used."""
        cto = self._cto_indices()

        while len(cto) > self.number_of_days:
            base = self._allocation_score()
            choices: list[tuple[float, int, int]] = []
            for i in cto:
                run_length = self._run_length_at(i)
                self.days[i].is_cto = False
                loss = base - self._allocation_score()
                self.days[i].is_cto = True
                choices.append((loss, run_length, i))
            _, _, drop = min(choices)
            self.days[drop].is_cto = False
            cto.remove(drop)
            logger.debug("Repair removed CTO day %s", self.days[drop].date)

        while len(cto) < self.number_of_days:
            free = [i for i, d in enumerate(self.days) if not d.is_off]
            if not free:
                raise InsufficientWorkdaysError(
                    f"Ran out of workdays with {self.number_of_days - len(cto)} CTO days left."
                )
            best = max(free, key=lambda i: (self._placement_score(i), -i))
            self.days[best].is_cto = True
            cto.append(best)
            logger.debug("Repair added CTO day %s", self.days[best].date)

    def _refine(self) -> None:
        """Move single CTO days to nearby workdays while the total score improves."""
        radius = self.profile.refine_radius
        offsets = [sign * step for step in range(1, radius + 1) for sign in (-1, 1)]
        current = self._allocation_score()

        for pass_number in range(1, self.refine_passes + 1):
            improved = False
            for i in self._cto_indices():
                best_score = current
                best_target: int | None = None

                self.days[i].is_cto = False
                for offset in offsets:
                    j = i + offset
                    if j < 0 or j >= len(self.days) or self.days[j].is_off:
                        continue
                    self.days[j].is_cto = True
                    score = self._allocation_score()
                    self.days[j].is_cto = False
                    if score > best_score + EPS:
                        best_score, best_target = score, j

                if best_target is None:
                    self.days[i].is_cto = True
                    continue

                self.days[best_target].is_cto = True
                logger.debug(
                    "Refine pass %d moved %s -> %s (%.3f -> %.3f)",
                    pass_number,
                    self.days[i].date,
                    self.days[best_target].date,
                    current,
                    best_score,
                )
                current = best_score
                improved = True

            if not improved:
                break

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def optimize(self) -> OptimizationResult:
        """Run the full pipeline and return the final calendar, breaks and stats.

        The optimizer can be run more than once; each run starts from a
        calendar without CTO days and returns its own copy of the days.
        """
        for day in self.days:
            day.is_cto = False
            day.is_part_of_break = False

        blocks = find_off_blocks(self.days)
        candidates = generate_candidates(
            self.days, blocks, self.profile, self.constants, budget=self.number_of_days
        )

        self._select(candidates)
        self._repair_budget()
        self._refine()
        self._repair_budget()

        days = [dataclasses.replace(d) for d in self.days]
        mark_breaks(days)
        breaks = extract_breaks(days)
        stats = compute_stats(days)

        logger.info(
            "Strategy %s placed %d CTO days in %d breaks totalling %d days off",
            self.strategy,
            stats.total_cto_days,
            len(breaks),
            stats.total_days_off,
        )
        return OptimizationResult(
            strategy=self.strategy,
            number_of_days=self.number_of_days,
            days=days,
            breaks=breaks,
            stats=stats,
        )


def optimize(
    number_of_days: int,
    strategy: str = DEFAULT_STRATEGY,
    *,
    year: int | None = None,
    start_date: DateLike | None = None,
    end_date: DateLike | None = None,
    weekend_days: Iterable[int] = DEFAULT_WEEKEND,
    holidays: Iterable[object] = (),
    company_days_off: Iterable[object] = (),
    pre_booked_days: Iterable[object] = (),
) -> OptimizationResult:
    """Plan *number_of_days* CTO days with *strategy*; see :class:`CTOOptimizer`."""
    return CTOOptimizer(
        number_of_days,
        strategy,
        year=year,
        start_date=start_date,
        end_date=end_date,
        weekend_days=weekend_days,
        holidays=holidays,
        company_days_off=company_days_off,
        pre_booked_days=pre_booked_days,
    ).optimize()
