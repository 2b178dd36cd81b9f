"""Candidate break generation.

Three shapes of candidate are produced from the off-blocks of a calendar:

* extension  - an off-block grown by a few workdays on one side
* bridge     - the workday gap(s) between consecutive off-blocks filled in
* standalone - a run of consecutive workdays, merged with any off-block it
  touches

Each candidate records the calendar range it would turn into a break and
the workdays inside that range that would have to be spent as CTO.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from cto.days import CalendarDay, OffBlock
from cto.strategies import DEFAULT_CONSTANTS, ScoringConstants, StrategyProfile, score_range

logger = logging.getLogger(__name__)

EXTENSION = "extension"
BRIDGE = "bridge"
STANDALONE = "standalone"

KIND_ORDER: dict[str, int] = {EXTENSION: 0, BRIDGE: 1, STANDALONE: 2}


class BreakCandidate(NamedTuple):
    """A contiguous range of days that could become one break."""

    kind: str
    start: int
    end: int
    cto_indices: tuple[int, ...]
    score: float

    @property
    def cto_days_used(self) -> int:
        return len(self.cto_indices)

    @property
    def length(self) -> int:
        return self.end - self.start + 1


def _extensions(
    days: list[CalendarDay], blocks: list[OffBlock], max_extension: int
) -> list[tuple[int, int]]:
    ranges: list[tuple[int, int]] = []
    n = len(days)
    for block in blocks:
        # Backward. A step that reaches another block is a bridge, not an extension.
        for k in range(1, max_extension + 1):
            start = block.start - k
            if start < 0 or days[start].is_off_by_default:
                break
            if start > 0 and days[start - 1].is_off_by_default:
                break
            ranges.append((start, block.end))

        # Forward
        for k in range(1, max_extension + 1):
            end = block.end + k
            if end >= n or days[end].is_off_by_default:
                break
            if end + 1 < n and days[end + 1].is_off_by_default:
                break
            ranges.append((block.start, end))
    return ranges


def _bridges(blocks: list[OffBlock], max_bridge: int) -> list[tuple[int, int]]:
    ranges: list[tuple[int, int]] = []
    for i, first in enumerate(blocks):
        cost = 0
        for j in range(i + 1, len(blocks)):
            cost += blocks[j].start - blocks[j - 1].end - 1
            if cost > max_bridge:
                break
            ranges.append((first.start, blocks[j].end))
    return ranges


def _standalones(days: list[CalendarDay], lengths: tuple[int, ...]) -> list[tuple[int, int]]:
    ranges: list[tuple[int, int]] = []
    n = len(days)
    for k in lengths:
        for s in range(n - k + 1):
            if not all(days[i].is_workday for i in range(s, s + k)):
                continue
            start, end = s, s + k - 1
            while start > 0 and days[start - 1].is_off_by_default:
                start -= 1
            while end + 1 < n and days[end + 1].is_off_by_default:
                end += 1
            ranges.append((start, end))
    return ranges


def generate_candidates(
    days: list[CalendarDay],
    blocks: list[OffBlock],
    profile: StrategyProfile,
    constants: ScoringConstants = DEFAULT_CONSTANTS,
    budget: int | None = None,
) -> list[BreakCandidate]:
    """Generate and score every candidate break for *profile*.

    Ranges produced by more than one generator are kept once, under the
    first kind that produced them (extension, then bridge, then
    standalone). With a *budget*, candidates needing more CTO days than
    that are dropped. The result is ordered by start, then end.
    """
    generated = [
        (EXTENSION, _extensions(days, blocks, profile.max_extension)),
        (BRIDGE, _bridges(blocks, profile.max_bridge)),
        (STANDALONE, _standalones(days, profile.standalone_lengths)),
    ]

    seen: dict[tuple[int, int], BreakCandidate] = {}
    for kind, ranges in generated:
        for start, end in ranges:
            if (start, end) in seen:
                continue
            cto = tuple(i for i in range(start, end + 1) if days[i].is_workday)
            if not cto or (budget is not None and len(cto) > budget):
                continue
            seen[(start, end)] = BreakCandidate(
                kind=kind,
                start=start,
                end=end,
                cto_indices=cto,
                score=score_range(days, start, end, profile, constants),
            )

    candidates = sorted(seen.values(), key=lambda c: (c.start, c.end))
    logger.debug(
        "Generated %d candidates (%s) from %d off-blocks",
        len(candidates),
        ", ".join(
            f"{kind}={sum(1 for c in candidates if c.kind == kind)}" for kind in KIND_ORDER
        ),
        len(blocks),
    )
    return candidates
