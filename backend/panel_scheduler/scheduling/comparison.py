"""Side-by-side evaluation of the scheduling strategies.

Read-only: every strategy runs on the same in-memory candidate list and
nothing is written to storage.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

from ..core.clock import Clock, SystemClock
from ..core.errors import ConfigurationError
from ..domain.models import Candidate, Interviewer
from .strategies import StrategyName, get_strategy

logger = logging.getLogger(__name__)

STRATEGY_ORDER = (
    StrategyName.LEAST_AVAILABLE,
    StrategyName.MOST_AVAILABLE,
    StrategyName.RANDOM,
    StrategyName.BALANCED,
)


@dataclass(frozen=True)
class LoadStats:
    """Interviews per used day. ``variance`` is the max-min spread."""

    average: float
    min: int
    max: int
    variance: int


@dataclass
class StrategyRun:
    strategy: StrategyName
    title: str
    scheduled: int
    unscheduled: int
    days_used: int
    weeks_used: int
    execution_ms: float
    interviews_by_day: Dict[int, int] = field(default_factory=dict)
    load: Optional[LoadStats] = None


@dataclass
class ComparisonReport:
    results: List[StrategyRun]
    most_scheduled: StrategyName
    fewest_days: StrategyName
    fastest: StrategyName
    most_balanced: StrategyName
    total_candidates: int
    timestamp: datetime


@dataclass
class MultiRunSummary:
    strategy: StrategyName
    title: str
    avg_scheduled: float
    avg_days_used: float
    min_days: int
    max_days: int
    avg_execution_ms: float
    runs: List[StrategyRun] = field(default_factory=list)


@dataclass
class MultiRunReport:
    results: List[MultiRunSummary]
    iterations: int
    best_avg_days: StrategyName
    best_min_days: StrategyName
    total_candidates: int
    timestamp: datetime


def load_stats(interviews_by_day: Dict[int, int]) -> Optional[LoadStats]:
    loads = list(interviews_by_day.values())
    if not loads:
        return None
    return LoadStats(
        average=round(sum(loads) / len(loads), 2),
        min=min(loads),
        max=max(loads),
        variance=max(loads) - min(loads),
    )


def run_once(
    strategy: StrategyName,
    candidates: Sequence[Candidate],
    interviewers: Sequence[Interviewer],
    start_date: date,
    horizon_days: int,
    rng: Optional[random.Random] = None,
) -> StrategyRun:
    scheduler = get_strategy(strategy, rng)
    started = time.perf_counter()
    result = scheduler.schedule(candidates, interviewers, start_date, horizon_days)
    elapsed = (time.perf_counter() - started) * 1000
    return StrategyRun(
        strategy=scheduler.name,
        title=scheduler.title,
        scheduled=result.scheduled_count,
        unscheduled=result.unscheduled_count,
        days_used=result.days_used,
        weeks_used=result.weeks_used,
        execution_ms=round(elapsed, 3),
        interviews_by_day=result.interviews_by_day,
        load=load_stats(result.interviews_by_day),
    )


def _check_pair(interviewers: Sequence[Interviewer]) -> None:
    if len(interviewers) < 2:
        raise ConfigurationError("At least 2 interviewers are required for scheduling")


def compare_single(
    candidates: Sequence[Candidate],
    interviewers: Sequence[Interviewer],
    start_date: date,
    horizon_days: int = 999,
    clock: Optional[Clock] = None,
    rng: Optional[random.Random] = None,
) -> ComparisonReport:
    _check_pair(interviewers)
    clock = clock or SystemClock()
    runs = [
        run_once(name, candidates, interviewers, start_date, horizon_days, rng)
        for name in STRATEGY_ORDER
    ]
    # first strategy wins ties, in STRATEGY_ORDER
    report = ComparisonReport(
        results=runs,
        most_scheduled=max(runs, key=lambda r: r.scheduled).strategy,
        fewest_days=min(runs, key=lambda r: r.days_used).strategy,
        fastest=min(runs, key=lambda r: r.execution_ms).strategy,
        most_balanced=min(
            runs, key=lambda r: r.load.variance if r.load else float("inf")
        ).strategy,
        total_candidates=len(candidates),
        timestamp=clock.now(),
    )
    for run in runs:
        logger.info(
            "%s: %d scheduled, %d unscheduled, %d days, %.2fms",
            run.title,
            run.scheduled,
            run.unscheduled,
            run.days_used,
            run.execution_ms,
        )
    return report


def compare_multi(
    candidates: Sequence[Candidate],
    interviewers: Sequence[Interviewer],
    start_date: date,
    horizon_days: int = 999,
    iterations: int = 5,
    clock: Optional[Clock] = None,
    rng: Optional[random.Random] = None,
) -> MultiRunReport:
    _check_pair(interviewers)
    if iterations < 1:
        raise ValueError("iterations must be at least 1")
    clock = clock or SystemClock()
    rng = rng or random.Random()
    summaries = []
    for name in STRATEGY_ORDER:
        runs = [
            run_once(name, candidates, interviewers, start_date, horizon_days, rng)
            for _ in range(iterations)
        ]
        days = [r.days_used for r in runs]
        summaries.append(
            MultiRunSummary(
                strategy=runs[0].strategy,
                title=runs[0].title,
                avg_scheduled=round(sum(r.scheduled for r in runs) / iterations, 2),
                avg_days_used=round(sum(days) / iterations, 2),
                min_days=min(days),
                max_days=max(days),
                avg_execution_ms=round(sum(r.execution_ms for r in runs) / iterations, 3),
                runs=runs,
            )
        )
        logger.info(
            "%s x%d: days %d-%d (avg %.2f)",
            runs[0].title,
            iterations,
            min(days),
            max(days),
            sum(days) / iterations,
        )
    return MultiRunReport(
        results=summaries,
        iterations=iterations,
        best_avg_days=min(summaries, key=lambda s: s.avg_days_used).strategy,
        best_min_days=min(summaries, key=lambda s: s.min_days).strategy,
        total_candidates=len(candidates),
        timestamp=clock.now(),
    )


def compare_strategies(
    candidates: Sequence[Candidate],
    interviewers: Sequence[Interviewer],
    start_date: date,
    horizon_days: int = 999,
    multi_run: bool = False,
    iterations: int = 5,
    clock: Optional[Clock] = None,
    rng: Optional[random.Random] = None,
):
    """Run every strategy on the same input; returns a single or multi-run report."""
    if multi_run:
        return compare_multi(
            candidates, interviewers, start_date, horizon_days, iterations, clock, rng
        )
    return compare_single(candidates, interviewers, start_date, horizon_days, clock, rng)
