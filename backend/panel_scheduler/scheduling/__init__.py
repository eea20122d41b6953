"""Scheduling core: availability, calendar, strategies, rescheduling."""

from .comparison import compare_strategies
from .reschedule import RescheduleCoordinator, RescheduleResult
from .service import InterviewService
from .strategies import SchedulingResult, StrategyName, run_scheduler

__all__ = [
    "InterviewService",
    "RescheduleCoordinator",
    "RescheduleResult",
    "SchedulingResult",
    "StrategyName",
    "compare_strategies",
    "run_scheduler",
]
