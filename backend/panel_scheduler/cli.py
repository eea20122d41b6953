"""Command line entry point: schedule or compare a roster from files."""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict, is_dataclass
from datetime import date
from enum import Enum
from typing import Optional, Sequence

from .core.clock import SystemClock
from .core.config import settings
from .core.errors import SchedulingError
from .core.logging import init_logging
from .intake import load_candidates_csv, load_interviewers_json, save_schedule_csv
from .scheduling.service import InterviewService
from .scheduling.strategies import StrategyName
from .storage import InMemoryStore


def _to_jsonable(value):
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return _to_jsonable(asdict(value))
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _summary(result) -> dict:
    return {
        "strategy": result.strategy.value,
        "total_candidates": result.total_candidates,
        "scheduled": result.scheduled_count,
        "unscheduled": [
            {"id": u.candidate.id, "name": u.candidate.name, "reason": u.reason}
            for u in result.unscheduled
        ],
        "days_used": result.days_used,
        "weeks_used": result.weeks_used,
        "interviews_by_day": result.interviews_by_day,
    }


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="panel-scheduler", description="Interview slot scheduling for an interviewer pair"
    )
    p.add_argument("--log-level", default=settings.LOG_LEVEL)
    sub = p.add_subparsers(dest="command", required=True)

    def roster_args(sp):
        sp.add_argument("--candidates", required=True, help="candidates CSV")
        sp.add_argument("--interviewers", required=True, help="interviewers JSON list")
        sp.add_argument(
            "--start-date",
            type=date.fromisoformat,
            default=settings.SCHEDULE_START_DATE,
            help="campaign start (ISO date); day 1 is the first Monday on or after it",
        )
        sp.add_argument("--max-days", type=int, default=settings.MAX_DAYS)

    sp = sub.add_parser("schedule", help="schedule every candidate and report")
    roster_args(sp)
    sp.add_argument(
        "--strategy",
        choices=[s.value for s in StrategyName],
        default=settings.DEFAULT_STRATEGY,
    )
    sp.add_argument("--out", help="write the schedule to this CSV file")

    sp = sub.add_parser("compare", help="compare every strategy on the roster")
    roster_args(sp)
    sp.add_argument("--multi-run", action="store_true")
    sp.add_argument("--iterations", type=int, default=5)
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    init_logging(args.log_level.upper())

    service = InterviewService(
        InMemoryStore(),
        args.start_date,
        clock=SystemClock(),
        horizon_days=args.max_days,
    )
    try:
        candidates = load_candidates_csv(args.candidates)
        service.load_roster(candidates, load_interviewers_json(args.interviewers))
        if args.command == "schedule":
            result = service.schedule_campaign(strategy=args.strategy)
            output = _summary(result)
        else:
            report = service.compare(multi_run=args.multi_run, iterations=args.iterations)
            output = _to_jsonable(report)
    except (SchedulingError, ValueError, KeyError) as exc:
        raise SystemExit(f"error: {exc}")

    if args.command == "schedule" and args.out:
        save_schedule_csv(args.out, result.assignments, candidates)
    print(json.dumps(output, indent=2))
    return 0
