"""Roster files: candidate CSV, interviewer JSON, schedule CSV export."""

from __future__ import annotations

import csv
import io
import json
import logging
import os
from typing import IO, List, Sequence, Union

from .core.errors import InvalidSlotLabelError
from .domain.models import WEEKDAYS, Assignment, Candidate, Interviewer, normalize_availability
from .scheduling.availability import require_slot_time
from .scheduling.calendar import day_number_to_weekday, to_local, week_number

logger = logging.getLogger(__name__)

TextOrPath = Union[str, os.PathLike, IO]

SCHEDULE_COLUMNS = [
    "day_number",
    "week",
    "weekday",
    "date",
    "slot_label",
    "start_time",
    "end_time",
    "roll_number",
    "name",
    "email",
    "status",
]


def _open_text(src: TextOrPath):
    """Return a text-mode handle and whether the caller should close it."""
    if isinstance(src, (str, os.PathLike)):
        return open(src, "r", newline="", encoding="utf-8"), True
    if isinstance(src, io.BytesIO):
        src.seek(0)
        return io.TextIOWrapper(src, encoding="utf-8", newline=""), True
    if hasattr(src, "read"):
        return src, False
    raise TypeError("Unsupported input type; expected path or file-like object")


def _split_slots(cell: str) -> List[str]:
    return [s.strip() for s in (cell or "").split(",") if s.strip()]


def _check_labels(availability, where: str) -> None:
    for labels in availability.values():
        for label in labels:
            try:
                require_slot_time(label)
            except InvalidSlotLabelError as exc:
                raise InvalidSlotLabelError(f"{where}: {exc}") from exc


def load_candidates_csv(src: TextOrPath) -> List[Candidate]:
    """Candidates from a CSV with roll_number,name,email,department and one
    column per weekday holding comma-separated slot labels.

    Rows without a roll number or name are skipped. The roll number becomes
    the candidate id.
    """
    candidates: List[Candidate] = []
    seen = set()
    f, should_close = _open_text(src)
    try:
        reader = csv.DictReader(f)
        for line, row in enumerate(reader, start=2):
            roll_number = (row.get("roll_number") or "").strip()
            name = (row.get("name") or "").strip()
            if not roll_number or not name:
                logger.warning("Skipping row %d: missing roll number or name", line)
                continue
            if roll_number in seen:
                logger.warning("Skipping row %d: duplicate roll number %s", line, roll_number)
                continue
            seen.add(roll_number)
            availability = normalize_availability(
                {day: _split_slots(row.get(day, "")) for day in WEEKDAYS}
            )
            _check_labels(availability, f"row {line}")
            candidates.append(
                Candidate(
                    id=roll_number,
                    name=name,
                    roll_number=roll_number,
                    email=(row.get("email") or "").strip() or None,
                    contact_number=(row.get("contact_number") or "").strip() or None,
                    department=(row.get("department") or "").strip() or None,
                    availability=availability,
                )
            )
    finally:
        if should_close:
            f.close()
    logger.info("Loaded %d candidates", len(candidates))
    return candidates


def load_interviewers_json(src: TextOrPath) -> List[Interviewer]:
    """Interviewers from a JSON list of ``{id?, name, email?, availability}``.

    Order is kept: the first two entries form the interviewing pair.
    """
    f, should_close = _open_text(src)
    try:
        raw = json.load(f)
    finally:
        if should_close:
            f.close()
    if not isinstance(raw, list):
        raise ValueError("interviewer file must hold a JSON list")
    interviewers = []
    for index, item in enumerate(raw, start=1):
        availability = normalize_availability(item.get("availability"))
        _check_labels(availability, f"interviewer {index}")
        interviewers.append(
            Interviewer(
                id=str(item.get("id") or item.get("email") or f"interviewer_{index}"),
                name=item["name"],
                email=item.get("email"),
                availability=availability,
            )
        )
    return interviewers


def save_schedule_csv(
    path: str, assignments: Sequence[Assignment], candidates: Sequence[Candidate]
) -> None:
    """Write one row per assignment, ordered by start time, in local time."""
    by_id = {c.id: c for c in candidates}
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(SCHEDULE_COLUMNS)
        for a in sorted(assignments, key=lambda a: (a.start_time, a.day_number)):
            candidate = by_id.get(a.candidate_id)
            start = to_local(a.start_time)
            w.writerow(
                [
                    a.day_number,
                    week_number(a.day_number),
                    day_number_to_weekday(a.day_number),
                    start.date().isoformat(),
                    a.slot_label,
                    start.isoformat(),
                    to_local(a.end_time).isoformat(),
                    candidate.roll_number if candidate else "",
                    candidate.name if candidate else a.candidate_id,
                    (candidate.email or "") if candidate else "",
                    a.status.value,
                ]
            )
