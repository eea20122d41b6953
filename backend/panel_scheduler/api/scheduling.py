"""Campaign-level endpoints: scheduling, comparison, roster and stats."""

from typing import List, Optional

from fastapi import APIRouter, Depends

from ..domain import schemas
from ..domain.models import CandidateStatus
from ..scheduling.comparison import MultiRunReport
from ..scheduling.service import InterviewService
from .deps import get_service

router = APIRouter()


@router.post(
    "/schedule",
    response_model=schemas.ScheduleResponse,
    responses={400: {"model": schemas.ErrorResponse}},
)
def schedule(
    body: schemas.ScheduleRequest,
    service: InterviewService = Depends(get_service),
):
    """Schedule every pending candidate, replacing whichever roster is sent."""
    result = service.schedule_campaign(
        strategy=body.strategy,
        start_date=body.start_date,
        horizon_days=body.horizon_days,
        candidates=(
            [c.to_domain() for c in body.candidates] if body.candidates is not None else None
        ),
        interviewers=(
            [i.to_domain() for i in body.interviewers]
            if body.interviewers is not None
            else None
        ),
    )
    return schemas.ScheduleResponse.model_validate(result)


@router.post(
    "/compare",
    response_model=schemas.ComparisonReport | schemas.MultiRunReport,
    responses={400: {"model": schemas.ErrorResponse}, 404: {"model": schemas.ErrorResponse}},
)
def compare(
    body: schemas.CompareRequest,
    service: InterviewService = Depends(get_service),
):
    """Run all strategies on the stored candidates without saving anything."""
    report = service.compare(multi_run=body.multi_run, iterations=body.iterations)
    if isinstance(report, MultiRunReport):
        return schemas.MultiRunReport.model_validate(report)
    return schemas.ComparisonReport.model_validate(report)


@router.get("/candidates", response_model=List[schemas.Candidate])
def candidates(
    status: Optional[CandidateStatus] = None,
    service: InterviewService = Depends(get_service),
):
    return [schemas.Candidate.model_validate(c) for c in service.candidates(status)]


@router.get("/stats", response_model=schemas.Stats)
def stats(service: InterviewService = Depends(get_service)):
    return schemas.Stats.model_validate(service.stats())
