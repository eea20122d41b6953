"""Interview listing and the per-interview actions."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Response

from ..domain import schemas
from ..domain.models import AssignmentStatus
from ..scheduling.service import InterviewService
from .deps import get_service, status_for

router = APIRouter(prefix="/interviews")


@router.get("", response_model=List[schemas.Assignment])
def interviews(
    day: Optional[int] = None,
    status: Optional[AssignmentStatus] = None,
    interviewer_id: Optional[str] = None,
    service: InterviewService = Depends(get_service),
):
    found = service.interviews(day=day, status=status, interviewer_id=interviewer_id)
    return [schemas.Assignment.model_validate(a) for a in found]


@router.get("/today", response_model=List[schemas.Assignment])
def today(service: InterviewService = Depends(get_service)):
    """Interviews starting on the current local day."""
    return [schemas.Assignment.model_validate(a) for a in service.today_interviews()]


@router.get(
    "/{assignment_id}",
    response_model=schemas.Assignment,
    responses={404: {"model": schemas.ErrorResponse}},
)
def interview(assignment_id: str, service: InterviewService = Depends(get_service)):
    return schemas.Assignment.model_validate(service.get_interview(assignment_id))


@router.post("/{assignment_id}/complete", response_model=schemas.ActionResponse)
def complete(
    assignment_id: str,
    response: Response,
    service: InterviewService = Depends(get_service),
):
    result = service.mark_complete(assignment_id)
    response.status_code = status_for(result.error)
    return schemas.ActionResponse.model_validate(result)


@router.post("/{assignment_id}/reschedule", response_model=schemas.RescheduleResponse)
def reschedule(
    assignment_id: str,
    response: Response,
    body: Optional[schemas.RescheduleRequest] = None,
    service: InterviewService = Depends(get_service),
):
    """Swap with a later-week slot, or rebuild the future schedule."""
    body = body or schemas.RescheduleRequest()
    result = service.request_reschedule(assignment_id, body.reason)
    response.status_code = status_for(result.error)
    return schemas.RescheduleResponse.model_validate(result)


@router.post("/{assignment_id}/cancel", response_model=schemas.ActionResponse)
def cancel(
    assignment_id: str,
    response: Response,
    service: InterviewService = Depends(get_service),
):
    result = service.cancel(assignment_id)
    response.status_code = status_for(result.error)
    return schemas.ActionResponse.model_validate(result)


@router.post("/{assignment_id}/reactivate", response_model=schemas.ActionResponse)
def reactivate(
    assignment_id: str,
    response: Response,
    service: InterviewService = Depends(get_service),
):
    result = service.reactivate(assignment_id)
    response.status_code = status_for(result.error)
    return schemas.ActionResponse.model_validate(result)
