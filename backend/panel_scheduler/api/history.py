"""Action history endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from ..domain import schemas
from ..scheduling.service import InterviewService
from .deps import get_service, status_for

router = APIRouter(prefix="/history")


@router.get("", response_model=List[schemas.HistoryEntry])
def history(
    limit: Optional[int] = Query(default=None, ge=1),
    service: InterviewService = Depends(get_service),
):
    """Most recent actions first."""
    return [schemas.HistoryEntry.model_validate(e) for e in service.history(limit)]


@router.post("/{action_id}/undo", response_model=schemas.ActionResponse)
def undo(
    action_id: str,
    response: Response,
    service: InterviewService = Depends(get_service),
):
    result = service.undo(action_id)
    response.status_code = status_for(result.error)
    return schemas.ActionResponse.model_validate(result)
