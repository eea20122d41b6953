"""Shared dependencies for API routes."""

from __future__ import annotations

from typing import Optional

from fastapi import Request, status

from ..core.errors import (
    AlreadyCompletedError,
    ConfigurationError,
    LoopDetectedError,
    NotFoundError,
    SchedulingError,
    SlotConflictError,
)
from ..scheduling.service import InterviewService

STATUS_BY_CODE = {
    NotFoundError.code: status.HTTP_404_NOT_FOUND,
    ConfigurationError.code: status.HTTP_400_BAD_REQUEST,
    AlreadyCompletedError.code: status.HTTP_409_CONFLICT,
    LoopDetectedError.code: status.HTTP_409_CONFLICT,
    SlotConflictError.code: status.HTTP_409_CONFLICT,
    SchedulingError.code: status.HTTP_409_CONFLICT,
}


def get_service(request: Request) -> InterviewService:
    """Return the service attached to the running application."""
    return request.app.state.service


def status_for(code: Optional[str]) -> int:
    """HTTP status for a structured failure code."""
    if code is None:
        return status.HTTP_200_OK
    return STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
