"""Attempt endpoints: start, submit, status, history and analytics."""

import math

from fastapi import APIRouter, Depends, Query, Response, status

from satprep.core.analytics import get_overview
from satprep.core.errors import AttemptError
from satprep.core.lifecycle import get_lifecycle
from satprep.db import attempts_repository
from satprep.web.deps import get_requester_id, to_http_error
from satprep.web.schemas import (
    AnalyticsOverviewResponse,
    AttemptListResponse,
    AttemptResponse,
    AttemptStartRequest,
    AttemptStartResponse,
    AttemptStatusResponse,
    AttemptSubmitRequest,
    AttemptSubmitResponse,
    PaginationSchema,
)

router = APIRouter(prefix="/api/attempts", tags=["attempts"])


@router.post(
    "", response_model=AttemptStartResponse, status_code=status.HTTP_201_CREATED
)
def start_attempt(
    request: AttemptStartRequest,
    response: Response,
    requester_id: str = Depends(get_requester_id),
) -> AttemptStartResponse:
    """Start a new attempt, or resume the one in progress."""
    try:
        result = get_lifecycle().start(requester_id, request.test_id)
    except AttemptError as e:
        raise to_http_error(e)

    if result.resumed:
        response.status_code = status.HTTP_200_OK

    return AttemptStartResponse(
        attempt=AttemptResponse.from_attempt(result.attempt),
        resumed=result.resumed,
    )


@router.get("", response_model=AttemptListResponse)
def list_attempts(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status_filter: str | None = Query(default=None, alias="status"),
    test_id: str | None = None,
    requester_id: str = Depends(get_requester_id),
) -> AttemptListResponse:
    """List the requester's attempts, newest first."""
    attempts, total = attempts_repository.list_attempts(
        requester_id,
        status=status_filter,
        test_id=test_id,
        limit=limit,
        offset=(page - 1) * limit,
    )
    return AttemptListResponse(
        attempts=[AttemptResponse.from_attempt(a) for a in attempts],
        pagination=PaginationSchema(
            current=page,
            pages=math.ceil(total / limit),
            total=total,
            limit=limit,
        ),
    )


@router.get("/status", response_model=AttemptStatusResponse)
def get_attempt_status(
    test_id: str = Query(..., min_length=1),
    requester_id: str = Depends(get_requester_id),
) -> AttemptStatusResponse:
    """Completed/incomplete counts and remaining quota for a test."""
    try:
        result = get_lifecycle().get_status(requester_id, test_id)
    except AttemptError as e:
        raise to_http_error(e)

    return AttemptStatusResponse(
        test_id=test_id,
        completed_attempts=result.completed_attempts,
        incomplete_attempts=result.incomplete_attempts,
        max_attempts=result.max_attempts,
        attempts_remaining=result.attempts_remaining,
        can_attempt=result.can_attempt,
        has_incomplete_attempt=result.has_incomplete_attempt,
    )


@router.get("/analytics/overview", response_model=AnalyticsOverviewResponse)
def analytics_overview(
    requester_id: str = Depends(get_requester_id),
) -> AnalyticsOverviewResponse:
    """Performance overview across completed attempts."""
    overview = get_overview(requester_id)
    return AnalyticsOverviewResponse(
        total_tests=overview.total_tests,
        average_score=overview.average_score,
        best_score=overview.best_score,
        total_time=overview.total_time,
        strength_areas=overview.strength_areas,
        weak_areas=overview.weak_areas,
        recent_progress=overview.recent_progress,
    )


@router.get("/{attempt_id}", response_model=AttemptResponse)
def get_attempt(
    attempt_id: str,
    requester_id: str = Depends(get_requester_id),
) -> AttemptResponse:
    """Get one of the requester's attempts."""
    try:
        attempt = get_lifecycle().get_attempt(attempt_id, requester_id)
    except AttemptError as e:
        raise to_http_error(e)

    return AttemptResponse.from_attempt(attempt)


@router.put("/{attempt_id}", response_model=AttemptSubmitResponse)
def submit_attempt(
    attempt_id: str,
    request: AttemptSubmitRequest,
    requester_id: str = Depends(get_requester_id),
) -> AttemptSubmitResponse:
    """Submit answers and finish an attempt."""
    try:
        result = get_lifecycle().submit(
            attempt_id,
            requester_id,
            [q.to_outcome() for q in request.question_results],
            end_time=request.end_time,
            status=request.status,
        )
    except AttemptError as e:
        raise to_http_error(e)

    return AttemptSubmitResponse(
        attempt=AttemptResponse.from_attempt(result.attempt),
        coins_earned=result.coins_earned,
        streak_bonus=result.streak_bonus,
        streak_bonus_message=result.streak_bonus_message,
    )
