"""Shared request dependencies and error mapping for routes."""

from fastapi import Header, HTTPException, status

from satprep.core.errors import (
    AccessDenied,
    AlreadyCompleted,
    AttemptError,
    NotFound,
    QuotaExceeded,
)

# Status code per error type
_STATUS_BY_ERROR: dict[type[AttemptError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    AccessDenied: status.HTTP_403_FORBIDDEN,
    QuotaExceeded: status.HTTP_403_FORBIDDEN,
    AlreadyCompleted: status.HTTP_409_CONFLICT,
}


async def get_requester_id(x_user_id: str = Header(..., min_length=1)) -> str:
    """Authenticated requester, as supplied by the identity layer."""
    return x_user_id


def to_http_error(error: AttemptError) -> HTTPException:
    """Convert a core error into an HTTPException with a structured detail."""
    return HTTPException(
        status_code=_STATUS_BY_ERROR.get(type(error), status.HTTP_400_BAD_REQUEST),
        detail=error.to_dict(),
    )
