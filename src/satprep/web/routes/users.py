"""User wallet endpoint (read-only accounting view)."""

from fastapi import APIRouter, Depends, HTTPException, status

from satprep.core.lifecycle import get_lifecycle
from satprep.core.rewards import bonus_used_today
from satprep.db import users_repository
from satprep.web.deps import get_requester_id
from satprep.web.schemas import WalletResponse

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/{user_id}/wallet", response_model=WalletResponse)
def get_wallet(
    user_id: str,
    requester_id: str = Depends(get_requester_id),
) -> WalletResponse:
    """Coins, streak and totals for a user."""
    if user_id != requester_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "AccessDenied", "message": "Access denied"},
        )

    user = users_repository.get_user(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "NotFound", "message": f"User '{user_id}' not found"},
        )

    today = get_lifecycle().clock.today()
    return WalletResponse(
        user_id=user.user_id,
        account_type=user.account_type,
        coins=user.coins,
        total_tests_taken=user.total_tests_taken,
        average_accuracy=user.average_accuracy,
        login_streak=user.login_streak,
        last_test_completion_date=(
            user.last_test_completion_date.isoformat()
            if user.last_test_completion_date
            else None
        ),
        last_coin_earned_date=(
            user.last_coin_earned_date.isoformat() if user.last_coin_earned_date else None
        ),
        streak_bonus_used_today=bonus_used_today(user, today),
    )
