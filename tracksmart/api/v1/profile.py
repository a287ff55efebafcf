"""PUT/GET /v1/users/{user_id}/profile - Student spending profile"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from tracksmart.api.v1.schemas import ProfileRequest, ProfileResponse
from tracksmart.domain.exceptions import ProfileNotFoundError
from tracksmart.domain.models import UserProfile
from tracksmart.infrastructure.database.repositories import ProfileRepository
from tracksmart.infrastructure.database.session import get_db

router = APIRouter()


def _to_response(profile: UserProfile) -> ProfileResponse:
    return ProfileResponse(
        user_id=profile.user_id,
        monthly_allowance=profile.monthly_allowance,
        meal_plan=profile.meal_plan,
        financial_goal=profile.financial_goal,
        financial_goal_amount=profile.financial_goal_amount,
    )


@router.put("/users/{user_id}/profile", response_model=ProfileResponse)
def save_profile(user_id: str, request_body: ProfileRequest, db: Session = Depends(get_db)):
    """Create or replace a student's allowance, meal plan and goal"""
    profile = UserProfile(
        user_id=user_id,
        monthly_allowance=request_body.monthly_allowance,
        meal_plan=request_body.meal_plan,
        financial_goal=request_body.financial_goal,
        financial_goal_amount=request_body.financial_goal_amount,
    )
    ProfileRepository(db).save_profile(profile)
    db.commit()
    return _to_response(profile)


@router.get("/users/{user_id}/profile", response_model=ProfileResponse)
def get_profile(user_id: str, db: Session = Depends(get_db)):
    try:
        profile = ProfileRepository(db).require_profile(user_id)
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _to_response(profile)
