from fastapi import APIRouter, Depends

from ..application.services.profile_service import ProfileService
from ..schemas.profiles.profile import ProfileResponse, ProfileUpdate
from .deps import get_current_user, get_profile_service

router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.get("/me", response_model=ProfileResponse)
def get_profile(
    current_user: str = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
):
    return ProfileResponse.model_validate(profiles.get(current_user))


@router.put("/me", response_model=ProfileResponse)
def update_profile(
    body: ProfileUpdate,
    current_user: str = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
):
    profile = profiles.save(current_user, body.full_name, body.avatar_url, body.role)
    return ProfileResponse.model_validate(profile)
