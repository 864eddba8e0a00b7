"""User account and channel routes"""

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session
from typing import List, Optional

from videotube.core.database import get_db
from videotube.schemas.user import UserResponse, AccountUpdate
from videotube.schemas.channel import ChannelProfile, WatchHistoryItem
from videotube.schemas.response import APIResponse
from videotube.services.user_service import user_service
from videotube.services.channel_service import channel_service
from videotube.api.deps import get_current_user, get_optional_current_user
from videotube.api.uploads import save_upload_to_temp, discard_temp
from videotube.models.user import User

router = APIRouter()


@router.get("/current-user", response_model=APIResponse[UserResponse])
def get_current_user_profile(
    current_user: User = Depends(get_current_user)
):
    """
    Get current user profile

    Args:
        current_user: Current authenticated user

    Returns:
        User profile
    """
    return APIResponse(
        message="Current user fetched successfully",
        data=UserResponse.model_validate(current_user),
    )


@router.patch("/update-account", response_model=APIResponse[UserResponse])
def update_account_details(
    payload: AccountUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update full name and email"""
    user = user_service.update_account_details(db, current_user.id, payload.full_name, payload.email)
    return APIResponse(
        message="Account details updated successfully",
        data=UserResponse.model_validate(user),
    )


@router.patch("/avatar", response_model=APIResponse[UserResponse])
def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Replace the avatar image"""
    path = save_upload_to_temp(avatar)
    try:
        user = user_service.update_avatar(db, current_user.id, path)
    finally:
        discard_temp(path)
    return APIResponse(
        message="Avatar updated successfully",
        data=UserResponse.model_validate(user),
    )


@router.patch("/cover-image", response_model=APIResponse[UserResponse])
def update_cover_image(
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Replace the cover image"""
    path = save_upload_to_temp(cover_image)
    try:
        user = user_service.update_cover_image(db, current_user.id, path)
    finally:
        discard_temp(path)
    return APIResponse(
        message="Cover image updated successfully",
        data=UserResponse.model_validate(user),
    )


@router.get("/c/{username}", response_model=APIResponse[ChannelProfile])
def get_channel_profile(
    username: str,
    viewer: Optional[User] = Depends(get_optional_current_user),
    db: Session = Depends(get_db)
):
    """
    Channel page with subscriber counts

    Anonymous viewers are allowed; for them `isSubscribed` is false.
    """
    profile = channel_service.get_channel_profile(db, viewer.id if viewer else None, username)
    return APIResponse(message="User channel fetched successfully", data=profile)


@router.get("/history", response_model=APIResponse[List[WatchHistoryItem]])
def get_watch_history(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Watch history of the authenticated user, oldest first"""
    history = channel_service.get_watch_history(db, current_user.id)
    return APIResponse(message="Watch history fetched successfully", data=history)
