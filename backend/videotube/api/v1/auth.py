"""Session routes: register, login, refresh, logout, change password"""

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional

from videotube.core.database import get_db
from videotube.config import settings
from videotube.schemas.user import (
    UserLogin,
    UserResponse,
    LoginResponse,
    TokenPair,
    RefreshTokenRequest,
    ChangePasswordRequest,
)
from videotube.schemas.response import APIResponse
from videotube.services.user_service import user_service
from videotube.services.session_service import session_service
from videotube.services.rate_limiter import rate_limiter
from videotube.api.deps import get_current_user, ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE
from videotube.api.uploads import save_upload_to_temp, discard_temp
from videotube.models.user import User
from videotube.core.exceptions import RateLimitExceededError

router = APIRouter()


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": settings.COOKIE_SECURE,
        "samesite": settings.COOKIE_SAMESITE,
    }


def set_session_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    """Write both tokens as script-inaccessible cookies"""
    options = _cookie_options()
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        access_token,
        max_age=settings.access_token_expire_seconds,
        **options,
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        refresh_token,
        max_age=settings.refresh_token_expire_seconds,
        **options,
    )


def clear_session_cookies(response: Response) -> None:
    options = _cookie_options()
    response.delete_cookie(ACCESS_TOKEN_COOKIE, **options)
    response.delete_cookie(REFRESH_TOKEN_COOKIE, **options)


def _enforce_rate_limit(request: Request, action: str, per_minute: int, per_hour: int) -> None:
    client_ip = request.client.host if request.client else "unknown"
    if not rate_limiter.allow(f"{action}:min:{client_ip}", per_minute, 60):
        raise RateLimitExceededError(f"Too many {action} attempts. Please wait a minute.")
    if not rate_limiter.allow(f"{action}:hour:{client_ip}", per_hour, 3600):
        raise RateLimitExceededError(f"Too many {action} attempts. Please try again later.")


@router.post("/register", response_model=APIResponse[UserResponse], status_code=status.HTTP_201_CREATED)
def register(
    full_name: Optional[str] = Form(None, alias="fullName"),
    email: Optional[str] = Form(None),
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    db: Session = Depends(get_db)
):
    """
    Register a new user (multipart form with avatar and optional cover image)

    Returns:
        The created user without credential fields
    """
    avatar_path = save_upload_to_temp(avatar)
    cover_image_path = None
    try:
        cover_image_path = save_upload_to_temp(cover_image)
        user = user_service.register_user(
            db,
            full_name=full_name,
            email=email,
            username=username,
            password=password,
            avatar_path=avatar_path,
            cover_image_path=cover_image_path,
        )
    finally:
        discard_temp(avatar_path, cover_image_path)

    return APIResponse(
        message="User registered successfully",
        data=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=APIResponse[LoginResponse])
def login(
    credentials: UserLogin,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Login with username or email; tokens are set as cookies and mirrored in the body
    """
    _enforce_rate_limit(
        request,
        "login",
        settings.LOGIN_RATE_LIMIT_PER_MINUTE,
        settings.LOGIN_RATE_LIMIT_PER_HOUR,
    )

    user, access_token, refresh_token = session_service.login(
        db, credentials.username, credentials.email, credentials.password
    )
    set_session_cookies(response, access_token, refresh_token)

    return APIResponse(
        message="User logged in successfully",
        data=LoginResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.access_token_expire_seconds,
            user=UserResponse.model_validate(user),
        ),
    )


@router.post("/logout")
def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Logout - forget the stored refresh token and clear both cookies"""
    session_service.logout(db, current_user.id)
    clear_session_cookies(response)
    return APIResponse(message="User logged out successfully", data={})


@router.post("/refresh-token", response_model=APIResponse[TokenPair])
def refresh_token(
    request: Request,
    response: Response,
    body: Optional[RefreshTokenRequest] = None,
    db: Session = Depends(get_db),
):
    """
    Rotate the session: the refresh token comes from the cookie or the JSON body
    """
    _enforce_rate_limit(
        request,
        "refresh",
        settings.REFRESH_RATE_LIMIT_PER_MINUTE,
        settings.REFRESH_RATE_LIMIT_PER_HOUR,
    )

    incoming = request.cookies.get(REFRESH_TOKEN_COOKIE) or (body.refresh_token if body else None)
    access_token, new_refresh_token = session_service.refresh(db, incoming)
    set_session_cookies(response, access_token, new_refresh_token)

    return APIResponse(
        message="Access token refreshed",
        data=TokenPair(
            access_token=access_token,
            refresh_token=new_refresh_token,
            expires_in=settings.access_token_expire_seconds,
        ),
    )


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change the password of the authenticated user"""
    session_service.change_password(db, current_user, payload.old_password, payload.new_password)
    return APIResponse(message="Password changed successfully", data={})
