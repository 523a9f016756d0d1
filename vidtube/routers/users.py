"""User, session and channel endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from vidtube.config import settings
from vidtube.database import get_db
from vidtube.middleware.auth import ACCESS_COOKIE, REFRESH_COOKIE, get_current_user
from vidtube.middleware.uploads import UploadStage, get_upload_stage
from vidtube.models.user import User
from vidtube.readmodels import views
from vidtube.schemas import AccountUpdate, PasswordChange, RefreshRequest, UserLogin
from vidtube.services.media_service import MediaStorage, get_media_storage
from vidtube.services.user_service import UserService
from vidtube.utils.responses import api_response

router = APIRouter()


def _set_session_cookies(response: JSONResponse, access_token: str, refresh_token: str) -> None:
    for name, value in ((ACCESS_COOKIE, access_token), (REFRESH_COOKIE, refresh_token)):
        response.set_cookie(
            name,
            value,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite="lax"
        )


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    full_name: Optional[str] = Form(None, alias="fullName"),
    username: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
    stage: UploadStage = Depends(get_upload_stage)
):
    """
    Register a new user.

    Multipart form with fullName, username, email, password, an avatar
    image (required) and an optional coverImage.
    """
    user = UserService.register_user(
        db,
        storage,
        full_name=full_name,
        username=username,
        email=email,
        password=password,
        avatar_path=stage.save(avatar),
        cover_image_path=stage.save(cover_image)
    )
    return api_response(user, "User registered successfully", status.HTTP_201_CREATED)


@router.post("/login")
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """
    Login with username or email and password.

    Returns the user and a token pair; both tokens are also set as cookies.
    """
    user, access_token, refresh_token = UserService.login(
        db, credentials.username, credentials.email, credentials.password
    )
    response = api_response(
        {"user": user, "accessToken": access_token, "refreshToken": refresh_token},
        "User logged in successfully"
    )
    _set_session_cookies(response, access_token, refresh_token)
    return response


@router.post("/logout")
def logout(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    UserService.logout(db, current_user)
    response = api_response({}, "User logged out")
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return response


@router.post("/refresh-token")
def refresh_token(
    request: Request,
    body: Optional[RefreshRequest] = None,
    db: Session = Depends(get_db)
):
    """
    Rotate the session.

    The refresh token is read from the refreshToken cookie or the request
    body. It can be used once.
    """
    token = request.cookies.get(REFRESH_COOKIE) or (body.refresh_token if body else None)
    access_token, new_refresh_token = UserService.refresh(db, token)

    response = api_response(
        {"accessToken": access_token, "refreshToken": new_refresh_token},
        "Access token refreshed"
    )
    _set_session_cookies(response, access_token, new_refresh_token)
    return response


@router.post("/change-password")
def change_password(
    body: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    UserService.change_password(db, current_user, body.old_password, body.new_password)
    return api_response({}, "Password changed successfully")


@router.get("/current-user")
def get_current_user_info(current_user: User = Depends(get_current_user)):
    return api_response(UserService.to_document(current_user), "Current user fetched successfully")


@router.patch("/update-account")
def update_account(
    body: AccountUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user = UserService.update_account(db, current_user, body.full_name, body.email)
    return api_response(user, "Account details updated successfully")


@router.patch("/avatar")
def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
    stage: UploadStage = Depends(get_upload_stage)
):
    user = UserService.update_image(db, storage, current_user, "avatar", stage.save(avatar))
    return api_response(user, "Avatar updated successfully")


@router.patch("/cover-image")
def update_cover_image(
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
    stage: UploadStage = Depends(get_upload_stage)
):
    user = UserService.update_image(db, storage, current_user, "cover_image", stage.save(cover_image))
    return api_response(user, "Cover image updated successfully")


@router.get("/c/{username}")
def get_channel_profile(
    username: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Channel profile with subscriber counts and whether the viewer is subscribed."""
    channel = views.channel_profile(db, username, current_user.id)
    return api_response(channel, "User channel fetched successfully")


@router.get("/history")
def get_watch_history(
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    history = views.watch_history(db, current_user.id, page, limit)
    return api_response(history, "Watch history fetched successfully")
