"""Identity and session service."""

from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from vidtube.exceptions import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from vidtube.models.user import User
from vidtube.readmodels.collections import get_collection
from vidtube.services.logging_service import app_logger
from vidtube.services.media_service import MediaStorage
from vidtube.utils.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from vidtube.utils.validators import clean_text, normalize_email, normalize_username, require_fields


class UserService:
    """Service for registration, sessions and profile updates."""

    @staticmethod
    def to_document(user: User) -> dict:
        """Public view of a user; credentials and the rotation token are never included."""
        return get_collection("users").to_document(user)

    @staticmethod
    def register_user(
        db: Session,
        storage: MediaStorage,
        full_name: Optional[str],
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
        avatar_path: Optional[str],
        cover_image_path: Optional[str] = None
    ) -> dict:
        """
        Register a new user.

        Args:
            db: Database session
            storage: Media storage for the avatar and cover image
            full_name: Display name
            username: Handle, stored lowercase
            email: Email address
            password: Plain-text password
            avatar_path: Staged avatar file (required)
            cover_image_path: Staged cover image file

        Returns:
            The created user document

        Raises:
            ValidationError: On a blank field, malformed email or handle, or missing avatar
            ConflictError: If the handle or email is taken
        """
        require_fields(fullName=full_name, username=username, email=email, password=password)

        email = normalize_email(email)
        username = normalize_username(username)

        existing = db.query(User).filter(or_(User.username == username, User.email == email)).first()
        if existing:
            raise ConflictError("User with email or username already exists")

        if not avatar_path:
            raise ValidationError("Avatar file is required")

        avatar = storage.upload_asset(avatar_path)
        cover_image = None
        if cover_image_path:
            try:
                cover_image = storage.upload_asset(cover_image_path)
            except Exception:
                storage.delete_asset(avatar.url)
                raise

        user = User(
            full_name=clean_text(full_name, max_length=100),
            username=username,
            email=email,
            hashed_password=hash_password(password),
            avatar=avatar.url,
            cover_image=cover_image.url if cover_image else ""
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            storage.delete_asset(avatar.url)
            if cover_image:
                storage.delete_asset(cover_image.url)
            raise ConflictError("User with email or username already exists")
        db.refresh(user)

        app_logger.info("User registered", user_id=str(user.id))
        return UserService.to_document(user)

    @staticmethod
    def issue_tokens(db: Session, user: User) -> Tuple[str, str]:
        """Mint an access/refresh pair and store the refresh token for rotation."""
        access_token = create_access_token({
            "sub": str(user.id),
            "username": user.username,
            "email": user.email
        })
        refresh_token = create_refresh_token({"sub": str(user.id)})

        user.refresh_token = refresh_token
        db.commit()
        return access_token, refresh_token

    @staticmethod
    def login(
        db: Session,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str]
    ) -> Tuple[dict, str, str]:
        """
        Authenticate with a handle or an email.

        Returns:
            Tuple of (user document, access token, refresh token)

        Raises:
            ValidationError: If no identifier or no password is given
            NotFoundError: If no account matches
            UnauthorizedError: If the password is wrong
        """
        if not (username and username.strip()) and not (email and email.strip()):
            raise ValidationError("Username or email is required")
        require_fields(password=password)

        filters = []
        if username and username.strip():
            filters.append(User.username == username.strip().lower())
        if email and email.strip():
            filters.append(User.email == email.strip().lower())
        user = db.query(User).filter(or_(*filters)).first()

        if not user:
            raise NotFoundError("User does not exist")

        if not verify_password(password, user.hashed_password):
            raise UnauthorizedError("Invalid user credentials")

        access_token, refresh_token = UserService.issue_tokens(db, user)
        app_logger.info("User logged in", user_id=str(user.id))
        return UserService.to_document(user), access_token, refresh_token

    @staticmethod
    def logout(db: Session, user: User) -> None:
        """Clear the stored rotation token so no refresh token is honoured."""
        user.refresh_token = None
        db.commit()

    @staticmethod
    def refresh(db: Session, token: Optional[str]) -> Tuple[str, str]:
        """
        Rotate a session.

        The presented refresh token must be the one currently stored on the
        user; it is replaced, so each refresh token works once.

        Raises:
            UnauthorizedError: If the token is missing, invalid, expired or already rotated
        """
        if not token:
            raise UnauthorizedError("Unauthorized request")

        payload = decode_refresh_token(token)
        if payload is None:
            raise UnauthorizedError("Invalid refresh token")

        user = db.get(User, _user_id(payload["sub"]))
        if user is None:
            raise UnauthorizedError("Invalid refresh token")

        if user.refresh_token != token:
            raise UnauthorizedError("Refresh token is expired or used")

        return UserService.issue_tokens(db, user)

    @staticmethod
    def change_password(db: Session, user: User, old_password: str, new_password: str) -> None:
        """
        Raises:
            ValidationError: If the old password is wrong
        """
        require_fields(oldPassword=old_password, newPassword=new_password)
        if not verify_password(old_password, user.hashed_password):
            raise ValidationError("Invalid old password")

        user.hashed_password = hash_password(new_password)
        db.commit()
        app_logger.info("Password changed", user_id=str(user.id))

    @staticmethod
    def update_account(db: Session, user: User, full_name: str, email: str) -> dict:
        require_fields(fullName=full_name, email=email)

        email = normalize_email(email)

        taken = db.query(User).filter(User.email == email, User.id != user.id).first()
        if taken:
            raise ConflictError("Email is already in use")

        user.full_name = clean_text(full_name, max_length=100)
        user.email = email
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Email is already in use")
        db.refresh(user)
        return UserService.to_document(user)

    @staticmethod
    def update_image(db: Session, storage: MediaStorage, user: User, field: str, local_path: Optional[str]) -> dict:
        """
        Replace the avatar or cover image; the superseded asset is purged.

        Args:
            field: ``avatar`` or ``cover_image``
        """
        if not local_path:
            label = "Avatar" if field == "avatar" else "Cover image"
            raise ValidationError(f"{label} file is missing")

        def save(asset):
            setattr(user, field, asset.url)
            try:
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                raise

        storage.replace_asset(local_path, getattr(user, field), on_uploaded=save)
        db.refresh(user)
        return UserService.to_document(user)


def _user_id(subject: str) -> UUID:
    try:
        return UUID(subject)
    except (ValueError, TypeError):
        raise UnauthorizedError("Invalid refresh token")
