"""
Authentication Endpoints

Registration, login and token refresh. Tokens carry only the user id;
every permission is resolved from the grant tables per request.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from taskhub.database import get_db
from taskhub.models import User
from taskhub.schemas.auth import LoginRequest, RefreshRequest, Token, RegisterRequest
from taskhub.schemas.user import UserResponse
from taskhub.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    user_id_from_payload,
    REFRESH_TOKEN_TYPE
)
from taskhub.core.exceptions import AuthenticationError
from taskhub.utils.logging import log_security_event, get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/login", response_model=Token)
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate by login name or email and return a JWT.

    SECURITY: Unknown user and wrong password produce the same error.
    """
    user = db.query(User).filter(
        or_(User.login == credentials.login, User.email == credentials.login)
    ).first()

    if not user:
        log_security_event(
            "failed_login",
            {"reason": "user_not_found", "login": credentials.login},
            logger
        )
        raise AuthenticationError("Invalid credentials")

    if not verify_password(credentials.password, user.hashed_password):
        log_security_event(
            "failed_login",
            {"reason": "invalid_password", "user_id": user.id},
            logger
        )
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        log_security_event(
            "failed_login",
            {"reason": "user_inactive", "user_id": user.id},
            logger
        )
        raise AuthenticationError("User account is inactive")

    access_token = create_access_token({"sub": str(user.id)})
    logger.info(f"Successful login: user={user.id}")

    return Token(
        access_token=access_token,
        token_type="bearer",
        refresh_token=create_refresh_token(user.id)
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    registration: RegisterRequest,
    db: Session = Depends(get_db)
):
    """
    Register a new user.

    A fresh user belongs to no company. They gain standing by creating a
    company or by being added to a resource.
    """
    existing_user = db.query(User).filter(
        or_(User.login == registration.login, User.email == registration.email)
    ).first()

    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this login or email already exists"
        )

    new_user = User(
        login=registration.login,
        user_name=registration.user_name,
        email=registration.email,
        hashed_password=get_password_hash(registration.password),
        is_active=True
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    logger.info(f"New user registered: {new_user.id}")

    return new_user


@router.post("/refresh", response_model=Token)
async def refresh_token(
    request: RefreshRequest,
    db: Session = Depends(get_db)
):
    """
    Exchange a refresh token for a new access token.

    Access tokens are refused here, and refresh tokens are refused by every
    other endpoint.
    """
    payload = decode_access_token(request.refresh_token, token_type=REFRESH_TOKEN_TYPE)
    user_id = user_id_from_payload(payload) if payload else None
    if user_id is None:
        log_security_event("failed_refresh", {"reason": "invalid_token"}, logger)
        raise AuthenticationError("Invalid or expired refresh token")

    user = db.get(User, user_id)
    if not user or not user.is_active:
        log_security_event("failed_refresh", {"reason": "user_unavailable", "user_id": user_id}, logger)
        raise AuthenticationError("Invalid or expired refresh token")

    return Token(access_token=create_access_token({"sub": str(user.id)}), token_type="bearer")
