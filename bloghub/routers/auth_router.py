from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import Optional

import structlog

from bloghub.auth import create_session, delete_session, refresh_session, verify_password
from bloghub.cookies import clear_session_cookie, set_session_cookie
from bloghub.database import get_db
from bloghub.dependencies import AuthContext, get_auth_context, get_auth_token, get_optional_user
from bloghub.errors import Forbidden, InvalidSession, Unauthorized, ValidationError
from bloghub.models import User
from bloghub.schemas import (
    DeleteAccountRequest,
    DeleteAccountResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    SignupRequest,
    UserEnvelope,
)
from bloghub.users import create_user, delete_user_cascade, find_user_by_identifier

router = APIRouter(prefix="/auth", tags=["auth"])
logger = structlog.get_logger()


@router.post("/signup", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def signup(
    request: SignupRequest,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Create new user account and log it in.

    Error cases:
    - 400: Validation failed
    - 409: Username, email or phone number already taken
    """
    user = create_user(
        db,
        username=request.username,
        email=request.email,
        phone_number=request.phone_number,
        gender=request.gender,
        password=request.password,
    )

    session = create_session(db, user.id)
    set_session_cookie(response, session.token)

    return {"message": "Account created successfully", "user": user}


@router.post("/login", response_model=UserEnvelope)
def login(
    request: LoginRequest,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Log in with an email or username and start a session.

    The identifier is looked up as an email when it contains '@',
    otherwise as a username. Failures name the field that was wrong.
    """
    identifier = request.email_or_username
    user = find_user_by_identifier(db, identifier)

    if not user:
        kind = "email" if "@" in identifier else "username"
        logger.info("auth.login_failed", reason="unknown_identifier")
        raise Unauthorized(
            "Invalid credentials",
            errors={"emailOrUsername": f"No account found with this {kind}"},
        )

    if not verify_password(request.password, user.password_hash):
        logger.info("auth.login_failed", reason="bad_password", user_id=user.id)
        raise Unauthorized(
            "Invalid credentials",
            errors={"password": "Incorrect password"},
        )

    session = create_session(db, user.id)
    set_session_cookie(response, session.token)

    logger.info("auth.login_succeeded", user_id=user.id)
    return {"message": "Login successful", "user": user}


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    token: Optional[str] = Depends(get_auth_token),
    db: Session = Depends(get_db)
):
    """
    End the current session and clear the cookie.

    Succeeds for anonymous callers and already-ended sessions too.
    """
    if token:
        delete_session(db, token)

    clear_session_cookie(response)

    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=MeResponse)
def get_current_user_info(user: Optional[User] = Depends(get_optional_user)):
    """
    Who is logged in. Anonymous callers get {"user": null}, never an error.
    """
    return {"user": user}


@router.post("/refresh", response_model=UserEnvelope)
def refresh(
    response: Response,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """
    Swap the current session token for a fresh one with a full window.
    """
    session = refresh_session(db, ctx.token)
    if session is None:
        raise InvalidSession()

    set_session_cookie(response, session.token)
    return {"message": "Session refreshed", "user": ctx.user}


@router.delete("/delete-account", response_model=DeleteAccountResponse)
def delete_account(
    request: DeleteAccountRequest,
    response: Response,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """
    Delete the caller's own account with its posts and sessions.

    Error cases:
    - 400: password missing or wrong
    - 403: admin accounts cannot delete themselves
    """
    user = ctx.user

    if not verify_password(request.password, user.password_hash):
        raise ValidationError("The password you entered is incorrect")

    if user.is_admin:
        raise Forbidden("Admin accounts cannot be deleted through this interface")

    posts_deleted = delete_user_cascade(db, user)
    clear_session_cookie(response)

    return DeleteAccountResponse(message="Account deleted successfully", posts_deleted=posts_deleted)
