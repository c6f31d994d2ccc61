"""
Access guard.

Every privileged endpoint resolves "who is calling, and may they do this"
through the functions below. They are plain functions over a database
session and a token so they can be called with an owner id known only
inside a handler; the FastAPI dependencies at the bottom wrap them for
the common cases.
"""
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Cookie, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bloghub.auth import delete_session, get_session, is_session_expired
from bloghub.config import get_settings
from bloghub.database import get_db
from bloghub.errors import AdminRequired, Forbidden, InvalidSession, Unauthorized, UserNotFound
from bloghub.models import User
from bloghub.users import find_user_by_id

settings = get_settings()
logger = structlog.get_logger()


@dataclass
class AuthContext:
    user: User
    token: str


def authenticate_request(db: Session, token: Optional[str]) -> AuthContext:
    """
    Resolve a session token to its user.

    Raises:
    - Unauthorized: no token
    - InvalidSession: unknown or expired token (expired ones are deleted)
    - UserNotFound: session points at a deleted user (session is deleted)
    """
    if not token:
        raise Unauthorized("Unauthorized - Please log in")

    session = get_session(db, token)
    if session is None:
        raise InvalidSession()

    user_id = session.user_id
    if is_session_expired(session):
        delete_session(db, token)
        logger.info("auth.session_expired", user_id=user_id)
        raise InvalidSession("Session expired")

    user = find_user_by_id(db, user_id)
    if user is None:
        delete_session(db, token)
        logger.warning("auth.orphaned_session_removed", user_id=user_id)
        raise UserNotFound()

    return AuthContext(user=user, token=token)


def require_admin(db: Session, token: Optional[str]) -> AuthContext:
    ctx = authenticate_request(db, token)
    if not ctx.user.is_admin:
        raise AdminRequired()
    return ctx


def require_ownership_or_admin(
    db: Session,
    token: Optional[str],
    owner_id: str,
    message: str = "You can only modify your own content",
) -> AuthContext:
    return check_ownership_or_admin(authenticate_request(db, token), owner_id, message)


def check_ownership_or_admin(
    ctx: AuthContext,
    owner_id: str,
    message: str = "You can only modify your own content",
) -> AuthContext:
    """
    Ownership check against an already resolved caller.
    """
    if ctx.user.id != owner_id and not ctx.user.is_admin:
        raise Forbidden(message)
    return ctx


# --------------------- FastAPI dependencies ---------------------

def get_auth_token(
    token: Optional[str] = Cookie(None, alias=settings.cookie_name),
) -> Optional[str]:
    return token


def get_auth_context(
    token: Optional[str] = Depends(get_auth_token),
    db: Session = Depends(get_db),
) -> AuthContext:
    return authenticate_request(db, token)


def get_current_user(ctx: AuthContext = Depends(get_auth_context)) -> User:
    """
    Authenticated user or 401.
    """
    return ctx.user


def get_optional_user(
    token: Optional[str] = Depends(get_auth_token),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Authenticated user, or None when the caller is anonymous, the
    session is no longer valid or the lookup itself failed.
    """
    if not token:
        return None
    try:
        return authenticate_request(db, token).user
    except Unauthorized:
        return None
    except SQLAlchemyError:
        # A store failure reads as "not logged in" here
        db.rollback()
        logger.exception("auth.session_lookup_failed")
        return None


def get_admin_context(
    token: Optional[str] = Depends(get_auth_token),
    db: Session = Depends(get_db),
) -> AuthContext:
    return require_admin(db, token)
