from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
import secrets
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from bloghub.models import Session as SessionModel, utcnow
from bloghub.config import get_settings

settings = get_settings()
logger = structlog.get_logger()

# Argon2id with the library's default cost parameters
ph = PasswordHasher()


def hash_password(password: str) -> str:
    """
    Argon2id hash of a plaintext password.

    The encoded string carries its own salt and cost parameters.
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a plaintext password against a stored Argon2 hash.

    Uses constant-time comparison internally.
    Returns False for any mismatch or unreadable hash.
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_session_token() -> str:
    """
    Generate cryptographically secure session token.

    32 bytes (256 bits) of randomness, hex encoded = 64 characters.
    """
    return secrets.token_hex(32)


def session_window() -> timedelta:
    return timedelta(hours=settings.session_expire_hours)


def session_expires_at(session: SessionModel) -> datetime:
    return session.created_at + session_window()


def is_session_expired(session: SessionModel, now: Optional[datetime] = None) -> bool:
    """
    A session is live while now - created_at stays below the window.
    """
    now = now or utcnow()
    return now - session.created_at >= session_window()


def create_session(db: Session, user_id: str) -> SessionModel:
    """
    Start a session for user_id, stamped with the current time.

    The returned record's token is what goes into the cookie.
    """
    session = SessionModel(
        token=generate_session_token(),
        user_id=user_id,
        created_at=utcnow(),
    )

    db.add(session)
    db.commit()
    db.refresh(session)

    logger.info("auth.session_created", user_id=user_id)
    return session


def get_session(db: Session, token: str) -> Optional[SessionModel]:
    """
    Raw session lookup. Does not check expiry; use validate_token or the
    access guard for that.
    """
    if not token:
        return None
    return db.query(SessionModel).filter(SessionModel.token == token).first()


def delete_session(db: Session, token: str) -> bool:
    """
    Remove one session by token.

    Idempotent. Returns True if a session was deleted, False if not found.
    """
    result = db.query(SessionModel).filter(
        SessionModel.token == token
    ).delete()

    db.commit()
    return result > 0


def delete_user_sessions(db: Session, user_id: str, commit: bool = True) -> int:
    """
    Log a user out everywhere.

    Used on account deletion so every concurrent login dies with it.
    Pass commit=False to fold the delete into a larger transaction.
    Returns how many sessions were removed.
    """
    result = db.query(SessionModel).filter(
        SessionModel.user_id == user_id
    ).delete(synchronize_session=False)

    if commit:
        db.commit()
    return result


def validate_token(db: Session, token: str) -> bool:
    """
    Authoritative expiry check.

    An expired session is deleted on the spot and reported invalid.
    """
    session = get_session(db, token)
    if not session:
        return False

    if is_session_expired(session):
        user_id = session.user_id
        delete_session(db, token)
        logger.info("auth.session_expired", user_id=user_id)
        return False

    return True


def refresh_session(db: Session, token: str) -> Optional[SessionModel]:
    """
    Rotate a live session to a fresh token.

    The old token is deleted. Returns None if the token is not a live session.
    """
    if not validate_token(db, token):
        return None

    user_id = get_session(db, token).user_id
    new_session = create_session(db, user_id)
    delete_session(db, token)
    return new_session


def cleanup_expired_sessions(db: Session) -> int:
    """
    Bulk-delete every session past the window.

    Returns how many were removed.
    """
    cutoff = utcnow() - session_window()
    result = db.query(SessionModel).filter(
        SessionModel.created_at <= cutoff
    ).delete(synchronize_session=False)

    db.commit()
    if result:
        logger.info("auth.expired_sessions_removed", count=result)
    return result
