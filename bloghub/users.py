"""
Credential store: user records, uniqueness rules and account deletion.

Uniqueness of username, email and phone number is checked up front so
callers get a field-level message, and enforced again by unique
constraints on the normalized columns, which closes the race between two
concurrent sign-ups.
"""
from typing import Optional

import structlog
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from bloghub.auth import delete_user_sessions, hash_password
from bloghub.errors import Conflict, Forbidden, InternalError, NotFound, ValidationError
from bloghub.models import BlogPost, Gender, User

logger = structlog.get_logger()

# Columns a user may change on their own profile
PROFILE_FIELDS = ("username", "email", "phone_number", "gender", "profile_picture")


def normalize(value: str) -> str:
    return value.strip().lower()


def escape_like(value: str) -> str:
    # Search text is matched literally, wildcards included
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def find_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def find_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username_key == normalize(username)).first()


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email_key == normalize(email)).first()


def find_user_by_phone(db: Session, phone_number: str) -> Optional[User]:
    return db.query(User).filter(User.phone_number == phone_number.strip()).first()


def find_user_by_identifier(db: Session, identifier: str) -> Optional[User]:
    """
    Anything containing '@' is treated as an email, everything else as a
    username.
    """
    if "@" in identifier:
        return find_user_by_email(db, identifier)
    return find_user_by_username(db, identifier)


def _check_unique(
    db: Session,
    username: Optional[str] = None,
    email: Optional[str] = None,
    phone_number: Optional[str] = None,
    exclude_id: Optional[str] = None,
):
    checks = (
        ("username", username, find_user_by_username, "Username already exists"),
        ("email", email, find_user_by_email, "Email already exists"),
        ("phoneNumber", phone_number, find_user_by_phone, "Phone number already exists"),
    )
    for field, value, finder, message in checks:
        if value is None:
            continue
        existing = finder(db, value)
        if existing is not None and existing.id != exclude_id:
            raise Conflict(message, errors={field: message})


def _commit_or_conflict(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # Lost a race against a concurrent write of the same key
        raise Conflict("Username, email or phone number already exists")


def create_user(
    db: Session,
    username: str,
    email: str,
    phone_number: str,
    password: str,
    gender: Gender = Gender.other,
    is_admin: bool = False,
) -> User:
    _check_unique(db, username=username, email=email, phone_number=phone_number)

    user = User(
        username=username.strip(),
        username_key=normalize(username),
        email=email.strip(),
        email_key=normalize(email),
        phone_number=phone_number.strip(),
        gender=gender,
        password_hash=hash_password(password),
        is_admin=is_admin,
    )
    db.add(user)
    _commit_or_conflict(db)
    db.refresh(user)

    logger.info("users.created", user_id=user.id, is_admin=is_admin)
    return user


def update_user(db: Session, user: User, changes: dict, allow_admin_flag: bool = False) -> User:
    """
    Apply profile changes. Keys outside PROFILE_FIELDS are ignored, except
    is_admin when allow_admin_flag is set. None only counts for
    profile_picture, where it removes the picture.
    """
    allowed = PROFILE_FIELDS + (("is_admin",) if allow_admin_flag else ())
    changes = {
        k: v for k, v in changes.items()
        if k in allowed and (v is not None or k == "profile_picture")
    }

    _check_unique(
        db,
        username=changes.get("username"),
        email=changes.get("email"),
        phone_number=changes.get("phone_number"),
        exclude_id=user.id,
    )

    for field, value in changes.items():
        setattr(user, field, value)
    if "username" in changes:
        user.username_key = normalize(changes["username"])
    if "email" in changes:
        user.email_key = normalize(changes["email"])

    _commit_or_conflict(db)
    db.refresh(user)

    logger.info("users.updated", user_id=user.id, fields=sorted(changes))
    return user


def list_users(db: Session, page: int = 1, limit: int = 10, search: str = "") -> tuple[list[User], int]:
    """
    Page through users, optionally filtered by a case-insensitive substring
    of username or email.
    """
    query = db.query(User)
    if search:
        pattern = f"%{escape_like(normalize(search))}%"
        query = query.filter(or_(
            User.username_key.like(pattern, escape="\\"),
            User.email_key.like(pattern, escape="\\"),
        ))

    total = query.count()
    users = (
        query.order_by(User.created_at)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return users, total


def toggle_admin(db: Session, user_id: str, acting_admin_id: str) -> User:
    if user_id == acting_admin_id:
        raise ValidationError("Cannot modify your own admin status")

    user = find_user_by_id(db, user_id)
    if not user:
        raise NotFound("User not found")

    user.is_admin = not user.is_admin
    db.commit()
    db.refresh(user)

    logger.info("users.admin_toggled", user_id=user_id, by=acting_admin_id, is_admin=user.is_admin)
    return user


def delete_user_cascade(db: Session, user: User) -> int:
    """
    Delete a user together with everything that hangs off them.

    Order: authored posts (with their comments and likes), sessions, the
    user record. All three steps share one transaction, so a failure leaves
    nothing half-deleted.

    Returns number of posts deleted.
    """
    user_id = user.id
    try:
        posts = db.query(BlogPost).filter(BlogPost.author_id == user_id).all()
        for post in posts:
            db.delete(post)
        db.flush()

        sessions_deleted = delete_user_sessions(db, user_id, commit=False)
        db.delete(user)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("users.cascade_delete_failed", user_id=user_id)
        raise InternalError("Failed to delete user account")

    logger.info(
        "users.deleted",
        user_id=user_id,
        posts_deleted=len(posts),
        sessions_deleted=sessions_deleted,
    )
    return len(posts)


def delete_user_as_admin(db: Session, user_id: str, acting_admin_id: str) -> int:
    """
    Admin-initiated deletion. Admins cannot delete themselves or other
    admin accounts.
    """
    if user_id == acting_admin_id:
        raise ValidationError("Cannot delete your own account")

    user = find_user_by_id(db, user_id)
    if not user:
        raise NotFound("User not found")
    if user.is_admin:
        raise Forbidden("Admin accounts cannot be deleted")

    return delete_user_cascade(db, user)


def ensure_admin(db: Session, username: str, email: str, phone_number: str, password: str) -> User:
    """
    Make sure an administrator with this username exists.

    Creates the account if missing and promotes it if it exists without the
    admin flag. The password of an existing account is left untouched.
    """
    user = find_user_by_username(db, username)
    if user is None:
        return create_user(db, username, email, phone_number, password, is_admin=True)

    if not user.is_admin:
        user.is_admin = True
        db.commit()
        db.refresh(user)
        logger.info("users.promoted_to_admin", user_id=user.id)
    return user
