"""Access guard: token → user resolution and the admin / ownership predicates."""

from datetime import timedelta

import pytest
from sqlalchemy import text

from bloghub.auth import create_session, get_session
from bloghub.dependencies import (
    authenticate_request,
    check_ownership_or_admin,
    require_admin,
    require_ownership_or_admin,
)
from bloghub.errors import AdminRequired, Forbidden, InvalidSession, Unauthorized, UserNotFound
from bloghub.models import User, utcnow


# ═══════════════════════════════════════════════════════════
# authenticate_request
# ═══════════════════════════════════════════════════════════


def test_missing_token_is_unauthorized(db):
    with pytest.raises(Unauthorized) as exc:
        authenticate_request(db, None)
    assert type(exc.value) is Unauthorized


def test_unknown_token_is_invalid_session(db):
    with pytest.raises(InvalidSession):
        authenticate_request(db, "f" * 64)


def test_resolves_the_owning_user(db, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    alice_token = create_session(db, alice.id).token
    bob_token = create_session(db, bob.id).token

    assert authenticate_request(db, alice_token).user.id == alice.id
    assert authenticate_request(db, bob_token).user.id == bob.id


def test_returns_the_token(db, make_user):
    user = make_user()
    token = create_session(db, user.id).token
    assert authenticate_request(db, token).token == token


def test_expired_session_is_rejected_and_removed(db, make_user):
    user = make_user()
    session = create_session(db, user.id)
    token = session.token
    session.created_at = utcnow() - timedelta(hours=25)
    db.commit()

    with pytest.raises(InvalidSession):
        authenticate_request(db, token)
    assert get_session(db, token) is None


def test_orphaned_session_is_removed(db, make_user):
    user = make_user()
    token = create_session(db, user.id).token

    # Drop the user without letting the foreign key cascade take the session along
    db.commit()
    db.execute(text("PRAGMA foreign_keys=OFF"))
    db.query(User).filter(User.id == user.id).delete()
    db.commit()
    db.execute(text("PRAGMA foreign_keys=ON"))
    db.commit()

    with pytest.raises(UserNotFound):
        authenticate_request(db, token)
    assert get_session(db, token) is None


# ═══════════════════════════════════════════════════════════
# require_admin
# ═══════════════════════════════════════════════════════════


def test_require_admin_denies_regular_users(db, make_user):
    user = make_user("reader")
    token = create_session(db, user.id).token

    with pytest.raises(AdminRequired) as exc:
        require_admin(db, token)
    assert exc.value.status_code == 401
    assert exc.value.message == "Admin access required"


def test_require_admin_allows_admins(db, make_user):
    admin = make_user("boss", is_admin=True)
    token = create_session(db, admin.id).token
    assert require_admin(db, token).user.id == admin.id


def test_require_admin_still_needs_a_session(db):
    with pytest.raises(Unauthorized):
        require_admin(db, None)


# ═══════════════════════════════════════════════════════════
# require_ownership_or_admin
# ═══════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "caller_is_owner, caller_is_admin, allowed",
    [
        (True, False, True),
        (False, True, True),
        (True, True, True),
        (False, False, False),
    ],
)
def test_ownership_or_admin_matrix(db, make_user, caller_is_owner, caller_is_admin, allowed):
    caller = make_user("caller", is_admin=caller_is_admin)
    other = make_user("other")
    owner_id = caller.id if caller_is_owner else other.id
    token = create_session(db, caller.id).token

    if allowed:
        assert require_ownership_or_admin(db, token, owner_id).user.id == caller.id
    else:
        with pytest.raises(Forbidden) as exc:
            require_ownership_or_admin(db, token, owner_id)
        assert exc.value.status_code == 403


def test_ownership_check_on_resolved_caller(db, make_user):
    caller = make_user("caller")
    other = make_user("other")
    ctx = authenticate_request(db, create_session(db, caller.id).token)

    assert check_ownership_or_admin(ctx, caller.id) is ctx
    with pytest.raises(Forbidden) as exc:
        check_ownership_or_admin(ctx, other.id, "You can only edit your own posts")
    assert exc.value.message == "You can only edit your own posts"
