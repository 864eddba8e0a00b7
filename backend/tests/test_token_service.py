from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from conftest import create_user
from videotube.core.exceptions import (
    AuthenticationError,
    RefreshTokenReuseError,
    TokenGenerationError,
)
from videotube.core.security import create_refresh_token, decode_access_token, hash_refresh_token
from videotube.services.token_service import token_service
from videotube.services.user_service import user_service


def test_issue_token_pair_persists_refresh_digest(db):
    user = create_user(db)

    access, refresh = token_service.issue_token_pair(db, user.id)

    db.refresh(user)
    assert user.refresh_token_hash == hash_refresh_token(refresh)
    assert decode_access_token(access)["sub"] == str(user.id)


def test_issue_token_pair_for_unknown_user_is_masked(db):
    with pytest.raises(TokenGenerationError) as exc:
        token_service.issue_token_pair(db, 999)
    assert exc.value.status_code == 500
    assert "999" not in exc.value.message


def test_store_failure_during_issuance_is_masked(db, monkeypatch):
    user = create_user(db)

    def broken_store(*args, **kwargs):
        raise OperationalError("UPDATE users", {}, Exception("disk I/O error"))

    monkeypatch.setattr(user_service, "set_refresh_token_hash", broken_store)

    with pytest.raises(TokenGenerationError) as exc:
        token_service.issue_token_pair(db, user.id)
    assert "disk" not in exc.value.message


def test_validate_accepts_current_token(db):
    user = create_user(db)
    _, refresh = token_service.issue_token_pair(db, user.id)

    assert token_service.validate_refresh_token(db, refresh) == user.id


def test_validate_rejects_missing_token(db):
    with pytest.raises(AuthenticationError) as exc:
        token_service.validate_refresh_token(db, None)
    assert exc.value.message == "Unauthorized request"


def test_validate_rejects_token_of_deleted_user(db):
    token = create_refresh_token({"sub": "4242"})
    with pytest.raises(AuthenticationError) as exc:
        token_service.validate_refresh_token(db, token)
    assert exc.value.message == "Invalid refresh token"


def test_validate_rejects_expired_token(db):
    user = create_user(db)
    token = create_refresh_token({"sub": str(user.id)}, expires_delta=timedelta(seconds=-1))
    with pytest.raises(AuthenticationError) as exc:
        token_service.validate_refresh_token(db, token)
    assert exc.value.message == "Refresh token has expired"


def test_validate_rejects_validly_signed_but_superseded_token(db):
    user = create_user(db)
    _, first = token_service.issue_token_pair(db, user.id)
    _, second = token_service.issue_token_pair(db, user.id)

    with pytest.raises(RefreshTokenReuseError) as exc:
        token_service.validate_refresh_token(db, first)
    assert exc.value.message == "Refresh token is expired or used"
    assert token_service.validate_refresh_token(db, second) == user.id


def test_rotation_invalidates_presented_token(db):
    user = create_user(db)
    _, original = token_service.issue_token_pair(db, user.id)

    _, rotated = token_service.rotate(db, user.id, original)

    assert rotated != original
    with pytest.raises(RefreshTokenReuseError):
        token_service.validate_refresh_token(db, original)
    assert token_service.validate_refresh_token(db, rotated) == user.id


def test_racing_rotations_with_same_token_let_exactly_one_win(db):
    user = create_user(db)
    _, shared = token_service.issue_token_pair(db, user.id)

    # Both requests pass validation before either writes
    assert token_service.validate_refresh_token(db, shared) == user.id
    assert token_service.validate_refresh_token(db, shared) == user.id

    _, winner = token_service.rotate(db, user.id, shared)
    with pytest.raises(RefreshTokenReuseError):
        token_service.rotate(db, user.id, shared)

    db.refresh(user)
    assert user.refresh_token_hash == hash_refresh_token(winner)


def test_revoke_clears_stored_token(db):
    user = create_user(db)
    _, refresh = token_service.issue_token_pair(db, user.id)

    token_service.revoke(db, user.id)

    db.refresh(user)
    assert user.refresh_token_hash is None
    with pytest.raises(RefreshTokenReuseError):
        token_service.validate_refresh_token(db, refresh)
