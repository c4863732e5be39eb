"""UserAuthManager: registration, bcrypt verification and audit records."""

from __future__ import annotations

import pytest

from app.domain.exceptions import AuthenticationError, ConflictError, ValidationError
from app.services.application.auth_service import UserAuthManager


@pytest.fixture()
def auth_manager(db_handler, mock_audit_logger):
    return UserAuthManager(db_handler, audit_logger=mock_audit_logger)


def test_register_then_authenticate(auth_manager, auth_repo):
    user = auth_manager.register_user("gardener", "s3cretpass", email="g@example.com")

    assert user["username"] == "gardener"
    assert "password_hash" not in user
    stored = auth_repo.get_user_auth_by_username("gardener")
    assert stored["password_hash"] != "s3cretpass"

    assert auth_manager.authenticate_user("gardener", "s3cretpass")["id"] == user["id"]


def test_wrong_password_is_rejected_and_audited(auth_manager, mock_audit_logger):
    auth_manager.register_user("gardener", "s3cretpass")

    with pytest.raises(AuthenticationError):
        auth_manager.authenticate_user("gardener", "wrong-password")

    last = mock_audit_logger.log_event.call_args.kwargs
    assert last["action"] == "login"
    assert last["outcome"] == "denied"


def test_unknown_user_is_rejected(auth_manager):
    with pytest.raises(AuthenticationError):
        auth_manager.authenticate_user("nobody", "whatever1")


def test_duplicate_username_conflicts(auth_manager):
    auth_manager.register_user("gardener", "s3cretpass")

    with pytest.raises(ConflictError):
        auth_manager.register_user("gardener", "anotherpass")


def test_short_password_is_rejected(auth_manager):
    with pytest.raises(ValidationError):
        auth_manager.register_user("gardener", "short")


def test_list_user_ids_are_plant_owners(auth_manager, seed):
    seed.create_plant(user_id=3)
    seed.create_plant(user_id=1)
    seed.create_plant(user_id=3)

    assert auth_manager.list_user_ids() == [1, 3]
