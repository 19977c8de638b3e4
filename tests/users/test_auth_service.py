from __future__ import annotations

import pytest

from geo_attendance.core.enums import Role
from geo_attendance.core.exceptions import AuthenticationError, ValidationError
from geo_attendance.users.model import User


def test_login_returns_session_user(container):
    user = container.auth_service.authenticate("arjun", "secret123")

    assert user.user_id == 3
    assert user.role == Role.EMPLOYEE
    assert user.company_id == 1


@pytest.mark.parametrize("username,password", [("arjun", "wrong"), ("ghost", "secret123")])
def test_bad_credentials(container, username, password):
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate(username, password)


def test_blank_credentials_are_a_validation_error(container):
    with pytest.raises(ValidationError):
        container.auth_service.authenticate("  ", "secret123")


def test_inactive_and_placeholder_accounts_cannot_log_in(container):
    container.users_repo.add(
        User(user_id=10, full_name="Old", username="old", password_hash="CHANGE_ME", role=Role.EMPLOYEE, company_id=1)
    )
    container.users_repo.add(
        User(
            user_id=11,
            full_name="Gone",
            username="gone",
            password_hash=container.users_repo.get_by_id(3).password_hash,
            role=Role.EMPLOYEE,
            company_id=1,
            is_active=False,
        )
    )

    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("old", "CHANGE_ME")
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("gone", "secret123")
