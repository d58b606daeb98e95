import pytest

from hr_workflow.core.enums import Role
from hr_workflow.core.exceptions import AuthenticationError
from hr_workflow.users.model import User
from hr_workflow.users.service import AuthService

from conftest import InMemoryUsers


def test_authenticate_returns_session_user(users_repo):
    s_user = AuthService(users_repo).authenticate(" lead ", "secret123")
    assert s_user.user_id == 2
    assert s_user.role == Role.TEAM_LEADER


@pytest.mark.parametrize("username, password", [("lead", "wrong"), ("ghost", "secret123"), ("", ""), (None, None), (5, "secret123"), ("lead", ["secret123"])])
def test_bad_credentials_are_rejected(users_repo, username, password):
    with pytest.raises(AuthenticationError):
        AuthService(users_repo).authenticate(username, password)


def test_inactive_and_placeholder_accounts_cannot_log_in():
    users = InMemoryUsers(
        {
            1: User(1, "Old", "old", "CHANGE_ME", Role.EMPLOYEE),
            2: User(2, "Gone", "gone", "CHANGE_ME", Role.EMPLOYEE, is_active=False),
        }
    )
    with pytest.raises(AuthenticationError):
        AuthService(users).authenticate("old", "CHANGE_ME")
    with pytest.raises(AuthenticationError):
        AuthService(users).authenticate("gone", "CHANGE_ME")
