"""Unit tests for account status derivation and the per-entry-point access rules."""

import pytest

from auth.access_gate import (
    check_google_access,
    check_session_access,
    check_signin_access,
    check_signup_access,
)
from core.errors import ConflictError, ForbiddenError, NotFoundError
from models.user import AccountStatus, User, account_status


def _user(active, suspend):
    return User(email="gate@example.com", username="gate", password_hash="x",
                active=active, suspend=suspend)


ACTIVE = (True, False)
SUSPENDED = (True, True)
DELETED = (False, False)
DEACTIVATED = (False, True)


class TestAccountStatus:
    @pytest.mark.parametrize(
        "flags,expected",
        [
            (ACTIVE, AccountStatus.ACTIVE),
            (SUSPENDED, AccountStatus.SUSPENDED),
            (DELETED, AccountStatus.DELETED),
            (DEACTIVATED, AccountStatus.DEACTIVATED),
        ],
    )
    def test_every_flag_combination_maps_to_one_status(self, flags, expected):
        assert account_status(*flags) is expected
        assert _user(*flags).status is expected


class TestSigninGate:
    def test_missing_account_is_not_found(self):
        with pytest.raises(NotFoundError) as exc:
            check_signin_access(None)
        assert exc.value.error_code == "account_not_found"

    def test_active_account_passes(self):
        user = _user(*ACTIVE)
        assert check_signin_access(user) is user

    def test_suspended_wins_over_active_flag(self):
        with pytest.raises(ForbiddenError) as exc:
            check_signin_access(_user(*SUSPENDED))
        assert exc.value.error_code == "account_suspended"
        assert exc.value.verify is True

    def test_deleted_account_reads_as_unregistered(self):
        with pytest.raises(ForbiddenError) as exc:
            check_signin_access(_user(*DELETED))
        assert exc.value.error_code == "account_deleted"
        assert "register" in exc.value.message

    def test_deactivated_account_is_inactive(self):
        with pytest.raises(ForbiddenError) as exc:
            check_signin_access(_user(*DEACTIVATED))
        assert exc.value.error_code == "account_inactive"


class TestSignupGate:
    def test_unknown_email_may_register(self):
        check_signup_access(None)

    def test_deleted_account_may_be_reclaimed(self):
        check_signup_access(_user(*DELETED))

    def test_active_account_conflicts(self):
        with pytest.raises(ConflictError) as exc:
            check_signup_access(_user(*ACTIVE))
        assert exc.value.error_code == "email_taken"

    @pytest.mark.parametrize("flags", [SUSPENDED, DEACTIVATED])
    def test_blocked_accounts_cannot_register_again(self, flags):
        with pytest.raises(ForbiddenError):
            check_signup_access(_user(*flags))


class TestGoogleGate:
    @pytest.mark.parametrize("flags", [ACTIVE, DELETED])
    def test_active_and_deleted_pass(self, flags):
        check_google_access(_user(*flags))

    def test_unknown_email_passes(self):
        check_google_access(None)

    @pytest.mark.parametrize("flags", [SUSPENDED, DEACTIVATED])
    def test_blocked_accounts_are_refused(self, flags):
        with pytest.raises(ForbiddenError):
            check_google_access(_user(*flags))


class TestSessionGate:
    def test_active_passes(self):
        check_session_access(_user(*ACTIVE))

    @pytest.mark.parametrize(
        "flags,code",
        [
            (SUSPENDED, "account_suspended"),
            (DELETED, "account_deleted"),
            (DEACTIVATED, "account_inactive"),
        ],
    )
    def test_non_active_is_refused(self, flags, code):
        with pytest.raises(ForbiddenError) as exc:
            check_session_access(_user(*flags))
        assert exc.value.error_code == code
