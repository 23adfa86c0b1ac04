# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Account-status checks run before any credential-consuming operation.

Each entry point has a rule table mapping :class:`AccountStatus` to the
error it raises; a status absent from the table passes through.  Because
``User.status`` is already a total function of the (active, suspend) flags,
there is no evaluation order to get wrong.

=============  ===============  ==============  ==============  ===========
status         sign-in          signup          google          session
=============  ===============  ==============  ==============  ===========
ACTIVE         pass             409 conflict    pass            pass
SUSPENDED      403 suspended    403 suspended   403 suspended   403
DELETED        403 no account   pass (reclaim)  pass (reclaim)  403 deleted
DEACTIVATED    403 inactive     403 inactive    403 inactive    403
no user        404              pass            pass            n/a
=============  ===============  ==============  ==============  ===========
"""

from typing import Optional

from core.errors import ConflictError, ForbiddenError, NotFoundError, ServiceError
from models.user import AccountStatus, User

_SUSPENDED = "Your account has been suspended. Please contact support."
_SUSPENDED_EMAIL = "This email is linked to a suspended account. Please contact support."
_INACTIVE = "Your account is inactive. Please contact support."
_NO_ACCOUNT = "No account found with this email. Please register first."
_DELETED = "Your account has been deleted. Please contact support."
_EXISTS = "An account with this email already exists."


def _suspended(message: str = _SUSPENDED) -> ServiceError:
    return ForbiddenError(message, verify=True, error_code="account_suspended")


def _inactive() -> ServiceError:
    return ForbiddenError(_INACTIVE, verify=True, error_code="account_inactive")


def _deleted(message: str) -> ServiceError:
    return ForbiddenError(message, verify=True, error_code="account_deleted")


_SIGNIN_RULES = {
    AccountStatus.SUSPENDED: lambda: _suspended(),
    AccountStatus.DELETED: lambda: _deleted(_NO_ACCOUNT),
    AccountStatus.DEACTIVATED: _inactive,
}

_SIGNUP_RULES = {
    AccountStatus.ACTIVE: lambda: ConflictError(_EXISTS, error_code="email_taken"),
    AccountStatus.SUSPENDED: lambda: _suspended(_SUSPENDED_EMAIL),
    AccountStatus.DEACTIVATED: _inactive,
}

_GOOGLE_RULES = {
    AccountStatus.SUSPENDED: lambda: _suspended(),
    AccountStatus.DEACTIVATED: _inactive,
}

_SESSION_RULES = {
    AccountStatus.SUSPENDED: lambda: _suspended(),
    AccountStatus.DELETED: lambda: _deleted(_DELETED),
    AccountStatus.DEACTIVATED: _inactive,
}


def _apply(rules: dict, user: User) -> None:
    make_error = rules.get(user.status)
    if make_error is not None:
        raise make_error()


def check_signin_access(user: Optional[User]) -> User:
    """Login, login verification and password-reset requests."""
    if user is None:
        raise NotFoundError(_NO_ACCOUNT, error_code="account_not_found")
    _apply(_SIGNIN_RULES, user)
    return user


def check_signup_access(user: Optional[User]) -> None:
    """A missing or soft-deleted account leaves the e-mail free to register."""
    if user is not None:
        _apply(_SIGNUP_RULES, user)


def check_google_access(user: Optional[User]) -> None:
    """Federated entry; an unknown e-mail is an implicit signup."""
    if user is not None:
        _apply(_GOOGLE_RULES, user)


def check_session_access(user: User) -> None:
    """Refresh-token rotation and other already-authenticated paths."""
    _apply(_SESSION_RULES, user)
