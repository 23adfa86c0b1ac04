"""Unit tests for the OTP challenge store.

Covers:
- One live challenge per e-mail
- Wrong-code counting and lockout
- Expiry
- Single consumption
- Client-side discard and the expiry sweep
"""

from datetime import timedelta

import pytest

from auth.otp import (
    consume_challenge,
    discard_challenge,
    issue_challenge,
    sweep_expired_challenges,
    verify_challenge,
)
from core.config import settings
from core.errors import AuthenticationError, NotFoundError, OtpExpiredError, ValidationError
from database import SessionLocal, utcnow
from models.otp import PURPOSE_LOGIN, PURPOSE_SIGNUP, OtpChallenge

from conftest import KNOWN_VISITOR


def _issue(db, email="otp@example.com", purpose=PURPOSE_SIGNUP):
    return issue_challenge(
        db,
        email=email,
        purpose=purpose,
        username="otp-user",
        password_hash="hash",
        visitor_id=KNOWN_VISITOR,
    )


def _wrong(code):
    return "100000" if code != "100000" else "100001"


class TestIssue:
    def test_challenge_has_code_and_deadline(self, db):
        challenge = _issue(db)
        assert len(challenge.otp_code) == 6
        assert challenge.attempts == 0
        lifetime = challenge.expires_at - challenge.created_at
        assert abs(lifetime.total_seconds() - settings.otp_ttl_seconds) < 2

    def test_new_challenge_supersedes_old_one(self, db):
        first = _issue(db)
        first_id, first_code = first.otp_id, first.otp_code
        second = _issue(db)
        assert db.query(OtpChallenge).filter(OtpChallenge.email == "otp@example.com").count() == 1
        with pytest.raises(NotFoundError):
            verify_challenge(db, first_id, first_code, PURPOSE_SIGNUP)
        assert verify_challenge(db, second.otp_id, second.otp_code, PURPOSE_SIGNUP).id == second.id

    def test_challenges_for_other_emails_survive(self, db):
        _issue(db, email="a@example.com")
        _issue(db, email="b@example.com")
        assert db.query(OtpChallenge).count() == 2


class TestVerify:
    def test_correct_code_returns_challenge(self, db):
        challenge = _issue(db)
        assert verify_challenge(db, challenge.otp_id, challenge.otp_code, PURPOSE_SIGNUP) is not None

    def test_unknown_id_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            verify_challenge(db, "does-not-exist", "123456", PURPOSE_SIGNUP)

    def test_missing_id_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            verify_challenge(db, None, "123456", PURPOSE_SIGNUP)

    def test_purpose_must_match(self, db):
        challenge = _issue(db, purpose=PURPOSE_LOGIN)
        with pytest.raises(NotFoundError):
            verify_challenge(db, challenge.otp_id, challenge.otp_code, PURPOSE_SIGNUP)

    def test_missing_code_is_a_validation_error(self, db):
        challenge = _issue(db)
        with pytest.raises(ValidationError):
            verify_challenge(db, challenge.otp_id, "", PURPOSE_SIGNUP)

    def test_wrong_code_counts_attempts(self, db):
        challenge = _issue(db)
        for expected in (1, 2, 3):
            with pytest.raises(AuthenticationError) as exc:
                verify_challenge(db, challenge.otp_id, _wrong(challenge.otp_code), PURPOSE_SIGNUP)
            assert exc.value.error_code == "otp_invalid"
            db.refresh(challenge)
            assert challenge.attempts == expected
        # Still usable below the cap
        assert verify_challenge(db, challenge.otp_id, challenge.otp_code, PURPOSE_SIGNUP)

    def test_challenge_is_deleted_at_attempt_cap(self, db):
        challenge = _issue(db)
        otp_id, code = challenge.otp_id, challenge.otp_code
        for _ in range(settings.otp_max_attempts - 1):
            with pytest.raises(AuthenticationError):
                verify_challenge(db, otp_id, _wrong(code), PURPOSE_SIGNUP)
        with pytest.raises(AuthenticationError) as exc:
            verify_challenge(db, otp_id, _wrong(code), PURPOSE_SIGNUP)
        assert exc.value.error_code == "otp_locked"
        with pytest.raises(NotFoundError):
            verify_challenge(db, otp_id, code, PURPOSE_SIGNUP)

    def test_expired_challenge_reports_expiry(self, db):
        challenge = _issue(db)
        challenge.expires_at = utcnow() - timedelta(seconds=1)
        db.commit()
        with pytest.raises(OtpExpiredError) as exc:
            verify_challenge(db, challenge.otp_id, challenge.otp_code, PURPOSE_SIGNUP)
        assert exc.value.status_code == 401
        assert exc.value.error_code == "otp_expired"


class TestConsume:
    def test_concurrent_verifications_consume_once(self, db):
        challenge = _issue(db)
        otp_id, code = challenge.otp_id, challenge.otp_code

        other = SessionLocal()
        try:
            first = verify_challenge(db, otp_id, code, PURPOSE_SIGNUP)
            second = verify_challenge(other, otp_id, code, PURPOSE_SIGNUP)

            consume_challenge(db, first)
            db.commit()
            with pytest.raises(NotFoundError):
                consume_challenge(other, second)
        finally:
            other.close()

        with pytest.raises(NotFoundError):
            verify_challenge(db, otp_id, code, PURPOSE_SIGNUP)


class TestDiscardAndSweep:
    def test_discard_requires_matching_email(self, db):
        challenge = _issue(db)
        assert discard_challenge(db, "someone-else@example.com", challenge.otp_id) is False
        assert discard_challenge(db, "otp@example.com", challenge.otp_id) is True
        assert db.query(OtpChallenge).count() == 0

    def test_sweep_removes_only_expired(self, db):
        stale = _issue(db, email="stale@example.com")
        _issue(db, email="fresh@example.com")
        stale.expires_at = utcnow() - timedelta(minutes=5)
        db.commit()

        assert sweep_expired_challenges(db) == 1
        remaining = [c.email for c in db.query(OtpChallenge).all()]
        assert remaining == ["fresh@example.com"]
