# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
OTP challenge store.

Lifecycle:  NONE → ISSUED → VERIFIED | EXPIRED | INVALIDATED

* ISSUED      – :func:`issue_challenge`, which first deletes every earlier
                challenge for the same e-mail.
* VERIFIED    – :func:`verify_challenge` succeeded and the caller then
                :func:`consume_challenge`-d it; the row is gone.
* EXPIRED     – TTL elapsed; verification answers "expired" until the
                sweep deletes the row.
* INVALIDATED – superseded by a newer challenge, discarded by the client,
                or deleted after ``otp_max_attempts`` wrong codes.
"""

import uuid
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from core.config import settings
from core.errors import (
    AuthenticationError,
    NotFoundError,
    OtpExpiredError,
    ValidationError,
)
from core.logger import logger, redact_email
from core.security import generate_otp_code, otp_codes_match
from database import as_utc, utcnow
from models.otp import OtpChallenge

_INVALID_OR_EXPIRED = (
    "This verification code is invalid or has already expired. Please request a new one."
)


def issue_challenge(
    db: Session,
    *,
    email: str,
    purpose: str,
    username: str,
    password_hash: str,
    visitor_id: str,
) -> OtpChallenge:
    """Replace any pending challenge for *email* with a fresh one and commit."""
    db.query(OtpChallenge).filter(OtpChallenge.email == email).delete(synchronize_session=False)

    challenge = OtpChallenge(
        otp_id=str(uuid.uuid4()),
        email=email,
        purpose=purpose,
        otp_code=generate_otp_code(),
        username=username,
        password_hash=password_hash,
        visitor_id=visitor_id,
        attempts=0,
        expires_at=utcnow() + timedelta(seconds=settings.otp_ttl_seconds),
    )
    db.add(challenge)
    db.commit()
    db.refresh(challenge)
    return challenge


def verify_challenge(
    db: Session,
    otp_id: Optional[str],
    otp_code: Optional[str],
    purpose: str,
) -> OtpChallenge:
    """
    Check *otp_code* against the challenge *otp_id*.

    Order of checks: unknown id (404), missing code (400), wrong code (401),
    expired (401 ``otp_expired``).  A wrong code is counted; reaching
    ``otp_max_attempts`` deletes the challenge.  The challenge is NOT
    consumed here – see :func:`consume_challenge`.
    """
    challenge = None
    if otp_id:
        challenge = (
            db.query(OtpChallenge)
            .filter(OtpChallenge.otp_id == otp_id, OtpChallenge.purpose == purpose)
            .first()
        )
    if challenge is None:
        raise NotFoundError(_INVALID_OR_EXPIRED, error_code="otp_not_found")

    if not otp_code:
        raise ValidationError("Please enter the verification code sent to your email.")

    if not otp_codes_match(challenge.otp_code, str(otp_code)):
        challenge.attempts += 1
        if challenge.attempts >= settings.otp_max_attempts:
            logger.warning("OTP challenge locked after %d attempts | email=%s",
                           challenge.attempts, redact_email(challenge.email))
            db.delete(challenge)
            db.commit()
            raise AuthenticationError(
                "Too many incorrect attempts. Please request a new verification code.",
                error_code="otp_locked",
            )
        db.commit()
        raise AuthenticationError(
            "The verification code you entered is incorrect. Please try again.",
            error_code="otp_invalid",
        )

    if utcnow() > as_utc(challenge.expires_at):
        raise OtpExpiredError("This verification code has expired. Please request a new one.")

    return challenge


def consume_challenge(db: Session, challenge: OtpChallenge) -> None:
    """
    Delete a verified challenge inside the caller's transaction.

    The delete is conditional on the row still existing, so of two
    concurrent verifications of one code only the first can proceed.
    """
    removed = (
        db.query(OtpChallenge)
        .filter(OtpChallenge.id == challenge.id)
        .delete(synchronize_session=False)
    )
    if removed != 1:
        db.rollback()
        raise NotFoundError(_INVALID_OR_EXPIRED, error_code="otp_not_found")


def discard_challenge(db: Session, email: str, otp_id: str) -> bool:
    """Drop a pending challenge on client request; True if one was removed."""
    removed = (
        db.query(OtpChallenge)
        .filter(OtpChallenge.email == email, OtpChallenge.otp_id == otp_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed > 0


def sweep_expired_challenges(db: Session) -> int:
    removed = (
        db.query(OtpChallenge)
        .filter(OtpChallenge.expires_at <= utcnow())
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed
