"""Tests for the periodic sweeps."""

import asyncio
from datetime import timedelta

from auth import housekeeping
from auth.otp import issue_challenge
from auth.tokens import persist_refresh_token
from core.security import create_refresh_token
from database import utcnow
from models.otp import PURPOSE_LOGIN, OtpChallenge
from models.user import RefreshToken

from conftest import KNOWN_VISITOR, make_user


def test_sweeps_delete_expired_rows(db):
    user_id = make_user("sweep@example.com").id
    issue_challenge(db, email="sweep@example.com", purpose=PURPOSE_LOGIN, username="sweep",
                    password_hash="hash", visitor_id=KNOWN_VISITOR)
    persist_refresh_token(db, user_id, create_refresh_token(user_id))
    db.commit()
    db.query(OtpChallenge).update({OtpChallenge.expires_at: utcnow() - timedelta(seconds=1)})
    db.query(RefreshToken).update({RefreshToken.expires_at: utcnow() - timedelta(seconds=1)})
    db.commit()

    assert housekeeping.sweep_otps() == 1
    assert housekeeping.sweep_refresh_tokens() == 1
    assert housekeeping.sweep_otps() == 0


def test_loop_survives_a_failing_job():
    calls = []

    def job():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("database away")
        return 0

    async def run():
        task = asyncio.create_task(housekeeping.run_periodically("test", job, 0))
        while len(calls) < 2:
            await asyncio.sleep(0.01)
        task.cancel()

    asyncio.run(run())
    assert len(calls) >= 2
