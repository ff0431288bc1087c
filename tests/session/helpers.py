"""Shared builders for session tests."""

from datetime import UTC, datetime, timedelta

from gauntlet.sandbox.domain.sandbox import Sandbox
from gauntlet.session.domain.session import Session


def make_sandbox(
    trial_id: str = "trial-1",
    sandbox_id: str = "env-1",
    endpoint: str = "http://sandbox:3000",
) -> Sandbox:
    now = datetime.now(UTC)
    return Sandbox(
        id=sandbox_id,
        trial_id=trial_id,
        endpoint=endpoint,
        created_at=now,
        expires_at=now + timedelta(minutes=30),
    )


def make_session(
    session_id: str = "s-1", endpoint: str = "http://sandbox:3000"
) -> Session:
    return Session(
        id=session_id,
        sandbox_id="env-1",
        endpoint=endpoint,
        model="sonnet",
        created_at=datetime.now(UTC),
        credential="token-123",
    )
