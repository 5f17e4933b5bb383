from __future__ import annotations

import pytest

from classroom.core.errors import AuthenticationError
from classroom.core.security import get_password_hash
from classroom.models.user import Role, User
from classroom.services.identity import SIGNED_IN, SIGNED_OUT, IdentityService

pytestmark = pytest.mark.anyio


async def _user(db_session, active=True):
    user = User(
        name="Ines",
        email="ines@example.com",
        password_hash=get_password_hash("pointer123"),
        role=Role.student,
        is_active=active,
    )
    db_session.add(user)
    await db_session.commit()
    return user


async def test_sign_in_and_out_notify_listeners(db_session):
    user = await _user(db_session)
    service = IdentityService()
    events = []
    unsubscribe = service.add_listener(lambda event, identity: events.append((event, identity.id)))

    identity = await service.sign_in(db_session, "ines@example.com", "pointer123")
    service.sign_out(identity)
    unsubscribe()
    service.sign_out(identity)

    assert identity.id == str(user.id)
    assert identity.is_student
    assert events == [(SIGNED_IN, identity.id), (SIGNED_OUT, identity.id)]


async def test_bad_credentials_are_rejected(db_session):
    await _user(db_session)
    service = IdentityService()

    with pytest.raises(AuthenticationError):
        await service.sign_in(db_session, "ines@example.com", "wrong-password1")
    with pytest.raises(AuthenticationError):
        await service.sign_in(db_session, "nobody@example.com", "pointer123")


async def test_inactive_accounts_cannot_sign_in(db_session):
    await _user(db_session, active=False)
    with pytest.raises(AuthenticationError):
        await IdentityService().sign_in(db_session, "ines@example.com", "pointer123")


async def test_failing_listener_does_not_block_others(db_session):
    await _user(db_session)
    service = IdentityService()
    seen = []

    def _broken(event, identity):
        raise RuntimeError("boom")

    service.add_listener(_broken)
    service.add_listener(lambda event, identity: seen.append(event))

    await service.sign_in(db_session, "ines@example.com", "pointer123")
    assert seen == [SIGNED_IN]
