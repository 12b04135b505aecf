import pytest

from genstudio.backend.client import BackendError
from genstudio.backend.session import SessionEvent, SessionProvider, SessionState


@pytest.mark.asyncio
async def test_restore_valid_token(fake, member):
    provider = SessionProvider(fake.client())
    assert provider.state == SessionState.UNINITIALIZED

    session = await provider.restore(member["token"])

    assert provider.state == SessionState.AUTHENTICATED
    assert session.user_id == member["id"]
    assert session.email == "member@example.com"
    assert session.full_name == "Mia Member"
    assert session.expires_at is not None


@pytest.mark.asyncio
async def test_restore_bad_token_is_anonymous(fake):
    provider = SessionProvider(fake.client())
    assert await provider.restore("not-a-token") is None
    assert provider.state == SessionState.ANONYMOUS

    assert await provider.restore("") is None
    assert provider.current_session() is None


@pytest.mark.asyncio
async def test_restore_backend_outage_is_anonymous(fake, member):
    fake.users.clear()

    async def broken(token):
        raise BackendError(503, "auth down")

    backend = fake.client()
    backend.get_user = broken
    provider = SessionProvider(backend)
    assert await provider.restore(member["token"]) is None
    assert provider.state == SessionState.ANONYMOUS


@pytest.mark.asyncio
async def test_handlers_receive_sign_in_and_out_until_unsubscribed(fake, member):
    provider = SessionProvider(fake.client())
    events, later = [], []
    unsubscribe = provider.on_session_change(lambda e, s: events.append((e, s.user_id if s else None)))
    provider.on_session_change(lambda e, s: later.append(e))

    await provider.sign_in("member@example.com", "pw")
    unsubscribe()
    await provider.sign_out()

    assert events == [(SessionEvent.SIGNED_IN, member["id"])]
    assert later == [SessionEvent.SIGNED_IN, SessionEvent.SIGNED_OUT]
    assert provider.state == SessionState.DISPOSED
    assert provider.current_session() is None


@pytest.mark.asyncio
async def test_sign_out_revokes_token(fake, member):
    provider = SessionProvider(fake.client())
    await provider.restore(member["token"])
    await provider.sign_out()

    assert member["token"] not in fake.users
    # disposed providers do not come back to life
    assert await provider.restore(member["token"]) is None


@pytest.mark.asyncio
async def test_sign_in_wrong_password(fake, member):
    provider = SessionProvider(fake.client())
    with pytest.raises(BackendError) as exc:
        await provider.sign_in("member@example.com", "nope")
    assert exc.value.message == "Invalid login credentials"
    assert provider.state == SessionState.UNINITIALIZED
