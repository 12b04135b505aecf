import logging

from pydantic import BaseModel, Field
from fastapi import APIRouter, Depends

from genstudio.auth.deps import get_backend, get_session_provider
from genstudio.backend.client import BackendClient, BackendError
from genstudio.backend.session import Session, SessionEvent, SessionProvider
from genstudio.core.config import get_settings
from genstudio.core.errors import InvalidRequest, NotAuthenticated
from genstudio.core.timeutil import iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class SignUpBody(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)
    full_name: str = Field(min_length=1)


class LoginBody(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


def log_session_event(event: SessionEvent, session: Session | None):
    logger.info("%s user=%s", event.value, session.user_id if session else None)


def session_payload(session: Session) -> dict:
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "token_type": "bearer",
        "expires_at": iso(session.expires_at),
        "user": {"id": session.user_id, "email": session.email, "full_name": session.full_name},
    }


@router.post("/signup")
async def signup(body: SignUpBody, backend: BackendClient = Depends(get_backend)):
    provider = SessionProvider(backend)
    try:
        await provider.sign_up(
            body.email.strip().lower(),
            body.password,
            full_name=body.full_name.strip(),
            redirect_to=get_settings().app_url or None,
        )
    except BackendError as e:
        raise InvalidRequest(e.message)
    return {"ok": True, "message": "Check your email to confirm your account."}


@router.post("/login")
async def login(body: LoginBody, backend: BackendClient = Depends(get_backend)):
    provider = SessionProvider(backend)
    provider.on_session_change(log_session_event)
    try:
        session = await provider.sign_in(body.email.strip().lower(), body.password)
    except BackendError as e:
        raise NotAuthenticated(e.message)
    return session_payload(session)


@router.post("/logout")
async def logout(provider: SessionProvider = Depends(get_session_provider)):
    if not provider.current_session():
        raise NotAuthenticated("Please login to continue")
    provider.on_session_change(log_session_event)
    await provider.sign_out()
    return {"ok": True}


@router.get("/session")
def current_session(provider: SessionProvider = Depends(get_session_provider)):
    session = provider.current_session()
    return {
        "state": provider.state.value,
        "session": session_payload(session) if session else None,
    }
