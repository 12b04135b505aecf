# genstudio/auth/deps.py

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from genstudio.auth.permissions import MEMBER, ensure_capability
from genstudio.backend.client import BackendClient, create_backend
from genstudio.backend.session import Session, SessionProvider
from genstudio.core.errors import NotAuthenticated

bearer = HTTPBearer(auto_error=False)


def get_backend() -> BackendClient:
    # raises ConfigurationMissing -> 503 for every backend-dependent route
    return create_backend()


async def get_session_provider(
    creds: HTTPAuthorizationCredentials = Depends(bearer),
    backend: BackendClient = Depends(get_backend),
) -> SessionProvider:
    provider = SessionProvider(backend)
    token = (creds.credentials or "").strip() if creds else ""
    await provider.restore(token)
    return provider


def get_current_session(provider: SessionProvider = Depends(get_session_provider)) -> Session:
    session = provider.current_session()
    if not session:
        raise NotAuthenticated("Please login to continue")
    return session


def get_user_backend(
    session: Session = Depends(get_current_session),
    backend: BackendClient = Depends(get_backend),
) -> BackendClient:
    # table calls run under the caller's row-level security
    return backend.with_token(session.access_token)


async def get_current_profile(
    session: Session = Depends(get_current_session),
    backend: BackendClient = Depends(get_user_backend),
) -> dict:
    profile = await backend.table("profiles").select("*").eq("id", session.user_id).single().execute()
    if not profile:
        # profile rows are provisioned by the backend; until then treat as a plain member
        return {"id": session.user_id, "email": session.email, "full_name": session.full_name, "role": MEMBER}
    return profile


def require_capability(capability: str):
    async def _dep(profile: dict = Depends(get_current_profile)) -> dict:
        ensure_capability(profile, capability)
        return profile

    return _dep
