from fastapi import APIRouter, Depends

from genstudio.auth.deps import get_current_profile, get_current_session, get_user_backend
from genstudio.auth.permissions import VIEW_ACCOUNTS, has_capability
from genstudio.backend.client import BackendClient
from genstudio.backend.session import Session
from genstudio.core.timeutil import iso, utcnow
from genstudio.projects.queries import list_projects
from genstudio.projects.routes import project_item
from genstudio.subscriptions.reader import read_subscription

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

RECENT_PROJECTS = 4


@router.get("")
async def dashboard(
    session: Session = Depends(get_current_session),
    profile: dict = Depends(get_current_profile),
    backend: BackendClient = Depends(get_user_backend),
):
    now = utcnow()
    sub = await read_subscription(backend, session.user_id)
    projects = await list_projects(backend, session.user_id, now=now)

    return {
        "profile": {
            "id": profile.get("id"),
            "email": profile.get("email") or session.email,
            "full_name": profile.get("full_name"),
            "role": profile.get("role"),
        },
        "is_admin": has_capability(profile, VIEW_ACCOUNTS),
        "stats": {
            "plan": (sub.plan_name if sub else None) or "No Plan",
            "credits": sub.credits_remaining if sub else 0,
            "projects": len(projects),
        },
        "subscription": None
        if sub is None
        else {
            "plan_id": sub.plan_id,
            "plan": sub.plan_name,
            "credits_remaining": sub.credits_remaining,
            "is_active": sub.is_active,
            "expires_at": iso(sub.expires_at),
        },
        "recent_projects": [project_item(p, now) for p in projects[:RECENT_PROJECTS]],
    }
