from fastapi import APIRouter, Depends, Query

from genstudio.auth.deps import get_current_session, get_user_backend
from genstudio.backend.client import BackendClient
from genstudio.backend.session import Session
from genstudio.core.timeutil import utcnow
from genstudio.projects.expiry import remaining_minutes, status
from genstudio.projects.queries import list_projects

router = APIRouter(prefix="/projects", tags=["projects"])


def project_item(p: dict, now) -> dict:
    return {
        "id": p.get("id"),
        "type": p.get("type"),
        "prompt": p.get("prompt"),
        "url": p.get("url"),
        "thumbnail_url": p.get("thumbnail_url") or p.get("url"),
        "created_at": p.get("created_at"),
        "expires_at": p.get("expires_at"),
        "expires_in_minutes": remaining_minutes(p, now),
        "status": status(p, now),
    }


@router.get("")
async def get_projects(
    include_expired: bool = False,
    limit: int | None = Query(None, ge=1, le=100),
    session: Session = Depends(get_current_session),
    backend: BackendClient = Depends(get_user_backend),
):
    now = utcnow()
    rows = await list_projects(backend, session.user_id, include_expired=include_expired, limit=limit, now=now)
    items = [project_item(p, now) for p in rows]
    return {"value": items, "count": len(items)}
