import logging

from fastapi import APIRouter, Depends

from genstudio.auth.deps import get_current_session, get_user_backend
from genstudio.backend.client import BackendClient
from genstudio.backend.session import Session
from genstudio.core.config import get_settings
from genstudio.plans import catalog
from genstudio.subscriptions.service import apply_plan

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plans", tags=["plans"])


@router.get("")
async def get_plans(
    session: Session = Depends(get_current_session),
    backend: BackendClient = Depends(get_user_backend),
):
    contact_url = get_settings().plan_contact_url or None
    items = []
    for p in await catalog.list_plans(backend):
        is_free = p.get("name") == catalog.FREE_PLAN_NAME
        items.append(
            {
                "id": p.get("id"),
                "name": p.get("name"),
                "credits": catalog.default_credits(p),
                "is_free": is_free,
                # paid plans are sold by hand
                "contact_url": None if is_free else contact_url,
            }
        )
    return {"value": items, "count": len(items)}


@router.post("/free/activate")
async def activate_free_plan(
    session: Session = Depends(get_current_session),
    backend: BackendClient = Depends(get_user_backend),
):
    plan = await catalog.get_plan_by_name(backend, catalog.FREE_PLAN_NAME)
    rows = await apply_plan(backend, session.user_id, plan)
    logger.info("free plan activated user=%s", session.user_id)
    return {"ok": True, "subscription": rows[0] if rows else None}
