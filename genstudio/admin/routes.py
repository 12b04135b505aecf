from pydantic import BaseModel
from fastapi import APIRouter, Depends

from genstudio.admin import service
from genstudio.auth.deps import get_user_backend, require_capability
from genstudio.auth.permissions import DELETE_ACCOUNTS, MANAGE_SUBSCRIPTIONS, VIEW_ACCOUNTS
from genstudio.backend.client import BackendClient
from genstudio.plans import catalog

router = APIRouter(prefix="/admin", tags=["admin"])


class ActiveBody(BaseModel):
    is_active: bool


class CreditsBody(BaseModel):
    credits_remaining: int


class PlanBody(BaseModel):
    plan_id: str


def account_item(p: dict) -> dict:
    sub = service.subscription_of(p) or {}
    plan = sub.get("plans") or {}
    return {
        "id": p.get("id"),
        "email": p.get("email"),
        "full_name": p.get("full_name"),
        "role": p.get("role"),
        "plan_id": sub.get("plan_id"),
        "plan": plan.get("name"),
        "credits_remaining": sub.get("credits_remaining") or 0,
        "is_active": bool(sub.get("is_active")),
        "expires_at": sub.get("expires_at"),
    }


@router.get("/accounts")
async def list_accounts(
    search: str = "",
    actor: dict = Depends(require_capability(VIEW_ACCOUNTS)),
    backend: BackendClient = Depends(get_user_backend),
):
    profiles = await service.list_accounts(backend, actor, search)
    items = [account_item(p) for p in profiles]
    return {"value": items, "count": len(items)}


@router.get("/plans")
async def list_plans(
    actor: dict = Depends(require_capability(VIEW_ACCOUNTS)),
    backend: BackendClient = Depends(get_user_backend),
):
    plans = await catalog.list_plans(backend)
    return {"value": plans, "count": len(plans)}


@router.put("/accounts/{account_id}/active")
async def set_active(
    account_id: str,
    body: ActiveBody,
    actor: dict = Depends(require_capability(MANAGE_SUBSCRIPTIONS)),
    backend: BackendClient = Depends(get_user_backend),
):
    return await service.set_subscription_active(backend, actor, account_id, body.is_active)


@router.post("/accounts/{account_id}/toggle")
async def toggle_active(
    account_id: str,
    actor: dict = Depends(require_capability(MANAGE_SUBSCRIPTIONS)),
    backend: BackendClient = Depends(get_user_backend),
):
    return await service.toggle_subscription_active(backend, actor, account_id)


@router.put("/accounts/{account_id}/credits")
async def set_credits(
    account_id: str,
    body: CreditsBody,
    actor: dict = Depends(require_capability(MANAGE_SUBSCRIPTIONS)),
    backend: BackendClient = Depends(get_user_backend),
):
    return await service.set_credits(backend, actor, account_id, body.credits_remaining)


@router.put("/accounts/{account_id}/plan")
async def change_plan(
    account_id: str,
    body: PlanBody,
    actor: dict = Depends(require_capability(MANAGE_SUBSCRIPTIONS)),
    backend: BackendClient = Depends(get_user_backend),
):
    return await service.change_plan(backend, actor, account_id, body.plan_id)


@router.delete("/accounts/{account_id}")
async def delete_account(
    account_id: str,
    actor: dict = Depends(require_capability(DELETE_ACCOUNTS)),
    backend: BackendClient = Depends(get_user_backend),
):
    return await service.delete_account_profile(backend, actor, account_id)
