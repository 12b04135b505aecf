from datetime import timedelta

from genstudio.core.config import get_settings
from genstudio.core.timeutil import iso, utcnow
from genstudio.plans.catalog import default_credits


async def _update(backend, account_id: str, values: dict) -> list[dict]:
    return await backend.table("user_subscriptions").update(values).eq("user_id", account_id).execute()


async def apply_plan(backend, account_id: str, plan: dict, *, term_days: int | None = None, now=None) -> list[dict]:
    """Move a subscription onto ``plan``: fresh balance, active, new term. Overwrites any prior balance."""
    now = now or utcnow()
    term_days = term_days if term_days is not None else get_settings().plan_term_days
    return await _update(
        backend,
        account_id,
        {
            "plan_id": plan["id"],
            "credits_remaining": default_credits(plan),
            "is_active": True,
            "expires_at": iso(now + timedelta(days=term_days)),
        },
    )


async def set_active(backend, account_id: str, active: bool) -> list[dict]:
    return await _update(backend, account_id, {"is_active": bool(active)})


async def set_credits(backend, account_id: str, value: int) -> list[dict]:
    # no bounds: negative or above-allowance values are stored as given
    return await _update(backend, account_id, {"credits_remaining": int(value)})
