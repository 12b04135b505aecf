"""
Admin operations on other accounts.

Each one checks the actor's capability, then issues a single write. There is
no audit trail beyond the log line.
"""

import logging

from genstudio.auth.permissions import (
    DELETE_ACCOUNTS,
    MANAGE_SUBSCRIPTIONS,
    VIEW_ACCOUNTS,
    ensure_capability,
)
from genstudio.core.errors import NotFound
from genstudio.plans import catalog
from genstudio.subscriptions import service as subscriptions

logger = logging.getLogger(__name__)

ACCOUNT_COLUMNS = "*, user_subscriptions(*, plans(*))"

AUTH_IDENTITY_WARNING = (
    "Profile and subscription removed. The sign-in identity still exists "
    "and must be removed from the backend's auth console."
)


def _first(rows):
    return rows[0] if rows else None


def _require_row(rows, account_id: str) -> dict:
    row = _first(rows)
    if row is None:
        raise NotFound(f"No subscription for account {account_id}")
    return row


def subscription_of(profile: dict) -> dict | None:
    # to-many on the wire, one per account in practice
    subs = profile.get("user_subscriptions") or []
    if isinstance(subs, dict):
        return subs
    return _first(subs)


async def list_accounts(backend, actor: dict, search: str = "") -> list[dict]:
    ensure_capability(actor, VIEW_ACCOUNTS)
    profiles = await backend.table("profiles").select(ACCOUNT_COLUMNS).execute()

    needle = (search or "").strip().lower()
    if not needle:
        return profiles
    return [
        p
        for p in profiles
        if needle in (p.get("full_name") or "").lower() or needle in str(p.get("id") or "")
    ]


async def set_subscription_active(backend, actor: dict, account_id: str, active: bool) -> dict:
    ensure_capability(actor, MANAGE_SUBSCRIPTIONS)
    rows = await subscriptions.set_active(backend, account_id, active)
    logger.info("admin=%s set is_active=%s on account=%s", actor.get("id"), active, account_id)
    return _require_row(rows, account_id)


async def toggle_subscription_active(backend, actor: dict, account_id: str) -> dict:
    ensure_capability(actor, MANAGE_SUBSCRIPTIONS)
    current = await (
        backend.table("user_subscriptions").select("is_active").eq("user_id", account_id).single().execute()
    )
    if current is None:
        raise NotFound(f"No subscription for account {account_id}")
    return await set_subscription_active(backend, actor, account_id, not current.get("is_active"))


async def set_credits(backend, actor: dict, account_id: str, value: int) -> dict:
    ensure_capability(actor, MANAGE_SUBSCRIPTIONS)
    rows = await subscriptions.set_credits(backend, account_id, value)
    logger.info("admin=%s set credits=%s on account=%s", actor.get("id"), value, account_id)
    return _require_row(rows, account_id)


async def change_plan(backend, actor: dict, account_id: str, plan_id) -> dict:
    ensure_capability(actor, MANAGE_SUBSCRIPTIONS)
    plan = await catalog.get_plan(backend, plan_id)
    rows = await subscriptions.apply_plan(backend, account_id, plan)
    logger.info("admin=%s moved account=%s to plan=%s", actor.get("id"), account_id, plan.get("name"))
    return _require_row(rows, account_id)


async def delete_account_profile(backend, actor: dict, account_id: str) -> dict:
    """Removes the profile and subscription rows only; the auth identity is left alone."""
    ensure_capability(actor, DELETE_ACCOUNTS)
    await backend.table("user_subscriptions").delete().eq("user_id", account_id).execute()
    deleted = await backend.table("profiles").delete().eq("id", account_id).execute()
    if not deleted:
        raise NotFound(f"Account {account_id} not found")
    logger.warning("admin=%s deleted profile of account=%s (auth identity kept)", actor.get("id"), account_id)
    return {"deleted": account_id, "warning": AUTH_IDENTITY_WARNING}
