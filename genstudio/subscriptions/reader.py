from dataclasses import dataclass
from datetime import datetime

from genstudio.core.timeutil import parse_ts

SUBSCRIPTION_COLUMNS = "*, plans(*)"


@dataclass(frozen=True)
class SubscriptionSnapshot:
    """Point-in-time read of a subscription joined with its plan. May be stale by the time it is written back."""

    user_id: str
    plan_id: str | None
    plan_name: str | None
    credit_allowance: int | None
    credits_remaining: int
    is_active: bool
    expires_at: datetime | None

    @classmethod
    def from_row(cls, row: dict) -> "SubscriptionSnapshot":
        plan = row.get("plans") or {}
        allowance = plan.get("credit_limit")
        return cls(
            user_id=str(row.get("user_id")),
            plan_id=row.get("plan_id"),
            plan_name=plan.get("name"),
            credit_allowance=int(allowance) if allowance is not None else None,
            credits_remaining=int(row.get("credits_remaining") or 0),
            is_active=bool(row.get("is_active")),
            expires_at=parse_ts(row.get("expires_at")),
        )


async def read_subscription(backend, account_id: str) -> SubscriptionSnapshot | None:
    # no caching: callers get a fresh row every time
    row = await (
        backend.table("user_subscriptions")
        .select(SUBSCRIPTION_COLUMNS)
        .eq("user_id", account_id)
        .single()
        .execute()
    )
    if not row:
        return None
    return SubscriptionSnapshot.from_row(row)
