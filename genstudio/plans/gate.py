from dataclasses import dataclass
from enum import Enum

from genstudio.core.errors import InsufficientCredits, PlanInactive
from genstudio.plans.catalog import credit_cost
from genstudio.subscriptions.reader import SubscriptionSnapshot


class Decision(str, Enum):
    ALLOW = "allow"
    DENY_INACTIVE = "deny_inactive"
    DENY_INSUFFICIENT = "deny_insufficient"


@dataclass(frozen=True)
class GateResult:
    decision: Decision
    cost: int
    needed: int = 0
    available: int = 0

    @property
    def allowed(self) -> bool:
        return self.decision == Decision.ALLOW

    def raise_for_denial(self):
        if self.decision == Decision.DENY_INACTIVE:
            raise PlanInactive()
        if self.decision == Decision.DENY_INSUFFICIENT:
            raise InsufficientCredits(self.needed, self.available)


def evaluate(snapshot: SubscriptionSnapshot | None, kind: str) -> GateResult:
    """Decide whether a generation of ``kind`` may debit this subscription. Pure."""
    cost = credit_cost(kind)

    if snapshot is None or not snapshot.is_active:
        return GateResult(Decision.DENY_INACTIVE, cost)

    if snapshot.credits_remaining < cost:
        return GateResult(
            Decision.DENY_INSUFFICIENT,
            cost,
            needed=cost,
            available=snapshot.credits_remaining,
        )

    return GateResult(Decision.ALLOW, cost)
