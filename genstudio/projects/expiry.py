"""
How long a generated project stays listed.

Projects are never deleted; listings drop rows whose ``expires_at`` has passed.
"""

import math
from datetime import timedelta

from genstudio.core.timeutil import parse_ts, utcnow

ACTIVE = "active"
EXPIRED = "expired"


def _expires_at(project):
    value = project.get("expires_at") if isinstance(project, dict) else getattr(project, "expires_at", None)
    return parse_ts(value)


def remaining_minutes(project, now=None) -> int:
    expires_at = _expires_at(project)
    if expires_at is None:
        return 0
    now = now or utcnow()
    minutes = (expires_at - now) / timedelta(minutes=1)
    # round half up, never below zero
    return max(0, math.floor(minutes + 0.5))


def is_active(project, now=None) -> bool:
    expires_at = _expires_at(project)
    if expires_at is None:
        return False
    return expires_at > (now or utcnow())


def status(project, now=None) -> str:
    return ACTIVE if is_active(project, now) else EXPIRED


def expires_at_for(created_at, retention_min: int):
    return created_at + timedelta(minutes=retention_min)


def active_only(projects, now=None) -> list:
    now = now or utcnow()
    return [p for p in projects if is_active(p, now)]
