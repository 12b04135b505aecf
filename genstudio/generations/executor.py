# genstudio/generations/executor.py

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from genstudio.core.config import get_settings
from genstudio.core.errors import (
    InsufficientCredits,
    NotAuthenticated,
    NotFound,
    PersistenceError,
    PlanInactive,
    StudioError,
    UpstreamError,
)
from genstudio.core.timeutil import iso, utcnow
from genstudio.generations.progress import ProgressTicker
from genstudio.generations.upstream import GenerationRequest
from genstudio.plans.gate import GateResult, evaluate
from genstudio.projects.expiry import expires_at_for
from genstudio.projects.queries import create_project
from genstudio.subscriptions.reader import SubscriptionSnapshot, read_subscription

logger = logging.getLogger(__name__)


class AttemptState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    DENIED = "denied"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureKind(str, Enum):
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    PLAN_INACTIVE = "PLAN_INACTIVE"
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    UNKNOWN = "UNKNOWN"


def _failure_kind(exc: Exception) -> FailureKind:
    if isinstance(exc, NotAuthenticated):
        return FailureKind.NOT_AUTHENTICATED
    if isinstance(exc, PlanInactive):
        return FailureKind.PLAN_INACTIVE
    if isinstance(exc, InsufficientCredits):
        return FailureKind.INSUFFICIENT_CREDITS
    if isinstance(exc, UpstreamError):
        return FailureKind.UPSTREAM_ERROR
    if isinstance(exc, PersistenceError):
        return FailureKind.PERSISTENCE_ERROR
    return FailureKind.UNKNOWN


@dataclass
class GenerationAttempt:
    account_id: str | None
    request: GenerationRequest
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: AttemptState = AttemptState.IDLE
    cost: int | None = None
    result_url: str | None = None
    failure: FailureKind | None = None
    error: str | None = None
    needed: int | None = None
    available: int | None = None
    created_at: datetime = field(default_factory=utcnow)
    finished_at: datetime | None = None
    ticker: ProgressTicker | None = None

    @property
    def progress(self) -> float:
        if self.state == AttemptState.SUCCEEDED:
            return 100.0
        return round(self.ticker.value, 1) if self.ticker else 0.0

    @property
    def done(self) -> bool:
        return self.state in (AttemptState.DENIED, AttemptState.SUCCEEDED, AttemptState.FAILED)

    def fail(self, state: AttemptState, exc: Exception):
        self.state = state
        self.failure = _failure_kind(exc)
        self.error = getattr(exc, "message", None) or str(exc) or "unknown error"
        if isinstance(exc, InsufficientCredits):
            self.needed = exc.needed
            self.available = exc.available
        self.finished_at = utcnow()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "state": self.state.value,
            "type": self.request.kind,
            "subType": self.request.sub_kind,
            "prompt": self.request.prompt,
            "cost": self.cost,
            "progress": self.progress,
            "url": self.result_url,
            "failure": self.failure.value if self.failure else None,
            "error": self.error,
            "needed": self.needed,
            "available": self.available,
            "created_at": iso(self.created_at),
            "finished_at": iso(self.finished_at),
        }


class GenerationExecutor:
    """
    Runs one generation attempt:

      IDLE -> VALIDATING -> DENIED
                         -> RUNNING -> SUCCEEDED | FAILED

    Validation always re-reads the subscription. On success the credit
    deduction and the project insert are both attempted; neither is rolled
    back if the other fails.
    """

    def __init__(self, backend, generator, *, retention_min: int | None = None, progress_tick: float | None = None):
        settings = get_settings()
        self.backend = backend
        self.generator = generator
        self.retention_min = retention_min if retention_min is not None else settings.project_retention_min
        self.progress_tick = progress_tick if progress_tick is not None else settings.progress_tick

    async def validate(self, attempt: GenerationAttempt) -> tuple[SubscriptionSnapshot, GateResult]:
        attempt.state = AttemptState.VALIDATING
        try:
            if not attempt.account_id:
                raise NotAuthenticated()

            snapshot = await read_subscription(self.backend, attempt.account_id)
            gate = evaluate(snapshot, attempt.request.kind)
            attempt.cost = gate.cost
            gate.raise_for_denial()
        except (NotAuthenticated, PlanInactive, InsufficientCredits) as e:
            logger.info("generation denied user=%s kind=%s: %s", attempt.account_id, attempt.request.kind, e.message)
            attempt.fail(AttemptState.DENIED, e)
            raise
        except StudioError as e:
            attempt.fail(AttemptState.FAILED, e)
            raise
        attempt.state = AttemptState.RUNNING
        return snapshot, gate

    async def execute(self, attempt: GenerationAttempt, snapshot: SubscriptionSnapshot, gate: GateResult) -> GenerationAttempt:
        """RUNNING step. Outcome is recorded on the attempt, not raised."""
        attempt.state = AttemptState.RUNNING
        attempt.ticker = ProgressTicker(tick=self.progress_tick)
        attempt.ticker.start()

        try:
            attempt.result_url = await self.generator.generate(attempt.request, attempt.account_id)
            attempt.ticker.finish(success=True)
            await self._commit(attempt, snapshot, gate)
        except StudioError as e:
            attempt.ticker.finish(success=False)
            logger.warning("generation failed user=%s id=%s: %s", attempt.account_id, attempt.id, e.message)
            attempt.fail(AttemptState.FAILED, e)
            return attempt
        except asyncio.CancelledError:
            attempt.ticker.finish(success=False)
            raise
        except Exception as e:
            attempt.ticker.finish(success=False)
            logger.exception("generation crashed user=%s id=%s", attempt.account_id, attempt.id)
            attempt.fail(AttemptState.FAILED, e)
            return attempt

        attempt.state = AttemptState.SUCCEEDED
        attempt.finished_at = utcnow()
        logger.info("generation succeeded user=%s id=%s cost=%s", attempt.account_id, attempt.id, gate.cost)
        return attempt

    async def _commit(self, attempt: GenerationAttempt, snapshot: SubscriptionSnapshot, gate: GateResult):
        errors = []

        # absolute value from the validated snapshot: last writer wins
        try:
            await (
                self.backend.table("user_subscriptions")
                .update({"credits_remaining": snapshot.credits_remaining - gate.cost})
                .eq("user_id", attempt.account_id)
                .execute()
            )
        except StudioError as e:
            errors.append(f"credit deduction failed: {e.message}")

        try:
            await create_project(
                self.backend,
                user_id=attempt.account_id,
                kind=attempt.request.kind,
                prompt=attempt.request.prompt,
                url=attempt.result_url,
                expires_at=expires_at_for(utcnow(), self.retention_min),
            )
        except StudioError as e:
            errors.append(f"saving project failed: {e.message}")

        if errors:
            logger.error("partial commit user=%s id=%s: %s", attempt.account_id, attempt.id, "; ".join(errors))
            raise PersistenceError("; ".join(errors))

    async def run(self, attempt: GenerationAttempt) -> GenerationAttempt:
        snapshot, gate = await self.validate(attempt)
        return await self.execute(attempt, snapshot, gate)


class AttemptRegistry:
    """In-memory index of recent attempts so a client can poll them. Oldest evicted first."""

    def __init__(self, max_size: int = 500):
        self.max_size = max_size
        self._attempts: OrderedDict[str, GenerationAttempt] = OrderedDict()
        self._tasks: set[asyncio.Task] = set()

    def add(self, attempt: GenerationAttempt) -> GenerationAttempt:
        self._attempts[attempt.id] = attempt
        while len(self._attempts) > self.max_size:
            self._attempts.popitem(last=False)
        return attempt

    def get(self, attempt_id: str, account_id: str) -> GenerationAttempt:
        attempt = self._attempts.get(attempt_id)
        if attempt is None or attempt.account_id != account_id:
            raise NotFound("Generation not found")
        return attempt

    def for_account(self, account_id: str) -> list[GenerationAttempt]:
        return [a for a in reversed(self._attempts.values()) if a.account_id == account_id]

    def spawn(self, coro) -> asyncio.Task:
        # nothing cancels these; a caller walking away leaves the attempt to finish
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def __len__(self):
        return len(self._attempts)


registry = AttemptRegistry()
