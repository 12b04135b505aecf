import asyncio
import random


class ProgressTicker:
    """
    Cosmetic progress for a running generation. Climbs a random 0..step
    percent per tick, never past ``cap`` until ``finish(success=True)`` snaps it to 100.
    Not tied to real upstream progress.
    """

    def __init__(self, tick: float = 1.0, step: float = 5.0, cap: float = 95.0, rng=random.random):
        self.tick = tick
        self.step = step
        self.cap = cap
        self.value = 0.0
        self._rng = rng
        self._task: asyncio.Task | None = None

    def advance(self) -> float:
        if self.value < self.cap:
            self.value = min(self.cap, self.value + self._rng() * self.step)
        return self.value

    async def _loop(self):
        while self.value < self.cap:
            await asyncio.sleep(self.tick)
            self.advance()

    def start(self):
        if self._task is None:
            self._task = asyncio.create_task(self._loop())

    def finish(self, success: bool):
        if self._task is not None:
            self._task.cancel()
            self._task = None
        if success:
            self.value = 100.0
