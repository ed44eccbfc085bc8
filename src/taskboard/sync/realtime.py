# src/taskboard/sync/realtime.py

from __future__ import annotations

"""
Realtime simulator.

A small timer loop standing in for other users of the board:
- sleeps a random interval within [min_interval, max_interval],
- generates one external update against the current tasks,
- hands it to the injected handler (normally ConflictResolver.handle_external_update).

To stop the simulator, call stop() (or cancel the coroutine/task).
"""

import asyncio
import contextlib
import logging
import random
from collections.abc import Callable, Sequence
from typing import Any

from ..tasks.task_models import Task
from .conflicts import ExternalUpdate, generate_random_update

logger = logging.getLogger(__name__)

UpdateHandler = Callable[[ExternalUpdate], Any]


def _check_timing(min_interval: float, max_interval: float) -> tuple[float, float]:
    lo, hi = float(min_interval), float(max_interval)
    if lo < 0 or hi < lo:
        raise ValueError(f"invalid simulator timing: min={min_interval} max={max_interval}")
    return lo, hi


async def run_realtime_simulator(
    get_tasks: Callable[[], Sequence[Task]],
    on_update: UpdateHandler,
    *,
    min_interval: float = 15.0,
    max_interval: float = 25.0,
    rng: random.Random | None = None,
) -> None:
    """
    Simple timer loop. Handler errors are logged and do not stop the loop.
    """
    lo, hi = _check_timing(min_interval, max_interval)
    r = rng or random.Random()

    while True:
        delay = r.uniform(lo, hi)
        logger.debug("Next external update in %.1fs", delay)
        await asyncio.sleep(delay)

        try:
            update = generate_random_update(get_tasks(), r)
        except Exception:
            logger.exception("generate_random_update failed")
            continue

        if update is None:
            continue

        try:
            on_update(update)
        except Exception:
            logger.exception("external update handler failed task_id=%s", update.task_id)


class RealtimeSimulator:
    """Owns the asyncio task running run_realtime_simulator()."""

    def __init__(
        self,
        get_tasks: Callable[[], Sequence[Task]],
        on_update: UpdateHandler,
        *,
        min_interval: float = 15.0,
        max_interval: float = 25.0,
        rng: random.Random | None = None,
    ) -> None:
        self._get_tasks = get_tasks
        self._on_update = on_update
        self.min_interval, self.max_interval = _check_timing(min_interval, max_interval)
        self._rng = rng or random.Random()
        self._runner: asyncio.Task[None] | None = None

    @property
    def is_active(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def set_timing(self, min_interval: float, max_interval: float) -> None:
        """Takes effect on the next start()."""
        self.min_interval, self.max_interval = _check_timing(min_interval, max_interval)

    def start(self) -> None:
        """Must be called from inside a running event loop."""
        if self.is_active:
            logger.warning("Realtime simulator already running")
            return
        self._runner = asyncio.create_task(
            run_realtime_simulator(
                self._get_tasks,
                self._on_update,
                min_interval=self.min_interval,
                max_interval=self.max_interval,
                rng=self._rng,
            ),
            name="realtime-simulator",
        )
        logger.info("Realtime simulator started (%.1fs-%.1fs)", self.min_interval, self.max_interval)

    async def stop(self) -> None:
        runner, self._runner = self._runner, None
        if runner is None:
            return
        runner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await runner
        logger.info("Realtime simulator stopped")
