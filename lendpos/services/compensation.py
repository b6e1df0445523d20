"""Undo stack for multi-step collaborator sequences."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

UndoStep = Callable[[], Awaitable[Any]]


class Compensation:
    """Collect undo steps while an operation runs; replay them if it fails.

    Used as ``async with Compensation("supply") as undo``. Each external
    effect that succeeded registers its inverse with :meth:`push`. On an
    exception the steps run newest first and the exception propagates
    unchanged. A step that raises or returns ``False`` is logged and the
    remaining steps still run.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._steps: list[tuple[str, UndoStep]] = []

    def push(self, description: str, step: UndoStep) -> None:
        self._steps.append((description, step))

    def discard(self) -> None:
        """Forget every registered step; the effects so far are permanent."""
        self._steps.clear()

    @property
    def pending(self) -> list[str]:
        return [description for description, _ in self._steps]

    async def __aenter__(self) -> Compensation:
        self._steps = []
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self._steps.clear()
            return False
        logger.warning("%s failed (%s), undoing %d step(s)", self.name, exc, len(self._steps))
        await self.rollback()
        return False

    async def rollback(self) -> None:
        while self._steps:
            description, step = self._steps.pop()
            logger.warning("%s: undo %s", self.name, description)
            try:
                result = await step()
            except Exception as e:
                logger.error("%s: undo step '%s' raised: %s", self.name, description, e)
                continue
            if result is False:
                logger.error("%s: undo step '%s' was rejected", self.name, description)
