"""Generic "first success wins" runner over ordered strategies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Optional, Protocol, Sequence, TypeVar

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from voicebook.utils.logging import get_logger


logger = get_logger("Cascade")

ContextT = TypeVar("ContextT", contravariant=True)


class Strategy(Protocol[ContextT]):
    """One independent way of achieving a goal.

    ``attempt`` returns True when it found its target and acted on it, False
    when there was nothing to act on. Raised exceptions count as a failed
    attempt and do not stop the cascade.
    """

    name: str

    async def attempt(self, context: ContextT) -> bool:
        ...


@dataclass
class CascadeResult:
    winner: Optional[str]
    attempted: list[str]
    errors: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.winner is not None


C = TypeVar("C")


class FirstSuccessRunner(Generic[C]):
    """Evaluates strategies in order and stops at the first that succeeds."""

    def __init__(self, strategies: Sequence[Strategy[C]], *, label: str = "cascade") -> None:
        self._strategies = list(strategies)
        self._label = label

    @property
    def strategies(self) -> list[Strategy[C]]:
        return list(self._strategies)

    async def run(self, context: C) -> CascadeResult:
        attempted: list[str] = []
        errors: list[str] = []
        for position, strategy in enumerate(self._strategies, start=1):
            attempted.append(strategy.name)
            logger.info("%s: strategy %d (%s)", self._label, position, strategy.name)
            try:
                if await strategy.attempt(context):
                    logger.info("%s: %s succeeded", self._label, strategy.name)
                    return CascadeResult(winner=strategy.name, attempted=attempted, errors=errors)
            except PlaywrightTimeoutError as exc:
                logger.info("%s: %s timed out: %s", self._label, strategy.name, exc)
            except Exception as exc:
                logger.warning("%s: %s failed: %s", self._label, strategy.name, exc)
                errors.append(f"{strategy.name}: {exc}")
        return CascadeResult(winner=None, attempted=attempted, errors=errors)
