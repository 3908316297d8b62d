"""Phase timers for profiling the main blocks of a run."""

from __future__ import annotations

import functools
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

PHASES: tuple[str, ...] = (
    "MainLoop",
    "InitPopulation",
    "NextPopulation",
    "EvalPopulation",
    "ObservePopulation",
    "SummaryPopulation",
)


@dataclass
class Timer:
    elapsed: float = 0.0
    count: int = 0

    @contextmanager
    def measure(self) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self.elapsed += time.perf_counter() - start
            self.count += 1


def timed(fn: F, timer: Timer) -> F:
    """Wrap ``fn`` so that every call is accounted on ``timer``."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        with timer.measure():
            return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


class PhaseTimers:
    def __init__(self) -> None:
        self.timers: dict[str, Timer] = {phase: Timer() for phase in PHASES}

    def __getitem__(self, phase: str) -> Timer:
        return self.timers[phase]

    def wrap(self, phase: str, fn: F, enabled: bool) -> F:
        return timed(fn, self.timers[phase]) if enabled else fn

    def summary(self) -> dict[str, float]:
        report: dict[str, float] = {}
        for phase, timer in self.timers.items():
            report[f"t{phase}"] = timer.elapsed
        for phase, timer in self.timers.items():
            report[f"c{phase}"] = float(timer.count)
        return report


__all__ = ["PHASES", "PhaseTimers", "Timer", "timed"]
