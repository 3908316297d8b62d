"""Local configuration context shared by every operator of a run.

Two sharing disciplines are offered. ``LocalContext`` is an immutable
snapshot: ``update`` returns a new context and earlier holders keep what they
saw. ``SharedContext`` is a single mutable handle owned by the orchestrator:
``update`` changes it in place and every holder sees the new state at once.
Only the orchestrating loop calls ``update``, between generations.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional, Union

import numpy as np

from evoengine.config import RunConfig


@dataclass(frozen=True)
class AdaptiveState:
    """Per-generation values read by adaptive operators."""

    generation: int = 0
    temperature: float = 0.0
    best_fitness: float = 0.0
    mean_fitness: float = 0.0
    var_fitness: float = 0.0
    rdm: float = 1.0
    pac_opt: Optional[float] = None
    optimum: Optional[float] = None


@dataclass(frozen=True)
class BoundOperators:
    init_gene: Callable
    decode_gene: Callable
    gene_map: Callable
    crossover: Any
    mutate: Callable
    replicate: Any
    select_gene: Callable
    select_mate: Callable
    scaling: Callable
    dispersion: Callable
    crossrate: Callable
    mutrate: Callable
    scale_factor: Callable
    accept: Callable
    cooling: Callable
    terminate: Callable
    eval_gene: Callable
    par_apply: Optional[Callable] = None

    def __getstate__(self) -> dict:
        # executors stay with the orchestrating process
        state = dict(self.__dict__)
        state["par_apply"] = None
        return state

    def __setstate__(self, state: dict) -> None:
        self.__dict__.update(state)


class _ContextAccess:
    config: RunConfig
    state: AdaptiveState

    @property
    def sign(self) -> float:
        return 1.0 if self.config.maximize else -1.0

    @property
    def popsize(self) -> int:
        return self.config.popsize

    def failure_fitness(self) -> float:
        """Internal fitness for a failed evaluation, NaN when left to the batch."""
        worst = self.config.operators.worst_fitness
        if worst is None:
            return math.nan
        return self.sign * float(worst)


@dataclass(frozen=True)
class LocalContext(_ContextAccess):
    config: RunConfig
    penv: Any
    ops: BoundOperators
    rng: np.random.Generator
    grammar: Any = None
    state: AdaptiveState = field(default_factory=AdaptiveState)

    def update(self, **changes: Any) -> "LocalContext":
        return replace(self, state=replace(self.state, **changes))


@dataclass(eq=False)
class SharedContext(_ContextAccess):
    config: RunConfig
    penv: Any
    ops: BoundOperators
    rng: np.random.Generator
    grammar: Any = None
    state: AdaptiveState = field(default_factory=AdaptiveState)

    def update(self, **changes: Any) -> "SharedContext":
        self.state = replace(self.state, **changes)
        return self


Context = Union[LocalContext, SharedContext]


def build_context(
    config: RunConfig,
    penv: Any,
    ops: BoundOperators,
    rng: np.random.Generator,
    grammar: Any = None,
) -> Context:
    state = AdaptiveState(temperature=config.acceptance.temp0)
    if config.execution.semantics == "byReference":
        return SharedContext(config=config, penv=penv, ops=ops, rng=rng, grammar=grammar, state=state)
    return LocalContext(config=config, penv=penv, ops=ops, rng=rng, grammar=grammar, state=state)


__all__ = [
    "AdaptiveState",
    "BoundOperators",
    "Context",
    "LocalContext",
    "SharedContext",
    "build_context",
]
