"""Execution strategies: how a population is mapped over the evaluation method.

Every strategy is a callable ``strategy(population, evaluate, ctx)`` returning
the evaluated genes in input order. Strategies backed by an executor own it
and release it in ``close()``; executors supplied by the caller are left
running.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import Executor, ProcessPoolExecutor, as_completed
from itertools import repeat
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from evoengine.errors import ConfigurationError
from evoengine.evolution.genes import Gene

if TYPE_CHECKING:
    from evoengine.context import Context

logger = logging.getLogger(__name__)

EvalFn = Callable[[Gene, "Context"], Gene]

REPRODUCIBLE_MODELS = frozenset({"Sequential", "MultiCore", "MultiCoreHet"})


class ExecutionStrategy:
    name = "Sequential"

    def __call__(self, population: Sequence[Gene], evaluate: EvalFn, ctx: "Context") -> list[Gene]:
        return [evaluate(gene, ctx) for gene in population]

    def close(self) -> None:
        return None


class Sequential(ExecutionStrategy):
    name = "Sequential"


class _ExecutorStrategy(ExecutionStrategy):
    """Shared plumbing for strategies that dispatch to a futures executor."""

    def __init__(self, executor: Executor, workers: int, owned: bool) -> None:
        self.executor = executor
        self.workers = max(1, workers)
        self._owned = owned

    def _chunked(self, population: Sequence[Gene], evaluate: EvalFn, ctx: "Context") -> list[Gene]:
        chunksize = max(1, -(-len(population) // self.workers))
        return list(self.executor.map(evaluate, population, repeat(ctx, len(population)), chunksize=chunksize))

    def _balanced(self, population: Sequence[Gene], evaluate: EvalFn, ctx: "Context") -> list[Gene]:
        futures = {self.executor.submit(evaluate, gene, ctx): i for i, gene in enumerate(population)}
        results: list[Optional[Gene]] = [None] * len(population)
        for future in as_completed(futures):
            results[futures[future]] = future.result()
        return [gene for gene in results if gene is not None]

    def close(self) -> None:
        if self._owned:
            self.executor.shutdown(wait=True)


class MultiCore(_ExecutorStrategy):
    """Process pool with the population split into one chunk per worker."""

    name = "MultiCore"

    def __init__(self, cores: Optional[int] = None) -> None:
        workers = cores or os.cpu_count() or 1
        logger.debug("Starting process pool", extra={"workers": workers})
        super().__init__(ProcessPoolExecutor(max_workers=workers), workers, owned=True)

    def __call__(self, population: Sequence[Gene], evaluate: EvalFn, ctx: "Context") -> list[Gene]:
        return self._chunked(population, evaluate, ctx)


class MultiCoreHet(MultiCore):
    """Process pool with one task per gene, for evaluations of uneven cost."""

    name = "MultiCoreHet"

    def __call__(self, population: Sequence[Gene], evaluate: EvalFn, ctx: "Context") -> list[Gene]:
        return self._balanced(population, evaluate, ctx)


class Cluster(_ExecutorStrategy):
    """A caller supplied executor (e.g. a distributed pool), statically chunked."""

    name = "Cluster"

    def __init__(self, executor: Executor, workers: Optional[int] = None) -> None:
        super().__init__(executor, workers or 1, owned=False)

    def __call__(self, population: Sequence[Gene], evaluate: EvalFn, ctx: "Context") -> list[Gene]:
        return self._chunked(population, evaluate, ctx)


class ClusterHet(Cluster):
    name = "ClusterHet"

    def __call__(self, population: Sequence[Gene], evaluate: EvalFn, ctx: "Context") -> list[Gene]:
        return self._balanced(population, evaluate, ctx)


class UserApply(ExecutionStrategy):
    """Wraps a caller supplied ``apply(population, evaluate, ctx)``."""

    name = "UserApply"

    def __init__(self, apply: Callable[[Sequence[Gene], EvalFn, "Context"], Sequence[Gene]]) -> None:
        self.apply = apply

    def __call__(self, population: Sequence[Gene], evaluate: EvalFn, ctx: "Context") -> list[Gene]:
        return list(self.apply(population, evaluate, ctx))


EXECUTION_MODELS = ("Sequential", "MultiCore", "MultiCoreHet", "Cluster", "ClusterHet")


def execution_factory(
    model: str,
    *,
    cores: Optional[int] = None,
    cluster: Optional[Executor] = None,
    user_apply: Optional[Callable] = None,
) -> ExecutionStrategy:
    """Build the strategy for ``model``; ``user_apply`` overrides every model."""
    if user_apply is not None:
        return UserApply(user_apply)
    if model == "Sequential":
        return Sequential()
    if model == "MultiCore":
        return MultiCore(cores)
    if model == "MultiCoreHet":
        return MultiCoreHet(cores)
    if model in ("Cluster", "ClusterHet"):
        if cluster is None:
            raise ConfigurationError(f"execution model {model!r} needs a cluster executor")
        strategy = Cluster if model == "Cluster" else ClusterHet
        return strategy(cluster, cores)
    known = ", ".join(EXECUTION_MODELS)
    raise ConfigurationError(f"Unknown execution model label {model!r} (known: {known})")


__all__ = [
    "Cluster",
    "ClusterHet",
    "EXECUTION_MODELS",
    "ExecutionStrategy",
    "MultiCore",
    "MultiCoreHet",
    "REPRODUCIBLE_MODELS",
    "Sequential",
    "UserApply",
    "execution_factory",
]
