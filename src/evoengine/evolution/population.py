"""Population level steps of the generational loop."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import TYPE_CHECKING, Callable, Sequence

import numpy as np

from evoengine.evolution.genes import Gene
from evoengine.evolution.selection import Selector
from evoengine.execution.evaluation import objective_samples
from evoengine.result import Solution

if TYPE_CHECKING:
    from evoengine.context import Context

logger = logging.getLogger(__name__)


def init_population(ctx: "Context") -> list[Gene]:
    return [ctx.ops.init_gene(ctx) for _ in range(ctx.popsize)]


def summarize(fit: np.ndarray, ctx: "Context", generation: int) -> "Context":
    """Store the running best, mean and variance of ``fit`` in the context."""
    values = np.asarray(fit, dtype=float)
    var = float(np.var(values, ddof=1)) if values.size > 1 else 0.0
    return ctx.update(
        generation=generation,
        best_fitness=float(values.max()),
        mean_fitness=float(values.mean()),
        var_fitness=var,
    )


class _FailureCounter:
    """Evaluation method wrapper counting the evaluations that fail."""

    def __init__(self, evaluate: Callable[[Gene, "Context"], Gene]) -> None:
        self.evaluate = evaluate
        self.failures = 0

    def __call__(self, gene: Gene, ctx: "Context") -> Gene:
        result = self.evaluate(gene, ctx)
        if result is not gene and result.failed:
            self.failures += 1
        return result


def next_population(population: Sequence[Gene], fit: np.ndarray, ctx: "Context") -> tuple[list[Gene], int]:
    """Scale, select and replicate a full new population.

    Scaled fitness only drives selection. With elitism the best gene of
    ``population`` (by unscaled fitness) takes slot 0. Returns the offspring
    and the number of evaluations that failed inside acceptance rules.
    """
    counter = _FailureCounter(ctx.ops.eval_gene)
    rctx = replace(ctx, ops=replace(ctx.ops, eval_gene=counter))
    scaled = rctx.ops.scaling(np.asarray(fit, dtype=float), rctx)
    selector = Selector(scaled, rctx)
    offspring: list[Gene] = []
    while len(offspring) < rctx.popsize:
        offspring.extend(rctx.ops.replicate(population, selector, rctx))
    offspring = offspring[: rctx.popsize]
    if rctx.config.elitist:
        offspring[0] = population[int(np.argmax(fit))]
    return offspring, counter.failures


def _objective_value(gene: Gene, phenotype, ctx: "Context") -> float:
    try:
        samples, _ = objective_samples(gene, ctx, 1)
    except Exception as exc:
        logger.warning("Objective failed at the best phenotype: %s", exc, extra={"phenotype": repr(phenotype)})
        return math.nan
    return samples[0]


def best_in_population(
    population: Sequence[Gene], fit: np.ndarray, ctx: "Context", allsolutions: bool = False
) -> Solution:
    """The best gene of ``population`` and, optionally, every gene tied with it."""
    values = np.asarray(fit, dtype=float)
    best = float(values.max())
    ties = np.flatnonzero(values == best)
    gene = population[int(ties[0])]
    phenotype = ctx.ops.decode_gene(gene, ctx)
    solution = Solution(
        fitness=ctx.sign * best,
        value=_objective_value(gene, phenotype, ctx),
        gene=gene,
        phenotype=phenotype,
        ties=int(ties.size),
    )
    if allsolutions:
        solution.genes = [population[int(i)] for i in ties]
        solution.phenotypes = [ctx.ops.decode_gene(g, ctx) for g in solution.genes]
    return solution


__all__ = ["best_in_population", "init_population", "next_population", "summarize"]
