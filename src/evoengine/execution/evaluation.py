"""Gene evaluation: decode, call the objective, convert failures.

Evaluation methods have the signature ``fn(gene, ctx) -> Gene`` and are run
inside the execution strategy, possibly in worker processes, so they never
touch anything but the gene and a read-only context.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Callable, Sequence

import numpy as np

from evoengine.errors import lookup
from evoengine.evolution.genes import Gene

if TYPE_CHECKING:
    from evoengine.context import Context

logger = logging.getLogger(__name__)

EvalFn = Callable[[Gene, "Context"], Gene]


def objective_samples(gene: Gene, ctx: "Context", repeats: int) -> tuple[list[float], Any]:
    """Objective values of ``gene`` over ``repeats`` calls, with its phenotype.

    Raises whatever the objective raises; a non-finite value raises
    ``ValueError``.
    """
    phenotype = ctx.ops.decode_gene(gene, ctx)
    samples = []
    for _ in range(repeats):
        value = float(ctx.penv.f(phenotype, gene, ctx))
        if not math.isfinite(value):
            raise ValueError(f"objective returned {value}")
        samples.append(value)
    return samples, phenotype


def _failed(gene: Gene, ctx: "Context", exc: Exception) -> Gene:
    fitness = ctx.failure_fitness()
    if ctx.config.operators.report_eval_errors:
        phenotype: Any
        try:
            phenotype = ctx.ops.decode_gene(gene, ctx)
        except Exception:
            phenotype = None
        logger.warning(
            "Evaluation failed in generation %d: %s",
            ctx.state.generation,
            exc,
            extra={"generation": ctx.state.generation, "fitness": fitness, "phenotype": repr(phenotype)},
        )
    return gene.scored(fitness, obs=gene.obs + 1, failed=True)


def eval_gene_u(gene: Gene, ctx: "Context") -> Gene:
    """Evaluate unconditionally; ``evalrep`` repeats are averaged."""
    try:
        samples, _ = objective_samples(gene, ctx, ctx.config.operators.evalrep)
    except Exception as exc:
        return _failed(gene, ctx, exc)
    variance = float(np.var(samples, ddof=1)) if len(samples) > 1 else 0.0
    return gene.scored(ctx.sign * float(np.mean(samples)), obs=len(samples), variance=variance)


def eval_gene_det(gene: Gene, ctx: "Context") -> Gene:
    """Evaluate once; a gene with a valid fitness is returned as is."""
    if gene.evaluated and not gene.failed:
        return gene
    return eval_gene_u(gene, ctx)


def eval_gene_stoch(gene: Gene, ctx: "Context") -> Gene:
    """Fold new samples of a noisy objective into a running mean and variance."""
    try:
        samples, _ = objective_samples(gene, ctx, ctx.config.operators.evalrep)
    except Exception as exc:
        return _failed(gene, ctx, exc)
    if gene.evaluated and not gene.failed:
        n, mean = gene.obs, gene.fitness
        m2 = gene.variance * max(n - 1, 0)
    else:
        n, mean, m2 = 0, 0.0, 0.0
    for value in samples:
        x = ctx.sign * value
        n += 1
        delta = x - mean
        mean += delta / n
        m2 += delta * (x - mean)
    variance = m2 / (n - 1) if n > 1 else 0.0
    return gene.scored(mean, obs=n, variance=variance)


EVAL_METHODS: dict[str, EvalFn] = {
    "EvalGeneU": eval_gene_u,
    "EvalGeneDet": eval_gene_det,
    "EvalGeneStoch": eval_gene_stoch,
}


def eval_factory(label: str) -> EvalFn:
    return lookup(EVAL_METHODS, "evaluation method", label)


def fill_failures(genes: list[Gene]) -> list[Gene]:
    """Give failed genes without a configured sentinel the batch's worst fitness."""
    finite = [g.fitness for g in genes if not g.failed and math.isfinite(g.fitness)]
    worst = min(finite) if finite else 0.0
    return [g.scored(worst, obs=g.obs, failed=True) if math.isnan(g.fitness) else g for g in genes]


def evaluate_population(
    population: Sequence[Gene],
    ctx: "Context",
    par_apply: Callable[[Sequence[Gene], EvalFn, "Context"], Sequence[Gene]],
) -> tuple[list[Gene], np.ndarray, int]:
    """Evaluate ``population`` through ``par_apply``.

    Returns the evaluated genes, their internal fitness vector and the number
    of evaluations that failed in this batch.
    """
    evaluated = list(par_apply(population, ctx.ops.eval_gene, ctx))
    failures = sum(1 for old, new in zip(population, evaluated) if new is not old and new.failed)
    evaluated = fill_failures(evaluated)
    fit = np.array([g.fitness for g in evaluated], dtype=float)
    return evaluated, fit, failures


__all__ = [
    "EVAL_METHODS",
    "EvalFn",
    "eval_factory",
    "eval_gene_det",
    "eval_gene_stoch",
    "eval_gene_u",
    "evaluate_population",
    "fill_failures",
    "objective_samples",
]
