"""Replication pipelines shared by the built-in representations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from evoengine.evolution.genes import Gene
from evoengine.representations.base import Replication

if TYPE_CHECKING:
    from evoengine.context import Context
    from evoengine.evolution.selection import Selector


def _rate_fitness(gene: Gene, ctx: "Context") -> float:
    return gene.fitness if gene.evaluated else ctx.state.mean_fitness


def replicate_one_kid(population: Sequence[Gene], selector: "Selector", ctx: "Context") -> list[Gene]:
    """Crossover and mutation of one parent, then the acceptance rule."""
    parent = population[selector.gene()]
    kid = parent
    if ctx.rng.random() < ctx.ops.crossrate(parent.fitness, ctx):
        mate = population[selector.mate()]
        kid = ctx.ops.crossover(kid, mate, ctx)
    if ctx.rng.random() < ctx.ops.mutrate(parent.fitness, ctx):
        kid = ctx.ops.mutate(kid, ctx)
    if kid is parent:
        return [parent]
    return [ctx.ops.accept(parent, kid, ctx)]


def replicate_two_kids(population: Sequence[Gene], selector: "Selector", ctx: "Context") -> list[Gene]:
    """Two kids from a parent and a mate; no acceptance step."""
    parent = population[selector.gene()]
    mate = population[selector.mate()]
    kids: tuple[Gene, Gene] = (parent, mate)
    if ctx.rng.random() < ctx.ops.crossrate(parent.fitness, ctx):
        kids = ctx.ops.crossover(parent, mate, ctx)
    out = []
    for kid in kids:
        if ctx.rng.random() < ctx.ops.mutrate(_rate_fitness(kid, ctx), ctx):
            kid = ctx.ops.mutate(kid, ctx)
        out.append(kid)
    return out


def replicate_differential(population: Sequence[Gene], selector: "Selector", ctx: "Context") -> list[Gene]:
    """Differential evolution: ``base + F * (a - b)`` recombined with a target."""
    target = population[selector.gene()]
    base, a, b = (population[selector.mate()] for _ in range(3))
    kid = ctx.ops.mutate(base, a, b, ctx)
    if ctx.rng.random() < ctx.ops.crossrate(target.fitness, ctx):
        kid = ctx.ops.crossover(kid, target, ctx)
    return [ctx.ops.accept(target, kid, ctx)]


KID1 = Replication(replicate_one_kid, kids=1, embeds_acceptance=True)
KID2 = Replication(replicate_two_kids, kids=2, embeds_acceptance=False)
DE = Replication(replicate_differential, kids=1, embeds_acceptance=True, donors=2)

__all__ = ["DE", "KID1", "KID2", "replicate_differential", "replicate_one_kid", "replicate_two_kids"]
