"""Real valued genes for differential evolution (``sgde``)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

import numpy as np

from evoengine.errors import lookup
from evoengine.evolution.genes import Gene
from evoengine.representations.base import Crossover, Mutation, Representation
from evoengine.representations.binary import identity
from evoengine.representations.replication import DE

if TYPE_CHECKING:
    from evoengine.context import Context


def _bounds(ctx: "Context") -> tuple[np.ndarray, np.ndarray]:
    lb = np.atleast_1d(np.asarray(ctx.penv.lb(), dtype=float))
    ub = np.atleast_1d(np.asarray(ctx.penv.ub(), dtype=float))
    return lb, ub


def init_gene(ctx: "Context") -> Gene:
    lb, ub = _bounds(ctx)
    return Gene(genotype=lb + ctx.rng.random(lb.size) * (ub - lb))


def decode_gene(gene: Gene, ctx: "Context"):
    return ctx.ops.gene_map(gene.genotype, ctx)


def _take(gene: Gene, mate: Gene, mask: np.ndarray) -> Gene:
    return gene.offspring(np.where(mask, mate.genotype, gene.genotype))


def cross_gene(gene: Gene, mate: Gene, ctx: "Context") -> Gene:
    length = len(gene.genotype)
    cut = int(ctx.rng.integers(1, length)) if length > 1 else length
    return _take(gene, mate, np.arange(length) >= cut)


def ucross_gene(gene: Gene, mate: Gene, ctx: "Context") -> Gene:
    return _take(gene, mate, ctx.rng.random(len(gene.genotype)) < 0.5)


def upcross_gene(gene: Gene, mate: Gene, ctx: "Context") -> Gene:
    return _take(gene, mate, ctx.rng.random(len(gene.genotype)) < ctx.config.operators.ucross_swap)


def const_scale_factor(ctx: "Context") -> float:
    return ctx.config.operators.scalefactor1


def uniform_scale_factor(ctx: "Context") -> float:
    low, high = sorted((ctx.config.operators.scalefactor2, ctx.config.operators.scalefactor1))
    return float(ctx.rng.uniform(low, high))


SCALE_FACTORS: dict[str, Callable[["Context"], float]] = {
    "Const": const_scale_factor,
    "Uniform": uniform_scale_factor,
}


def scale_factor_factory(label: str) -> Callable[["Context"], float]:
    return lookup(SCALE_FACTORS, "scale factor", label)


def mutate_gene_de(base: Gene, a: Gene, b: Gene, ctx: "Context") -> Gene:
    """``base + F * (a - b)``, clipped to the environment's bounds."""
    lb, ub = _bounds(ctx)
    factor = ctx.ops.scale_factor(ctx)
    trial = base.genotype + factor * (a.genotype - b.genotype)
    return base.offspring(np.clip(trial, lb, ub))


REAL = Representation(
    algorithm="sgde",
    initgene={"InitGene": init_gene},
    decoder={"DecodeGene": decode_gene},
    genemap={"Identity": identity},
    crossover={
        "CrossGene": Crossover(cross_gene),
        "UCrossGene": Crossover(ucross_gene),
        "UPCrossGene": Crossover(upcross_gene),
    },
    mutation={"MutateGeneDE": Mutation(mutate_gene_de, donors=2)},
    replication={"DE": DE},
    defaults={
        "initgene": "InitGene",
        "decoder": "DecodeGene",
        "genemap": "Identity",
        "crossover": "UCrossGene",
        "mutation": "MutateGeneDE",
        "replication": "DE",
    },
)

__all__ = ["REAL", "SCALE_FACTORS", "mutate_gene_de", "scale_factor_factory"]
