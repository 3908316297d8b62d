"""Permutation genes (``sgperm``) for sequencing problems such as tours."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from evoengine.evolution.genes import Gene
from evoengine.representations.base import Crossover, Mutation, Representation
from evoengine.representations.binary import identity
from evoengine.representations.replication import KID1, KID2

if TYPE_CHECKING:
    from evoengine.context import Context


def init_gene(ctx: "Context") -> Gene:
    return Gene(genotype=ctx.rng.permutation(int(ctx.penv.genelength())))


def decode_gene(gene: Gene, ctx: "Context"):
    return ctx.ops.gene_map(gene.genotype, ctx)


def _position_based(keep_from: np.ndarray, fill_from: np.ndarray, mask: np.ndarray) -> np.ndarray:
    kid = np.where(mask, keep_from, -1)
    kept = set(keep_from[mask].tolist())
    kid[~mask] = [symbol for symbol in fill_from.tolist() if symbol not in kept]
    return kid


def cross2_gene(gene: Gene, mate: Gene, ctx: "Context") -> tuple[Gene, Gene]:
    """Position based crossover: keep random positions, fill in the mate's order."""
    a, b = np.asarray(gene.genotype), np.asarray(mate.genotype)
    mask = ctx.rng.random(a.size) < 0.5
    return gene.offspring(_position_based(a, b, mask)), mate.offspring(_position_based(b, a, mask))


def cross_gene(gene: Gene, mate: Gene, ctx: "Context") -> Gene:
    return cross2_gene(gene, mate, ctx)[0]


def mutate_gene_order_based(gene: Gene, ctx: "Context") -> Gene:
    """Swap every position, with probability ``bitmutrate``, with a random one."""
    perm = np.array(gene.genotype, copy=True)
    hits = np.flatnonzero(ctx.rng.random(perm.size) < ctx.config.operators.bitmutrate)
    for pos in hits:
        other = int(ctx.rng.integers(perm.size))
        perm[pos], perm[other] = perm[other], perm[pos]
    return gene.offspring(perm)


def mutate_gene_k_inversion(gene: Gene, ctx: "Context") -> Gene:
    """Invert a random segment, then another with probability ``lambda``, and so on."""
    perm = np.array(gene.genotype, copy=True)
    while True:
        i, j = sorted(int(x) for x in ctx.rng.integers(0, perm.size, size=2))
        perm[i : j + 1] = perm[i : j + 1][::-1]
        if ctx.rng.random() >= ctx.config.operators.lambda_:
            break
    return gene.offspring(perm)


PERMUTATION = Representation(
    algorithm="sgperm",
    initgene={"InitGene": init_gene},
    decoder={"DecodeGene": decode_gene},
    genemap={"Identity": identity},
    crossover={"Cross2Gene": Crossover(cross2_gene, kids=2), "CrossGene": Crossover(cross_gene)},
    mutation={
        "MutateGene": Mutation(mutate_gene_order_based),
        "MutateGeneOrderBased": Mutation(mutate_gene_order_based),
        "MutateGenekInversion": Mutation(mutate_gene_k_inversion),
    },
    replication={"Kid1": KID1, "Kid2": KID2},
    defaults={
        "initgene": "InitGene",
        "decoder": "DecodeGene",
        "genemap": "Identity",
        "crossover": "Cross2Gene",
        "mutation": "MutateGenekInversion",
        "replication": "Kid2",
    },
)

__all__ = ["PERMUTATION", "cross2_gene", "mutate_gene_k_inversion", "mutate_gene_order_based"]
