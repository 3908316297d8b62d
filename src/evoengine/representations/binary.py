"""Binary genes for the simple genetic algorithm (``sga``).

Genotypes are boolean numpy vectors of ``penv.genelength()`` bits. Bit
segments are mapped to real parameters with the lengths in
``penv.bitlength()`` and the bounds ``penv.lb()``/``penv.ub()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from evoengine.evolution.genes import Gene
from evoengine.representations.base import Crossover, Mutation, Representation
from evoengine.representations.replication import KID1, KID2

if TYPE_CHECKING:
    from evoengine.context import Context


def init_gene(ctx: "Context") -> Gene:
    length = int(ctx.penv.genelength())
    return Gene(genotype=ctx.rng.random(length) < 0.5)


def _segments(ctx: "Context") -> list[int]:
    return [int(b) for b in np.atleast_1d(ctx.penv.bitlength())]


def _to_unit(bits: np.ndarray) -> float:
    if bits.size == 0:
        return 0.0
    weights = 2.0 ** np.arange(bits.size - 1, -1, -1)
    return float(bits.astype(float) @ weights) / (2.0**bits.size - 1.0)


def gray_to_binary(bits: np.ndarray) -> np.ndarray:
    return np.logical_xor.accumulate(np.asarray(bits, dtype=bool))


def _scaled(bits: np.ndarray, ctx: "Context", gray: bool) -> np.ndarray:
    lb = np.atleast_1d(np.asarray(ctx.penv.lb(), dtype=float))
    ub = np.atleast_1d(np.asarray(ctx.penv.ub(), dtype=float))
    values = []
    start = 0
    for length in _segments(ctx):
        segment = np.asarray(bits[start : start + length], dtype=bool)
        if gray:
            segment = gray_to_binary(segment)
        values.append(_to_unit(segment))
        start += length
    return lb + np.asarray(values) * (ub - lb)


def bin2dec(bits: np.ndarray, ctx: "Context") -> np.ndarray:
    return _scaled(bits, ctx, gray=False)


def gray2dec(bits: np.ndarray, ctx: "Context") -> np.ndarray:
    return _scaled(bits, ctx, gray=True)


def identity(genotype, ctx: "Context"):
    return genotype


def decode_gene(gene: Gene, ctx: "Context"):
    return ctx.ops.gene_map(gene.genotype, ctx)


def _exchange(gene: Gene, mate: Gene, mask: np.ndarray) -> tuple[Gene, Gene]:
    a, b = gene.genotype, mate.genotype
    return gene.offspring(np.where(mask, b, a)), mate.offspring(np.where(mask, a, b))


def _cut_mask(length: int, ctx: "Context") -> np.ndarray:
    cut = int(ctx.rng.integers(1, length)) if length > 1 else length
    return np.arange(length) >= cut


def cross2_gene(gene: Gene, mate: Gene, ctx: "Context") -> tuple[Gene, Gene]:
    """One point crossover."""
    return _exchange(gene, mate, _cut_mask(len(gene.genotype), ctx))


def ucross2_gene(gene: Gene, mate: Gene, ctx: "Context") -> tuple[Gene, Gene]:
    return _exchange(gene, mate, ctx.rng.random(len(gene.genotype)) < 0.5)


def upcross2_gene(gene: Gene, mate: Gene, ctx: "Context") -> tuple[Gene, Gene]:
    swap = ctx.config.operators.ucross_swap
    return _exchange(gene, mate, ctx.rng.random(len(gene.genotype)) < swap)


def cross_gene(gene: Gene, mate: Gene, ctx: "Context") -> Gene:
    return cross2_gene(gene, mate, ctx)[0]


def ucross_gene(gene: Gene, mate: Gene, ctx: "Context") -> Gene:
    return ucross2_gene(gene, mate, ctx)[0]


def upcross_gene(gene: Gene, mate: Gene, ctx: "Context") -> Gene:
    return upcross2_gene(gene, mate, ctx)[0]


def _flip(gene: Gene, rate: float, ctx: "Context") -> Gene:
    flips = ctx.rng.random(len(gene.genotype)) < rate
    return gene.offspring(np.logical_xor(gene.genotype, flips))


def mutate_gene(gene: Gene, ctx: "Context") -> Gene:
    return _flip(gene, ctx.config.operators.bitmutrate, ctx)


def iv_mutate_gene(gene: Gene, ctx: "Context") -> Gene:
    """Bit flips at ``bitmutrate`` for good genes and ``bitmutrate2`` otherwise."""
    ops = ctx.config.operators
    fitness = gene.fitness if gene.evaluated else ctx.state.mean_fitness
    good = fitness > ops.cutoff_fit * ctx.state.best_fitness
    return _flip(gene, ops.bitmutrate if good else ops.bitmutrate2, ctx)


BINARY = Representation(
    algorithm="sga",
    initgene={"InitGene": init_gene},
    decoder={"DecodeGene": decode_gene},
    genemap={"Bin2Dec": bin2dec, "Gray2Dec": gray2dec, "Identity": identity},
    crossover={
        "Cross2Gene": Crossover(cross2_gene, kids=2),
        "UCross2Gene": Crossover(ucross2_gene, kids=2),
        "UPCross2Gene": Crossover(upcross2_gene, kids=2),
        "CrossGene": Crossover(cross_gene),
        "UCrossGene": Crossover(ucross_gene),
        "UPCrossGene": Crossover(upcross_gene),
    },
    mutation={"MutateGene": Mutation(mutate_gene), "IVM": Mutation(iv_mutate_gene)},
    replication={"Kid1": KID1, "Kid2": KID2},
    defaults={
        "initgene": "InitGene",
        "decoder": "DecodeGene",
        "genemap": "Bin2Dec",
        "crossover": "Cross2Gene",
        "mutation": "MutateGene",
        "replication": "Kid2",
    },
)

__all__ = ["BINARY", "bin2dec", "gray2dec", "gray_to_binary"]
