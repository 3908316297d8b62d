"""Representation plugin contract.

A representation bundles the gene level operators of one algorithm family,
each slot keyed by method label. The engine only calls them through these
signatures::

    init(ctx) -> Gene
    decode(gene, ctx) -> phenotype
    genemap(genotype, ctx) -> decoded value
    crossover(gene, mate, ctx) -> Gene | tuple[Gene, Gene]
    mutate(gene, ctx) -> Gene                     (donors == 0)
    mutate(base, a, b, ctx) -> Gene               (donors == 2)
    replicate(population, selector, ctx) -> list[Gene]

Crossovers, mutations and replications carry the metadata needed to reject
combinations that cannot work together before a run starts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Mapping

from evoengine.errors import ConfigurationError, lookup

SLOTS: tuple[str, ...] = ("initgene", "decoder", "genemap", "crossover", "mutation", "replication")


@dataclass(frozen=True)
class Crossover:
    fn: Callable
    kids: int = 1

    def __call__(self, gene, mate, ctx):
        return self.fn(gene, mate, ctx)


@dataclass(frozen=True)
class Mutation:
    fn: Callable
    donors: int = 0

    def __call__(self, *args):
        return self.fn(*args)


@dataclass(frozen=True)
class Replication:
    """A replication strategy.

    Attributes:
        kids: Genes produced per call; the crossover must produce as many.
        embeds_acceptance: Whether the strategy runs the acceptance rule.
        donors: Difference donors the mutation operator expects.
    """

    fn: Callable
    kids: int = 1
    embeds_acceptance: bool = True
    donors: int = 0

    def __call__(self, population, selector, ctx):
        return self.fn(population, selector, ctx)


@dataclass(frozen=True)
class Representation:
    algorithm: str
    initgene: Mapping[str, Callable]
    decoder: Mapping[str, Callable]
    genemap: Mapping[str, Callable]
    crossover: Mapping[str, Crossover]
    mutation: Mapping[str, Mutation]
    replication: Mapping[str, Replication]
    defaults: Mapping[str, str] = field(default_factory=dict)

    def resolve(self, slot: str, label: str | None) -> tuple[str, Callable]:
        """Return ``(label, operator)`` for ``slot``, using the default when unset."""
        if slot not in SLOTS:
            raise ConfigurationError(f"Unknown operator slot {slot!r}")
        chosen = label if label is not None else self.defaults.get(slot)
        if chosen is None:
            raise ConfigurationError(f"No {slot} method configured for algorithm {self.algorithm!r}")
        table = getattr(self, slot)
        return chosen, lookup(table, f"{self.algorithm} {slot}", chosen)


__all__ = ["Crossover", "Mutation", "Replication", "Representation", "SLOTS"]
