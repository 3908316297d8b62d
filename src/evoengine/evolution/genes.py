"""Gene value type shared by the engine and representation plugins."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True, eq=False)
class Gene:
    """An encoded candidate solution.

    Attributes:
        genotype: Representation specific payload (bit vector, real vector,
            permutation, derivation tree). Never mutated in place.
        fitness: Internal fitness (larger is better) once evaluated.
        evaluated: Whether ``fitness`` belongs to the current genotype.
        failed: The last evaluation raised or produced a non-finite value.
        obs: Number of objective evaluations folded into ``fitness``.
        variance: Running variance of the objective (stochastic evaluation).
    """

    genotype: Any
    fitness: float = 0.0
    evaluated: bool = False
    failed: bool = False
    obs: int = 0
    variance: float = 0.0

    def offspring(self, genotype: Any) -> "Gene":
        """A fresh, unevaluated gene carrying ``genotype``."""
        return Gene(genotype=genotype)

    def scored(self, fitness: float, *, obs: int, variance: float = 0.0, failed: bool = False) -> "Gene":
        return replace(self, fitness=float(fitness), evaluated=True, failed=failed, obs=obs, variance=variance)


__all__ = ["Gene"]
