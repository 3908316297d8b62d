"""Solution and run result records."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import numpy as np

from evoengine.evolution.genes import Gene
from evoengine.metrics.stats import COLUMNS


@dataclass
class Solution:
    """Best gene(s) of a population.

    ``fitness`` and ``value`` are on the objective's own scale, so for a
    minimisation run the smallest objective value is the best. ``value`` is a
    fresh evaluation of the objective at ``phenotype``; for deterministic
    objectives it equals ``fitness``.
    """

    fitness: float
    value: float
    gene: Gene
    phenotype: Any
    ties: int = 1
    genes: list[Gene] = field(default_factory=list)
    phenotypes: list[Any] = field(default_factory=list)


@dataclass
class RunResult:
    """Everything a run produces, in a picklable record.

    ``stats`` rows are on the internal (larger is better) fitness scale;
    ``fitness`` is the final fitness vector on the objective's scale.
    """

    stats: np.ndarray
    fitness: Optional[np.ndarray]
    solution: Optional[Solution]
    eval_failures: int
    config: dict[str, Any]
    timer: dict[str, float]
    environment: Any = None
    generations_run: int = 0
    aborted: bool = False
    error: Optional[str] = None
    log_path: Optional[Path] = None
    result_path: Optional[Path] = None
    eval_log: list[dict[str, Any]] = field(default_factory=list)

    @property
    def columns(self) -> tuple[str, ...]:
        return COLUMNS

    def stat(self, name: str) -> np.ndarray:
        return self.stats[:, COLUMNS.index(name)]


__all__ = ["RunResult", "Solution"]
