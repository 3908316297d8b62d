"""Run recorder: statistics history, counters, eval log and result output."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Sequence

import numpy as np

from evoengine.config import RunConfig
from evoengine.evolution.genes import Gene
from evoengine.metrics.persistence import create_exclusive_file, save_anytime_result, save_exclusive, write_pickle
from evoengine.metrics.stats import StatisticsHistory
from evoengine.metrics.timers import PhaseTimers
from evoengine.result import RunResult, Solution

if TYPE_CHECKING:
    from evoengine.context import Context

logger = logging.getLogger(__name__)


class RunRecorder:
    """Accumulates everything a run reports and assembles the ``RunResult``."""

    def __init__(self, config: RunConfig, penv: Any) -> None:
        self.config = config
        self.penv = penv
        self.timers = PhaseTimers()
        self.history = StatisticsHistory()
        self.eval_failures = 0
        self.generations_run = 0
        self.eval_log: list[dict[str, Any]] = []

    @property
    def path(self) -> Path:
        return Path(self.config.reporting.path)

    def count_failures(self, failures: int) -> None:
        self.eval_failures += failures

    def log_evals(self, generation: int, population: Sequence[Gene], fit: np.ndarray, ctx: "Context") -> None:
        if not self.config.reporting.logevals:
            return
        for gene, fitness in zip(population, fit):
            self.eval_log.append(
                {
                    "generation": generation,
                    "fitness": ctx.sign * float(fitness),
                    "phenotype": ctx.ops.decode_gene(gene, ctx),
                }
            )

    def report_generation(self, ctx: "Context", solution: Solution) -> None:
        if self.config.reporting.verbose < 1:
            return
        row = self.history[-1]
        logger.info(
            "Generation %d: best=%.6g mean=%.6g var=%.6g temperature=%.6g",
            ctx.state.generation,
            solution.fitness,
            row[0],
            row[6],
            ctx.state.temperature,
            extra={
                "generation": ctx.state.generation,
                "best": solution.fitness,
                "mean": float(row[0]),
                "var": float(row[6]),
                "temperature": ctx.state.temperature,
            },
        )

    def result(
        self,
        fit: Optional[np.ndarray],
        solution: Optional[Solution],
        ctx: "Context",
        *,
        aborted: bool = False,
        error: Optional[str] = None,
    ) -> RunResult:
        return RunResult(
            stats=self.history.as_array(),
            fitness=None if fit is None else ctx.sign * np.asarray(fit, dtype=float),
            solution=solution,
            eval_failures=self.eval_failures,
            config=self.config.recorded(),
            timer=self.timers.summary(),
            environment=self.penv,
            generations_run=self.generations_run,
            aborted=aborted,
            error=error,
            eval_log=list(self.eval_log),
        )

    def save_anytime(self, fit: np.ndarray, solution: Solution, ctx: "Context") -> None:
        if self.config.reporting.anytime:
            save_anytime_result(self.result(fit, solution, ctx), self.path)

    def finalize(self, result: RunResult) -> RunResult:
        """Write the eval log and the batch result when requested."""
        reporting = self.config.reporting
        if reporting.logevals:
            result.log_path = save_exclusive(result.eval_log, self.path, prefix="evalLog")
            logger.info("Evaluation log written", extra={"path": str(result.log_path)})
        if reporting.batch:
            result.result_path = create_exclusive_file(self.path, prefix="evoResult", ext=".pkl")
            write_pickle(result, result.result_path)
            logger.info("Result written", extra={"path": str(result.result_path)})
        return result


__all__ = ["RunRecorder"]
