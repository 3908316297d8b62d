"""Entry point: run the generational loop for a problem environment."""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from dataclasses import replace
from typing import Any, Callable, Optional

import numpy as np

from evoengine.config import RunConfig
from evoengine.context import Context, build_context
from evoengine.errors import ConfigurationError, PopulationIntegrityError
from evoengine.evolution.adaptive import DYNAMIC_SCALINGS, dispersion_ratio
from evoengine.evolution.population import best_in_population, init_population, next_population, summarize
from evoengine.evolution.termination import known_optimum, pac_bound
from evoengine.execution.evaluation import evaluate_population
from evoengine.execution.strategies import ExecutionStrategy, execution_factory
from evoengine.metrics.recorder import RunRecorder
from evoengine.registry import resolve_operators
from evoengine.result import RunResult

logger = logging.getLogger(__name__)

_GROUPS = ("operators", "scaling", "acceptance", "termination", "execution", "reporting")
_ALIASES = {"max": "maximize", "lambda": "lambda_"}


def merge_config(config: Optional[RunConfig], overrides: dict[str, Any]) -> RunConfig:
    """Merge keyword overrides over ``config`` or the defaults.

    Groups may be given as dicts (``acceptance={"accept": "Best"}``); a
    parameter of a group may also be given flat (``verbose=0``).
    """
    data = (config or RunConfig()).model_dump()
    owner = {name: group for group in _GROUPS for name in data[group]}
    for key, value in overrides.items():
        key = _ALIASES.get(key, key)
        if key in _GROUPS and isinstance(value, dict):
            data[key] = {**data[key], **{_ALIASES.get(k, k): v for k, v in value.items()}}
        elif key in _GROUPS:
            # a flat value for a group means the group's field of the same name
            if key not in data[key]:
                raise ConfigurationError(f"Run parameter group {key!r} takes a dict, got {value!r}")
            data[key] = {**data[key], key: value}
        elif key in data:
            data[key] = value
        elif key in owner:
            data[owner[key]] = {**data[owner[key]], key: value}
        else:
            raise ConfigurationError(f"Unknown run parameter {key!r}")
    return RunConfig.model_validate(data)


def fresh_seed() -> int:
    """A positive seed drawn from OS entropy."""
    state = np.random.SeedSequence().generate_state(1)
    return int(state[0]) or 1


def run(
    penv: Any,
    config: Optional[RunConfig] = None,
    *,
    grammar: Any = None,
    user_apply: Optional[Callable] = None,
    cluster: Optional[Executor] = None,
    **overrides: Any,
) -> RunResult:
    """Evolve a population for ``penv`` and return the run's result.

    Args:
        penv: Problem environment providing ``f(phenotype, gene, ctx)`` and the
            accessors the chosen representation needs.
        config: Base configuration; keyword ``overrides`` are merged over it.
        grammar: Passed through to representation plugins that need one.
        user_apply: ``apply(population, evaluate, ctx)`` replacing the
            configured execution model.
        cluster: Executor for the ``Cluster`` and ``ClusterHet`` models.

    Configuration errors raise before anything is evaluated. A population
    that shrinks during evaluation ends the run with ``aborted=True``.
    """
    config = merge_config(config, overrides)
    seed = config.replay or fresh_seed()
    execution = config.execution.model_copy(update={"user_apply": user_apply is not None})
    config = config.model_copy(update={"replay": seed, "execution": execution})
    ops, config = resolve_operators(config, penv)
    strategy = execution_factory(
        config.execution.execution_model,
        cores=config.execution.cores,
        cluster=cluster,
        user_apply=user_apply,
    )
    try:
        ctx = build_context(config, penv, replace(ops, par_apply=strategy), np.random.default_rng(seed), grammar)
        ctx = ctx.update(optimum=known_optimum(penv))
        recorder = RunRecorder(config, penv)
        result = _evolve(ctx, strategy, recorder)
    finally:
        strategy.close()
    return recorder.finalize(result)


def _abort(recorder: RunRecorder, population, fit, ctx: Context) -> RunResult:
    error = PopulationIntegrityError(
        f"population has {len(population)} genes after evaluation, expected {ctx.popsize}"
    )
    logger.error("Run aborted: %s", error, extra={"generation": ctx.state.generation})
    solution = best_in_population(population, fit, ctx) if len(population) else None
    return recorder.result(fit, solution, ctx, aborted=True, error=str(error))


def _evolve(ctx: Context, strategy: ExecutionStrategy, recorder: RunRecorder) -> RunResult:
    config = ctx.config
    profile = config.reporting.profile
    timers = recorder.timers
    init = timers.wrap("InitPopulation", init_population, profile)
    evaluate = timers.wrap("EvalPopulation", evaluate_population, profile)
    observe = timers.wrap("ObservePopulation", recorder.history.observe, profile)
    summary = timers.wrap("SummaryPopulation", summarize, profile)
    advance = timers.wrap("NextPopulation", next_population, profile)
    allsolutions = config.reporting.allsolutions

    with timers["MainLoop"].measure():
        population, fit, failures = evaluate(init(ctx), ctx, strategy)
        recorder.count_failures(failures)
        if len(population) < ctx.popsize:
            return _abort(recorder, population, fit, ctx)
        row = observe(fit)
        if config.termination.termination_condition == "PAC":
            ctx = ctx.update(pac_opt=pac_bound(row, config.termination.pac_delta))
        recorder.log_evals(0, population, fit, ctx)
        solution = best_in_population(population, fit, ctx, allsolutions)
        recorder.save_anytime(fit, solution, ctx)
        recorder.report_generation(ctx, solution)
        stop = ctx.ops.terminate(solution, ctx)

        generation = 1
        while not stop and generation <= config.generations:
            ctx = summary(fit, ctx, generation)
            if config.scaling.scaling in DYNAMIC_SCALINGS:
                rdm = dispersion_ratio(recorder.history, ctx.ops.dispersion, config.scaling.scaling_delay)
                ctx = ctx.update(rdm=rdm)
            population, failures = advance(population, fit, ctx)
            recorder.count_failures(failures)
            population, fit, failures = evaluate(population, ctx, strategy)
            recorder.count_failures(failures)
            if len(population) < ctx.popsize:
                return _abort(recorder, population, fit, ctx)
            observe(fit)
            recorder.log_evals(generation, population, fit, ctx)
            recorder.generations_run = generation
            solution = best_in_population(population, fit, ctx, allsolutions)
            recorder.save_anytime(fit, solution, ctx)
            recorder.report_generation(ctx, solution)
            stop = ctx.ops.terminate(solution, ctx)
            ctx = ctx.update(temperature=ctx.ops.cooling(generation, ctx))
            generation += 1

    if stop:
        logger.info("Terminated early", extra={"generation": recorder.generations_run})
    return recorder.result(fit, solution, ctx)


__all__ = ["fresh_seed", "merge_config", "run"]
