"""Termination predicates, checked once per generation.

Every predicate has the signature ``fn(solution, ctx) -> bool`` and receives
the best-in-population solution of the generation just evaluated. Error based
conditions compare ``solution.fitness`` (objective scale) with the optimum
stored in ``ctx.state.optimum``; ``PAC`` compares internal fitness with the
bound computed from the initial population.
"""

from __future__ import annotations

import math
from statistics import NormalDist
from typing import TYPE_CHECKING, Any, Callable, Optional

import numpy as np

from evoengine.errors import ConfigurationError, lookup
from evoengine.metrics.stats import COLUMNS

if TYPE_CHECKING:
    from evoengine.context import Context
    from evoengine.result import Solution

TerminateFn = Callable[["Solution", "Context"], bool]

NEEDS_OPTIMUM = frozenset({"AbsoluteError", "RelativeError", "RelativeErrorZero"})


def pac_bound(row: np.ndarray, delta: float) -> float:
    """Upper bound exceeded by the optimum with probability below ``delta``."""
    mean = float(row[COLUMNS.index("mean")])
    var = max(float(row[COLUMNS.index("var")]), 0.0)
    return mean + math.sqrt(var) * NormalDist().inv_cdf(1.0 - delta)


def _window(centre: float, eps: float, zero_is_absolute: bool) -> float:
    if centre == 0.0 and zero_is_absolute:
        return eps
    return eps * abs(centre)


def _optimum(ctx: "Context") -> float:
    if ctx.state.optimum is None:
        raise ConfigurationError("termination condition needs the problem environment's global optimum")
    return ctx.state.optimum


def no_termination(solution: "Solution", ctx: "Context") -> bool:
    return False


def absolute_error(solution: "Solution", ctx: "Context") -> bool:
    return abs(solution.fitness - _optimum(ctx)) <= ctx.config.termination.termination_eps


def relative_error(solution: "Solution", ctx: "Context") -> bool:
    optimum = _optimum(ctx)
    return abs(solution.fitness - optimum) <= _window(optimum, ctx.config.termination.termination_eps, False)


def relative_error_zero(solution: "Solution", ctx: "Context") -> bool:
    optimum = _optimum(ctx)
    return abs(solution.fitness - optimum) <= _window(optimum, ctx.config.termination.termination_eps, True)


def pac(solution: "Solution", ctx: "Context") -> bool:
    bound = ctx.state.pac_opt
    if bound is None:
        return False
    internal = ctx.sign * solution.fitness
    return internal >= bound - _window(bound, ctx.config.termination.termination_eps, True)


def greater_or_equal(solution: "Solution", ctx: "Context") -> bool:
    return solution.fitness >= ctx.config.termination.termination_threshold


def less_or_equal(solution: "Solution", ctx: "Context") -> bool:
    return solution.fitness <= ctx.config.termination.termination_threshold


def environment_terminate(solution: "Solution", ctx: "Context") -> bool:
    return bool(ctx.penv.terminate(solution))


TERMINATIONS: dict[str, TerminateFn] = {
    "NoTermination": no_termination,
    "AbsoluteError": absolute_error,
    "RelativeError": relative_error,
    "RelativeErrorZero": relative_error_zero,
    "PAC": pac,
    "GEQ": greater_or_equal,
    "LEQ": less_or_equal,
}


def known_optimum(penv: Any) -> Optional[float]:
    """Objective value of the environment's global optimum, if it declares one."""
    getter = getattr(penv, "global_optimum", None)
    if getter is None:
        return None
    optimum = getter()
    if isinstance(optimum, dict):
        optimum = optimum.get("value")
    return None if optimum is None else float(optimum)


def termination_factory(label: str, penv: Any = None, early: bool = False) -> TerminateFn:
    """Resolve a termination predicate.

    With ``early`` set and an environment that defines ``terminate``, the
    environment's own predicate wins over ``label``.
    """
    if early and callable(getattr(penv, "terminate", None)):
        return environment_terminate
    fn = lookup(TERMINATIONS, "termination", label)
    if label in NEEDS_OPTIMUM and penv is not None and known_optimum(penv) is None:
        raise ConfigurationError(f"termination condition {label!r} needs penv.global_optimum()")
    return fn


__all__ = [
    "NEEDS_OPTIMUM",
    "TERMINATIONS",
    "TerminateFn",
    "known_optimum",
    "pac_bound",
    "termination_factory",
]
