"""Adaptive control: fitness scaling, dispersion ratios and operator rates."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Callable

import numpy as np

from evoengine.errors import lookup
from evoengine.metrics.stats import COLUMNS, StatisticsHistory

if TYPE_CHECKING:
    from evoengine.context import Context

_MEAN, _MIN, _Q1, _MEDIAN, _Q3, _MAX, _VAR, _MAD = range(len(COLUMNS))

DYNAMIC_SCALINGS = frozenset({"ThresholdScaling", "ContinuousScaling"})


# Dispersion measures read a single statistics row.


def dm_var(row: np.ndarray) -> float:
    return float(row[_VAR])


def dm_std(row: np.ndarray) -> float:
    return math.sqrt(max(float(row[_VAR]), 0.0))


def dm_mad(row: np.ndarray) -> float:
    return float(row[_MAD])


def dm_cv(row: np.ndarray) -> float:
    mean = float(row[_MEAN])
    if mean == 0.0:
        return math.inf if row[_VAR] > 0 else 0.0
    return dm_std(row) / abs(mean)


def dm_range(row: np.ndarray) -> float:
    return float(row[_MAX] - row[_MIN])


def dm_iqr(row: np.ndarray) -> float:
    return float(row[_Q3] - row[_Q1])


DISPERSION_MEASURES: dict[str, Callable[[np.ndarray], float]] = {
    "var": dm_var,
    "std": dm_std,
    "mad": dm_mad,
    "cv": dm_cv,
    "range": dm_range,
    "iqr": dm_iqr,
}


def dispersion_ratio(history: StatisticsHistory, measure: Callable[[np.ndarray], float], delay: int) -> float:
    """RDM = D(t) / D(t - delay); 1.0 until enough generations exist."""
    if len(history) <= delay:
        return 1.0
    current = measure(history[-1])
    previous = measure(history[-1 - delay])
    if previous == 0.0:
        return 1.0 if current == 0.0 else math.inf
    return current / previous


def _power(fit: np.ndarray, exponent: float) -> np.ndarray:
    # sign preserving so that negative internal fitness keeps its order
    values = np.asarray(fit, dtype=float)
    if exponent == 1.0:
        return values
    return np.sign(values) * np.abs(values) ** exponent


def threshold_exponent(rdm: float, threshold: float, exp_up: float, exp_down: float) -> float:
    """Scaling exponent for threshold scaling; ``1 +/- threshold`` is inclusive."""
    if rdm > 1.0 + threshold:
        return exp_up
    if rdm < 1.0 - threshold:
        return exp_down
    return 1.0


def continuous_exponent(rdm: float, weight: float, dr_min: float, dr_max: float) -> float:
    return min(max(rdm, dr_min), dr_max) * weight


def no_scaling(fit: np.ndarray, ctx: "Context") -> np.ndarray:
    return np.asarray(fit, dtype=float)


def constant_scaling(fit: np.ndarray, ctx: "Context") -> np.ndarray:
    return _power(fit, ctx.config.scaling.scaling_exp)


def threshold_scaling(fit: np.ndarray, ctx: "Context") -> np.ndarray:
    cfg = ctx.config.scaling
    exponent = threshold_exponent(ctx.state.rdm, cfg.scaling_threshold, cfg.scaling_exp, cfg.scaling_exp2)
    return _power(fit, exponent)


def continuous_scaling(fit: np.ndarray, ctx: "Context") -> np.ndarray:
    cfg = ctx.config.scaling
    return _power(fit, continuous_exponent(ctx.state.rdm, cfg.rdm_weight, cfg.dr_min, cfg.dr_max))


SCALINGS: dict[str, Callable[[np.ndarray, "Context"], np.ndarray]] = {
    "NoScaling": no_scaling,
    "ConstantScaling": constant_scaling,
    "ThresholdScaling": threshold_scaling,
    "ContinuousScaling": continuous_scaling,
}


# Individually variable operator rates. A gene above cutoff * best keeps the
# first rate; weaker genes get the second one.


def _is_good(fitness: float, ctx: "Context") -> bool:
    return fitness > ctx.config.operators.cutoff_fit * ctx.state.best_fitness


def const_crossrate(fitness: float, ctx: "Context") -> float:
    return ctx.config.crossrate


def iv_crossrate(fitness: float, ctx: "Context") -> float:
    return ctx.config.crossrate if _is_good(fitness, ctx) else ctx.config.operators.crossrate2


def const_mutrate(fitness: float, ctx: "Context") -> float:
    return ctx.config.mutrate


def iv_mutrate(fitness: float, ctx: "Context") -> float:
    return ctx.config.mutrate if _is_good(fitness, ctx) else ctx.config.operators.mutrate2


CROSS_RATES: dict[str, Callable[[float, "Context"], float]] = {"Const": const_crossrate, "IV": iv_crossrate}
MUTATION_RATES: dict[str, Callable[[float, "Context"], float]] = {"Const": const_mutrate, "IV": iv_mutrate}


def scaling_factory(label: str) -> Callable[[np.ndarray, "Context"], np.ndarray]:
    return lookup(SCALINGS, "scaling", label)


def dispersion_factory(label: str) -> Callable[[np.ndarray], float]:
    return lookup(DISPERSION_MEASURES, "dispersion measure", label)


def crossrate_factory(label: str) -> Callable[[float, "Context"], float]:
    return lookup(CROSS_RATES, "crossover rate", label)


def mutrate_factory(label: str) -> Callable[[float, "Context"], float]:
    return lookup(MUTATION_RATES, "mutation rate", label)


__all__ = [
    "CROSS_RATES",
    "DISPERSION_MEASURES",
    "DYNAMIC_SCALINGS",
    "MUTATION_RATES",
    "SCALINGS",
    "continuous_exponent",
    "crossrate_factory",
    "dispersion_factory",
    "dispersion_ratio",
    "mutrate_factory",
    "scaling_factory",
    "threshold_exponent",
]
