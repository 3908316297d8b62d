"""Acceptance rules for offspring and the temperature schedules they use.

Acceptance compares a kid with its parent on internal (larger is better)
fitness. ``All`` never looks at fitness, the other rules evaluate the kid
first. A kid whose evaluation failed never replaces its parent.

Cooling schedules map the generation index ``k`` to a temperature. The
multiplicative schedules only need ``temp0``; the additive ones interpolate
between ``temp0`` and ``tempN`` over the configured number of generations and
hit ``tempN`` exactly at ``k == generations``.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Callable

from evoengine.errors import lookup
from evoengine.evolution.genes import Gene

if TYPE_CHECKING:
    from evoengine.context import Context


def _evaluated(gene: Gene, ctx: "Context") -> Gene:
    return gene if gene.evaluated else ctx.ops.eval_gene(gene, ctx)


def accept_all(parent: Gene, kid: Gene, ctx: "Context") -> Gene:
    return kid


def accept_best(parent: Gene, kid: Gene, ctx: "Context") -> Gene:
    kid = _evaluated(kid, ctx)
    if kid.failed:
        return parent
    return kid if kid.fitness >= parent.fitness else parent


def metropolis_probability(delta: float, beta: float, temperature: float) -> float:
    """Probability of accepting a kid that is ``delta`` worse than its parent."""
    if delta <= 0.0:
        return 1.0
    if temperature <= 0.0:
        return 0.0
    return math.exp(-beta * delta / temperature)


def _metropolis(parent: Gene, kid: Gene, ctx: "Context", temperature: float) -> Gene:
    if kid.failed:
        return parent
    if kid.fitness >= parent.fitness:
        return kid
    p = metropolis_probability(parent.fitness - kid.fitness, ctx.config.acceptance.beta, temperature)
    return kid if ctx.rng.random() < p else parent


def accept_metropolis(parent: Gene, kid: Gene, ctx: "Context") -> Gene:
    kid = _evaluated(kid, ctx)
    return _metropolis(parent, kid, ctx, ctx.state.temperature)


def iv_temperature(temperature: float, best: float, fitness: float) -> float:
    """Raise the temperature in proportion to the kid's gap to the best fitness."""
    gap = max(best - fitness, 0.0)
    return temperature * (1.0 + gap)


def accept_iv_metropolis(parent: Gene, kid: Gene, ctx: "Context") -> Gene:
    kid = _evaluated(kid, ctx)
    if kid.failed:
        return parent
    temperature = iv_temperature(ctx.state.temperature, ctx.state.best_fitness, kid.fitness)
    return _metropolis(parent, kid, ctx, temperature)


ACCEPT_RULES: dict[str, Callable[[Gene, Gene, "Context"], Gene]] = {
    "All": accept_all,
    "Best": accept_best,
    "Metropolis": accept_metropolis,
    "IVMetropolis": accept_iv_metropolis,
}


def exponential_multiplicative(k: int, ctx: "Context") -> float:
    cfg = ctx.config.acceptance
    return cfg.temp0 * cfg.alpha**k


def logarithmic_multiplicative(k: int, ctx: "Context") -> float:
    cfg = ctx.config.acceptance
    return cfg.temp0 / (1.0 + cfg.alpha * math.log1p(k))


def power_multiplicative(k: int, ctx: "Context") -> float:
    cfg = ctx.config.acceptance
    return cfg.temp0 / (1.0 + cfg.alpha * k**cfg.cooling_power)


def _progress(k: int, ctx: "Context") -> float:
    n = max(ctx.config.generations, 1)
    return min(max(k / n, 0.0), 1.0)


def power_additive(k: int, ctx: "Context") -> float:
    cfg = ctx.config.acceptance
    remaining = 1.0 - _progress(k, ctx)
    return cfg.temp_n + (cfg.temp0 - cfg.temp_n) * remaining**cfg.cooling_power


def exponential_additive(k: int, ctx: "Context") -> float:
    cfg = ctx.config.acceptance
    span = cfg.temp0 - cfg.temp_n
    if span <= 0.0:
        return cfg.temp_n
    # logistic descent, renormalised to run from exactly temp0 to exactly tempN
    steep = 2.0 * math.log1p(span)

    def logistic(x: float) -> float:
        return 1.0 / (1.0 + math.exp(steep * (x - 0.5)))

    top, bottom = logistic(0.0), logistic(1.0)
    weight = (logistic(_progress(k, ctx)) - bottom) / (top - bottom)
    return cfg.temp_n + span * weight


def trigonometric_additive(k: int, ctx: "Context") -> float:
    cfg = ctx.config.acceptance
    return cfg.temp_n + 0.5 * (cfg.temp0 - cfg.temp_n) * (1.0 + math.cos(math.pi * _progress(k, ctx)))


COOLING_SCHEDULES: dict[str, Callable[[int, "Context"], float]] = {
    "ExponentialMultiplicative": exponential_multiplicative,
    "LogarithmicMultiplicative": logarithmic_multiplicative,
    "PowerMultiplicative": power_multiplicative,
    "PowerAdditive": power_additive,
    "ExponentialAdditive": exponential_additive,
    "TrigonometricAdditive": trigonometric_additive,
}


def accept_factory(label: str) -> Callable[[Gene, Gene, "Context"], Gene]:
    return lookup(ACCEPT_RULES, "acceptance", label)


def cooling_factory(label: str) -> Callable[[int, "Context"], float]:
    return lookup(COOLING_SCHEDULES, "cooling", label)


__all__ = [
    "ACCEPT_RULES",
    "COOLING_SCHEDULES",
    "accept_factory",
    "cooling_factory",
    "iv_temperature",
    "metropolis_probability",
]
