import math

import numpy as np
import pytest

from evoengine.evolution.acceptance import (
    COOLING_SCHEDULES,
    accept_factory,
    iv_temperature,
    metropolis_probability,
)
from evoengine.evolution.genes import Gene

ADDITIVE = ["PowerAdditive", "ExponentialAdditive", "TrigonometricAdditive"]


@pytest.mark.parametrize("label", ADDITIVE)
def test_additive_schedules_hit_both_end_temperatures(make_context, label):
    ctx = make_context(generations=25, acceptance={"cooling": label, "temp0": 40.0, "temp_n": 0.5})
    cooling = COOLING_SCHEDULES[label]
    assert cooling(0, ctx) == pytest.approx(40.0)
    assert cooling(25, ctx) == 0.5


@pytest.mark.parametrize("label", sorted(COOLING_SCHEDULES))
def test_schedules_never_increase(make_context, label):
    ctx = make_context(
        generations=30, acceptance={"cooling": label, "alpha": 0.9, "cooling_power": 2.0, "temp_n": 1.0}
    )
    temps = [COOLING_SCHEDULES[label](k, ctx) for k in range(31)]
    assert all(b <= a + 1e-12 for a, b in zip(temps, temps[1:]))


def test_exponential_multiplicative_formula(make_context):
    ctx = make_context(acceptance={"temp0": 10.0, "alpha": 0.5})
    assert COOLING_SCHEDULES["ExponentialMultiplicative"](3, ctx) == pytest.approx(1.25)


def test_metropolis_probability():
    assert metropolis_probability(-1.0, 2.0, 1.0) == 1.0
    assert metropolis_probability(1.0, 2.0, 0.0) == 0.0
    assert metropolis_probability(1.0, 2.0, 4.0) == pytest.approx(math.exp(-0.5))


def test_iv_temperature_grows_with_gap():
    assert iv_temperature(2.0, 10.0, 10.0) == 2.0
    assert iv_temperature(2.0, 10.0, 5.0) == pytest.approx(12.0)
    assert iv_temperature(0.01, -1e-4, -0.5) == pytest.approx(0.01 * 1.4999)


def test_iv_metropolis_stays_cold_near_zero_best(make_context):
    ctx = make_context(max=False, acceptance={"accept": "IVMetropolis"})
    ctx = ctx.update(temperature=0.01, best_fitness=-1e-4)
    accept = accept_factory("IVMetropolis")
    parent = Gene(genotype=np.zeros(40, dtype=bool)).scored(-0.001, obs=1)
    worse = Gene(genotype=np.ones(40, dtype=bool)).scored(-0.5, obs=1)
    assert all(accept(parent, worse, ctx) is parent for _ in range(200))


def test_accept_best_keeps_fitter_gene(make_context):
    ctx = make_context(acceptance={"accept": "Best"})
    accept = accept_factory("Best")
    parent = Gene(genotype=np.zeros(40, dtype=bool)).scored(-0.5, obs=1)
    better = Gene(genotype=np.ones(40, dtype=bool)).scored(-0.1, obs=1)
    worse = Gene(genotype=np.ones(40, dtype=bool)).scored(-0.9, obs=1)
    assert accept(parent, better, ctx) is better
    assert accept(parent, worse, ctx) is parent


def test_accept_best_evaluates_kid_and_rejects_failures(make_context):
    ctx = make_context(acceptance={"accept": "Best"}, max=False)
    accept = accept_factory("Best")
    parent = Gene(genotype=np.zeros(40, dtype=bool)).scored(-5.0, obs=1)
    kid = Gene(genotype=np.zeros(40, dtype=bool))
    chosen = accept(parent, kid, ctx)
    assert chosen.evaluated
    assert chosen.fitness == pytest.approx(-2.0)

    failed = Gene(genotype=np.zeros(40, dtype=bool)).scored(100.0, obs=1, failed=True)
    assert accept(parent, failed, ctx) is parent


def test_metropolis_at_zero_temperature_is_greedy(make_context):
    ctx = make_context(acceptance={"accept": "Metropolis"})
    ctx = ctx.update(temperature=0.0)
    accept = accept_factory("Metropolis")
    parent = Gene(genotype=np.zeros(40, dtype=bool)).scored(1.0, obs=1)
    worse = Gene(genotype=np.ones(40, dtype=bool)).scored(0.5, obs=1)
    assert all(accept(parent, worse, ctx) is parent for _ in range(20))


def test_metropolis_at_high_temperature_accepts_most_worse_kids(make_context):
    ctx = make_context(acceptance={"accept": "Metropolis", "beta": 1.0})
    ctx = ctx.update(temperature=1e6)
    accept = accept_factory("Metropolis")
    parent = Gene(genotype=np.zeros(40, dtype=bool)).scored(1.0, obs=1)
    worse = Gene(genotype=np.ones(40, dtype=bool)).scored(0.5, obs=1)
    accepted = sum(accept(parent, worse, ctx) is worse for _ in range(200))
    assert accepted > 190
