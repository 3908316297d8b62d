import math

import numpy as np
import pytest

from evoengine.errors import ConfigurationError
from evoengine.evolution.adaptive import (
    continuous_exponent,
    dispersion_factory,
    dispersion_ratio,
    scaling_factory,
    threshold_exponent,
)
from evoengine.metrics.stats import StatisticsHistory


def test_threshold_exponent_boundaries_are_inclusive():
    assert threshold_exponent(1.2, 0.2, 3.0, 0.5) == 1.0
    assert threshold_exponent(0.8, 0.2, 3.0, 0.5) == 1.0
    assert threshold_exponent(1.21, 0.2, 3.0, 0.5) == 3.0
    assert threshold_exponent(0.79, 0.2, 3.0, 0.5) == 0.5


def test_threshold_exponent_at_zero_threshold():
    assert threshold_exponent(1.0, 0.0, 2.0, 0.5) == 1.0


def test_continuous_exponent_clamps_ratio():
    assert continuous_exponent(10.0, 1.0, 0.5, 2.0) == 2.0
    assert continuous_exponent(0.1, 1.0, 0.5, 2.0) == 0.5
    assert continuous_exponent(1.5, 2.0, 0.5, 2.0) == 3.0


def test_dispersion_ratio_needs_delay_rows():
    history = StatisticsHistory()
    history.observe([1.0, 2.0, 3.0])
    measure = dispersion_factory("var")
    assert dispersion_ratio(history, measure, 1) == 1.0
    history.observe([1.0, 3.0, 5.0])
    assert dispersion_ratio(history, measure, 1) == pytest.approx(4.0)


def test_dispersion_ratio_from_zero_dispersion():
    history = StatisticsHistory()
    history.observe([2.0, 2.0])
    history.observe([2.0, 2.0])
    assert dispersion_ratio(history, dispersion_factory("std"), 1) == 1.0
    history.observe([1.0, 3.0])
    assert math.isinf(dispersion_ratio(history, dispersion_factory("range"), 1))


@pytest.mark.parametrize("label", ["var", "std", "mad", "cv", "range", "iqr"])
def test_dispersion_measures_are_non_negative(label):
    history = StatisticsHistory()
    row = history.observe([1.0, 4.0, 2.0, 8.0])
    assert dispersion_factory(label)(row) >= 0.0


def test_threshold_scaling_at_boundary_leaves_fitness_unchanged(make_context):
    ctx = make_context(scaling={"scaling": "ThresholdScaling", "scaling_threshold": 0.25, "scaling_exp": 3.0})
    ctx = ctx.update(rdm=1.25)
    fit = np.array([0.5, 2.0, -1.0])
    np.testing.assert_allclose(ctx.ops.scaling(fit, ctx), fit)
    ctx = ctx.update(rdm=1.5)
    np.testing.assert_allclose(ctx.ops.scaling(fit, ctx), [0.125, 8.0, -1.0])


def test_constant_scaling_preserves_order_of_negative_fitness(make_context):
    ctx = make_context(scaling={"scaling": "ConstantScaling", "scaling_exp": 2.0})
    fit = np.array([-3.0, -1.0, 0.5])
    scaled = ctx.ops.scaling(fit, ctx)
    assert list(np.argsort(scaled)) == list(np.argsort(fit))


def test_iv_rates_split_on_cutoff(make_context):
    ctx = make_context(
        crossrate=0.9,
        mutrate=0.8,
        operators={"ivcrossrate": "IV", "ivmutrate": "IV", "crossrate2": 0.1, "mutrate2": 0.2, "cutoff_fit": 0.5},
    )
    ctx = ctx.update(best_fitness=10.0)
    assert ctx.ops.crossrate(6.0, ctx) == 0.9
    assert ctx.ops.crossrate(4.0, ctx) == 0.1
    assert ctx.ops.mutrate(6.0, ctx) == 0.8
    assert ctx.ops.mutrate(5.0, ctx) == 0.2


def test_unknown_scaling_label_is_named():
    with pytest.raises(ConfigurationError, match="Bogus"):
        scaling_factory("Bogus")
