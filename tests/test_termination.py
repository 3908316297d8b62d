from dataclasses import replace

import pytest

from evoengine.errors import ConfigurationError
from evoengine.evolution.genes import Gene
from evoengine.evolution.termination import TERMINATIONS, pac_bound, termination_factory
from evoengine.metrics.stats import observe
from evoengine.result import Solution


class _NoOptimum:
    def f(self, parm, gene=None, ctx=None):
        return 0.0


def _solution(fitness: float) -> Solution:
    return Solution(fitness=fitness, value=fitness, gene=Gene(genotype=None), phenotype=None)


def test_pac_bound_with_zero_variance_is_the_mean():
    row = observe([4.0, 4.0, 4.0])
    assert pac_bound(row, 0.01) == 4.0


def test_pac_bound_above_mean_with_spread():
    row = observe([1.0, 2.0, 3.0])
    assert pac_bound(row, 0.01) == pytest.approx(2.0 + 1.0 * 2.3263478740408408)


def test_pac_terminates_at_identical_population(make_context):
    ctx = make_context(termination={"termination_condition": "PAC", "termination_eps": 0.0})
    ctx = ctx.update(pac_opt=pac_bound(observe([2.0, 2.0]), 0.01))
    assert ctx.ops.terminate(_solution(2.0), ctx)
    assert not ctx.ops.terminate(_solution(1.9), ctx)


def test_absolute_and_relative_error_windows(make_context):
    ctx = make_context(termination={"termination_condition": "AbsoluteError", "termination_eps": 0.1})
    ctx = ctx.update(optimum=10.0)
    assert TERMINATIONS["AbsoluteError"](_solution(10.05), ctx)
    assert not TERMINATIONS["AbsoluteError"](_solution(10.2), ctx)
    assert TERMINATIONS["RelativeError"](_solution(10.9), ctx)
    assert not TERMINATIONS["RelativeError"](_solution(11.1), ctx)


def test_zero_optimum_uses_additive_window(make_context):
    ctx = make_context(termination={"termination_eps": 0.01})
    ctx = ctx.update(optimum=0.0)
    assert not TERMINATIONS["RelativeError"](_solution(0.005), ctx)
    assert TERMINATIONS["RelativeError"](_solution(0.0), ctx)
    assert TERMINATIONS["RelativeErrorZero"](_solution(0.005), ctx)
    assert not TERMINATIONS["RelativeErrorZero"](_solution(0.02), ctx)


def test_threshold_conditions(make_context):
    ctx = make_context(termination={"termination_threshold": 1.0})
    assert TERMINATIONS["GEQ"](_solution(1.0), ctx)
    assert not TERMINATIONS["GEQ"](_solution(0.5), ctx)
    assert TERMINATIONS["LEQ"](_solution(0.5), ctx)
    assert not TERMINATIONS["NoTermination"](_solution(0.5), ctx)


def test_error_conditions_need_a_known_optimum():
    with pytest.raises(ConfigurationError):
        termination_factory("AbsoluteError", _NoOptimum())
    with pytest.raises(ConfigurationError, match="Never"):
        termination_factory("Never", _NoOptimum())


def test_early_flag_prefers_environment_predicate(make_context):
    class Early(_NoOptimum):
        def terminate(self, solution):
            return solution.fitness > 1.0

    fn = termination_factory("NoTermination", Early(), early=True)
    ctx = replace(make_context(), penv=Early())
    assert fn(_solution(2.0), ctx)
    assert not fn(_solution(0.5), ctx)
    assert termination_factory("NoTermination", Early(), early=False) is TERMINATIONS["NoTermination"]
