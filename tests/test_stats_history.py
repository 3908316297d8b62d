import numpy as np
import pytest

from evoengine.metrics.stats import COLUMNS, StatisticsHistory, observe


def test_observe_columns():
    row = observe([1.0, 2.0, 3.0, 4.0, 5.0])
    assert len(row) == len(COLUMNS) == 8
    stats = dict(zip(COLUMNS, row))
    assert stats["mean"] == 3.0
    assert stats["min"] == 1.0
    assert stats["Q1"] == 2.0
    assert stats["median"] == 3.0
    assert stats["Q3"] == 4.0
    assert stats["max"] == 5.0
    assert stats["var"] == pytest.approx(2.5)
    assert stats["mad"] == pytest.approx(1.4826)


def test_observe_single_value_has_zero_dispersion():
    row = observe([7.0])
    assert row[COLUMNS.index("var")] == 0.0
    assert row[COLUMNS.index("mad")] == 0.0


def test_observe_rejects_empty():
    with pytest.raises(ValueError):
        observe([])


def test_history_rows_and_columns():
    history = StatisticsHistory()
    assert history.as_array().shape == (0, 8)
    history.observe([1.0, 3.0])
    history.observe([2.0, 6.0])
    assert len(history) == 2
    np.testing.assert_allclose(history.column("max"), [3.0, 6.0])
    assert history[-1][COLUMNS.index("mean")] == 4.0
