"""Population statistics computed once per generation."""

from __future__ import annotations

from typing import Sequence

import numpy as np

COLUMNS: tuple[str, ...] = ("mean", "min", "Q1", "median", "Q3", "max", "var", "mad")
MAD_CONSTANT = 1.4826


def observe(fit: Sequence[float]) -> np.ndarray:
    """Return mean, min, Q1, median, Q3, max, variance and MAD of ``fit``.

    Variance is the Bessel corrected sample variance (0 for a single value),
    MAD is the median absolute deviation scaled for consistency with the
    standard deviation of a normal distribution.
    """
    values = np.asarray(fit, dtype=float)
    if values.size == 0:
        raise ValueError("cannot observe an empty fitness vector")
    q1, median, q3 = np.quantile(values, [0.25, 0.5, 0.75])
    var = float(np.var(values, ddof=1)) if values.size > 1 else 0.0
    mad = MAD_CONSTANT * float(np.median(np.abs(values - median)))
    return np.array(
        [values.mean(), values.min(), q1, median, q3, values.max(), var, mad],
        dtype=float,
    )


class StatisticsHistory:
    """Row-wise accumulation of population statistics, one row per generation."""

    def __init__(self) -> None:
        self._rows: list[np.ndarray] = []

    def append(self, row: np.ndarray) -> None:
        self._rows.append(np.asarray(row, dtype=float))

    def observe(self, fit: Sequence[float]) -> np.ndarray:
        row = observe(fit)
        self.append(row)
        return row

    def __len__(self) -> int:
        return len(self._rows)

    def __getitem__(self, index: int) -> np.ndarray:
        return self._rows[index]

    def column(self, name: str) -> np.ndarray:
        return self.as_array()[:, COLUMNS.index(name)]

    def as_array(self) -> np.ndarray:
        if not self._rows:
            return np.empty((0, len(COLUMNS)))
        return np.vstack(self._rows)


__all__ = ["COLUMNS", "MAD_CONSTANT", "StatisticsHistory", "observe"]
