"""Selection of parent indices from a (scaled) fitness vector.

Every selection function has the signature ``fn(fit, size, ctx)`` and returns
``size`` indices into ``fit``. Randomness comes from ``ctx.rng`` only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

import numpy as np

from evoengine.errors import lookup

if TYPE_CHECKING:
    from evoengine.context import Context

SelectFn = Callable[[np.ndarray, int, "Context"], np.ndarray]


def _probabilities(weights: np.ndarray) -> np.ndarray:
    total = float(weights.sum())
    if not np.isfinite(total) or total <= 0.0:
        return np.full(weights.size, 1.0 / weights.size)
    return weights / total


def _prop_fit_weights(fit: np.ndarray, offset: float) -> np.ndarray:
    low = float(fit.min())
    if low <= 0.0:
        return fit - low + offset
    return fit.copy()


def _diff_weights(fit: np.ndarray, eps: float) -> np.ndarray:
    return fit - float(fit.min()) + eps


def select_uniform(fit: np.ndarray, size: int, ctx: "Context") -> np.ndarray:
    return ctx.rng.integers(0, fit.size, size=size)


def select_uniform_p(fit: np.ndarray, size: int, ctx: "Context") -> np.ndarray:
    """Uniform selection without replacement, in blocks of one permutation."""
    blocks = -(-size // fit.size)
    return np.concatenate([ctx.rng.permutation(fit.size) for _ in range(blocks)])[:size]


def select_prop_fit(fit: np.ndarray, size: int, ctx: "Context") -> np.ndarray:
    p = _probabilities(_prop_fit_weights(fit, ctx.config.operators.offset))
    return ctx.rng.choice(fit.size, size=size, p=p)


def select_prop_fit_diff(fit: np.ndarray, size: int, ctx: "Context") -> np.ndarray:
    p = _probabilities(_diff_weights(fit, ctx.config.operators.eps))
    return ctx.rng.choice(fit.size, size=size, p=p)


def _tournaments(fit: np.ndarray, size: int, k: int, ctx: "Context") -> np.ndarray:
    k = min(k, fit.size)
    return np.stack([ctx.rng.choice(fit.size, size=k, replace=False) for _ in range(size)])


def select_tournament(fit: np.ndarray, size: int, ctx: "Context") -> np.ndarray:
    entrants = _tournaments(fit, size, ctx.config.operators.tournament_size, ctx)
    winners = np.argmax(fit[entrants], axis=1)
    return entrants[np.arange(size), winners]


def select_duel(fit: np.ndarray, size: int, ctx: "Context") -> np.ndarray:
    entrants = _tournaments(fit, size, 2, ctx)
    winners = np.argmax(fit[entrants], axis=1)
    return entrants[np.arange(size), winners]


def select_stochastic_tournament(fit: np.ndarray, size: int, ctx: "Context") -> np.ndarray:
    entrants = _tournaments(fit, size, ctx.config.operators.tournament_size, ctx)
    chosen = np.empty(size, dtype=int)
    for row, members in enumerate(entrants):
        p = _probabilities(_diff_weights(fit[members], ctx.config.operators.eps))
        chosen[row] = members[ctx.rng.choice(members.size, p=p)]
    return chosen


def _rank_order(fit: np.ndarray) -> np.ndarray:
    # indices sorted best first
    return np.argsort(-fit, kind="stable")


def select_linear_rank_selective(fit: np.ndarray, size: int, ctx: "Context") -> np.ndarray:
    """Whitley's linear rank selection with selection bias ``b`` in [1, 2]."""
    n = fit.size
    b = ctx.config.operators.selection_bias
    u = ctx.rng.random(size)
    if b == 1.0:
        ranks = np.floor(n * u)
    else:
        ranks = np.floor(n * (b - np.sqrt(b * b - 4.0 * (b - 1.0) * u)) / (2.0 * (b - 1.0)))
    ranks = np.clip(ranks.astype(int), 0, n - 1)
    return _rank_order(fit)[ranks]


def select_linear_rank_tsr(fit: np.ndarray, size: int, ctx: "Context") -> np.ndarray:
    """Baker's linear ranking with maximal target sampling rate ``maxTSR``."""
    n = fit.size
    max_tsr = ctx.config.operators.max_tsr
    if n == 1:
        return np.zeros(size, dtype=int)
    ranks = np.arange(n)
    rates = max_tsr - (2.0 * max_tsr - 2.0) * ranks / (n - 1)
    p = _probabilities(rates)
    return _rank_order(fit)[ctx.rng.choice(n, size=size, p=p)]


def select_sus(fit: np.ndarray, size: int, ctx: "Context") -> np.ndarray:
    """Baker's stochastic universal sampling, returned in random order."""
    p = _probabilities(_diff_weights(fit, ctx.config.operators.eps))
    cumulative = np.cumsum(p)
    cumulative[-1] = 1.0
    pointers = (ctx.rng.random() + np.arange(size)) / size
    chosen = np.searchsorted(cumulative, pointers, side="right")
    chosen = np.minimum(chosen, fit.size - 1)
    return ctx.rng.permutation(chosen)


SELECTIONS: dict[str, SelectFn] = {
    "Uniform": select_uniform,
    "UniformP": select_uniform_p,
    "SelectPropFit": select_prop_fit,
    "SelectPropFitDiff": select_prop_fit_diff,
    "Tournament": select_tournament,
    "Duel": select_duel,
    "STournament": select_stochastic_tournament,
    "LRSelective": select_linear_rank_selective,
    "LRTSR": select_linear_rank_tsr,
    "SUS": select_sus,
}


def selection_factory(label: str) -> SelectFn:
    return lookup(SELECTIONS, "selection", label)


class _IndexStream:
    def __init__(self, fn: SelectFn, fit: np.ndarray, ctx: "Context", block: int) -> None:
        self._fn = fn
        self._fit = fit
        self._ctx = ctx
        self._block = block
        self._buffer = np.empty(0, dtype=int)
        self._cursor = 0

    def next(self) -> int:
        if self._cursor >= self._buffer.size:
            self._buffer = np.asarray(self._fn(self._fit, self._block, self._ctx), dtype=int)
            self._cursor = 0
        index = int(self._buffer[self._cursor])
        self._cursor += 1
        return index


class Selector:
    """Serves parent and mate indices for one generation.

    With selection continuation, a whole generation's worth of indices is
    drawn in one call and handed out in order; otherwise every request calls
    the selection function for a single index.
    """

    def __init__(self, fit: np.ndarray, ctx: "Context") -> None:
        values = np.asarray(fit, dtype=float)
        block = values.size if ctx.config.operators.selection_continuation else 1
        self._gene = _IndexStream(ctx.ops.select_gene, values, ctx, block)
        self._mate = _IndexStream(ctx.ops.select_mate, values, ctx, block)

    def gene(self) -> int:
        return self._gene.next()

    def mate(self) -> int:
        return self._mate.next()


__all__ = ["SELECTIONS", "SelectFn", "Selector", "selection_factory"]
