"""Small problem environments with known optima, used for demos and tests."""

from __future__ import annotations

import math
from typing import Any

import numpy as np


class Parabola2D:
    """``x**2 + y**2`` on ``[-1, 1]**2``; minimum 0 at the origin."""

    bits_per_parameter = 20

    def name(self) -> str:
        return "Parabola2D"

    def bitlength(self) -> list[int]:
        return [self.bits_per_parameter, self.bits_per_parameter]

    def genelength(self) -> int:
        return sum(self.bitlength())

    def lb(self) -> list[float]:
        return [-1.0, -1.0]

    def ub(self) -> list[float]:
        return [1.0, 1.0]

    def global_optimum(self) -> dict[str, Any]:
        return {"param": [0.0, 0.0], "value": 0.0, "is_minimum": True}

    def f(self, parm, gene=None, ctx=None) -> float:
        x = np.asarray(parm, dtype=float)
        return float(np.sum(x * x))


class Parabola2DEarly(Parabola2D):
    """Parabola2D that stops a minimisation run once within ``eps`` of 0."""

    def __init__(self, eps: float = 0.01) -> None:
        self.eps = eps

    def name(self) -> str:
        return "Parabola2DEarly"

    def terminate(self, solution) -> bool:
        return abs(solution.fitness - self.global_optimum()["value"]) < self.eps


class CircleTour:
    """Symmetric travelling salesman on ``n`` cities evenly spaced on a circle.

    Visiting the cities in angular order is optimal, giving the perimeter of
    the regular ``n``-gon.
    """

    def __init__(self, n: int = 8, radius: float = 1.0) -> None:
        angles = 2.0 * math.pi * np.arange(n) / n
        self.n = n
        self.radius = radius
        self.cities = np.column_stack([radius * np.cos(angles), radius * np.sin(angles)])
        deltas = self.cities[:, None, :] - self.cities[None, :, :]
        self.distances = np.sqrt((deltas**2).sum(axis=-1))

    def name(self) -> str:
        return f"CircleTour{self.n}"

    def genelength(self) -> int:
        return self.n

    def global_optimum(self) -> dict[str, Any]:
        return {"param": list(range(self.n)), "value": 2.0 * self.n * self.radius * math.sin(math.pi / self.n)}

    def f(self, permutation, gene=None, ctx=None) -> float:
        tour = np.asarray(permutation, dtype=int)
        return float(self.distances[tour, np.roll(tour, -1)].sum())


__all__ = ["CircleTour", "Parabola2D", "Parabola2DEarly"]
