import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import numpy as np
import pytest

from evoengine.context import build_context
from evoengine.environment.problems import Parabola2D
from evoengine.registry import resolve_operators
from evoengine.run import merge_config


class FlakyParabola(Parabola2D):
    """Parabola2D whose objective raises in the right half plane."""

    def f(self, parm, gene=None, ctx=None) -> float:
        if parm[0] > 0.0:
            raise RuntimeError("right half plane")
        return super().f(parm, gene, ctx)


class Constant(Parabola2D):
    """Every phenotype scores the same value."""

    def __init__(self, value: float = 3.0) -> None:
        self.value = value

    def f(self, parm, gene=None, ctx=None) -> float:
        return self.value


@pytest.fixture
def make_context():
    def _make(penv=None, seed: int = 7, **overrides):
        penv = penv if penv is not None else Parabola2D()
        config = merge_config(None, overrides)
        ops, config = resolve_operators(config, penv)
        return build_context(config, penv, ops, np.random.default_rng(seed))

    return _make


class CountingFlakyParabola(FlakyParabola):
    """FlakyParabola that counts how often its objective raised."""

    def __init__(self) -> None:
        self.raised = 0

    def f(self, parm, gene=None, ctx=None) -> float:
        try:
            return super().f(parm, gene, ctx)
        except RuntimeError:
            self.raised += 1
            raise
