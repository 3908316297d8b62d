"""Gene evaluation and execution strategies."""

from .evaluation import EVAL_METHODS, evaluate_population
from .strategies import ExecutionStrategy, execution_factory

__all__ = ["EVAL_METHODS", "ExecutionStrategy", "evaluate_population", "execution_factory"]
