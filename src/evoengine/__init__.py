"""Evolutionary algorithm engine public API."""

from evoengine.config import RunConfig, load_run_config, save_run_config
from evoengine.errors import ConfigurationError, EvoEngineError, PersistenceError, PopulationIntegrityError
from evoengine.evolution.genes import Gene
from evoengine.metrics.persistence import load_result
from evoengine.registry import ALGORITHMS, register_representation
from evoengine.replay import rerun
from evoengine.result import RunResult, Solution
from evoengine.run import run

__all__ = [
    "ALGORITHMS",
    "ConfigurationError",
    "EvoEngineError",
    "Gene",
    "PersistenceError",
    "PopulationIntegrityError",
    "RunConfig",
    "RunResult",
    "Solution",
    "load_result",
    "load_run_config",
    "register_representation",
    "rerun",
    "run",
    "save_run_config",
]
