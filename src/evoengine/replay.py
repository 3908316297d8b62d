"""Replay a recorded run from the configuration stored in its result."""

from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Any, Optional

from evoengine.config import RunConfig, save_run_config
from evoengine.execution.strategies import REPRODUCIBLE_MODELS
from evoengine.metrics.persistence import write_pickle
from evoengine.result import RunResult
from evoengine.run import run

logger = logging.getLogger(__name__)


def replay_config(result: RunResult) -> RunConfig:
    """The configuration that reproduces ``result``, seed included."""
    return RunConfig.model_validate(result.config)


def _unreproducible(config: RunConfig) -> Optional[str]:
    if config.execution.user_apply:
        return "a user supplied execution function"
    if config.execution.execution_model not in REPRODUCIBLE_MODELS:
        return f"execution model {config.execution.execution_model!r}"
    return None


def write_replay_script(result: RunResult, path: Path | str) -> tuple[Path, Path]:
    """Write the replay configuration (YAML) and the pickled result under ``path``."""
    root = Path(path)
    root.mkdir(parents=True, exist_ok=True)
    config_path = save_run_config(replay_config(result), root / "replay.yaml")
    result_path = root / "replay_result.pkl"
    write_pickle(result, result_path)
    return config_path, result_path


def rerun(
    result: RunResult,
    penv: Any = None,
    *,
    script: bool = False,
    path: Path | str = ".",
    grammar: Any = None,
) -> RunResult:
    """Re-execute the run recorded in ``result``.

    Runs evaluated by a user supplied function or by a cluster cannot be
    reproduced; they are refused with a ``RuntimeWarning`` and ``result`` is
    returned unchanged. With ``script`` set, the replay configuration is
    written to ``path`` instead of being run.
    """
    config = replay_config(result)
    reason = _unreproducible(config)
    if reason is not None:
        message = f"Run used {reason}; it cannot be replayed. Returning the original result."
        logger.warning(message, extra={"execution_model": config.execution.execution_model})
        warnings.warn(message, RuntimeWarning, stacklevel=2)
        return result
    if script:
        config_path, _ = write_replay_script(result, path)
        logger.info("Replay configuration written", extra={"path": str(config_path)})
        return result

    environment = penv if penv is not None else result.environment
    return run(environment, config, grammar=grammar)


__all__ = ["replay_config", "rerun", "write_replay_script"]
