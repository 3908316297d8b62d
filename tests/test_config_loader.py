from pathlib import Path

import pytest
from pydantic import ValidationError

from evoengine.config import RunConfig, load_run_config, save_run_config
from evoengine.errors import ConfigurationError
from evoengine.run import merge_config


def test_load_run_config_with_aliases(tmp_path: Path):
    yaml = (
        "algorithm: sga\nmax: false\npopsize: 20\ngenerations: 10\n"
        "operators:\n  selection: Tournament\n  lambda: 0.2\n"
        "acceptance:\n  accept: Best\n  temp0: 10.0\n"
    )
    path = tmp_path / "run.yaml"
    path.write_text(yaml)
    cfg = load_run_config(path)
    assert cfg.maximize is False
    assert cfg.popsize == 20
    assert cfg.operators.selection == "Tournament"
    assert cfg.operators.lambda_ == 0.2
    assert cfg.acceptance.accept == "Best"
    assert cfg.scaling.scaling == "NoScaling"


def test_save_run_config_roundtrip(tmp_path: Path):
    cfg = RunConfig(generations=3, replay=42)
    path = save_run_config(cfg, tmp_path / "nested" / "run.yaml")
    assert path.exists()
    assert "max:" in path.read_text()
    assert load_run_config(path) == cfg


def test_bounds_are_validated():
    with pytest.raises(ValidationError):
        RunConfig(popsize=1)
    with pytest.raises(ValidationError):
        RunConfig(crossrate=1.5)


def test_merge_config_overrides_groups_and_keeps_defaults():
    cfg = merge_config(RunConfig(popsize=30), {"max": False, "operators": {"lambda": 0.3}, "generations": 4})
    assert cfg.popsize == 30
    assert cfg.maximize is False
    assert cfg.generations == 4
    assert cfg.operators.lambda_ == 0.3
    assert cfg.operators.selection == "SUS"


def test_merge_config_routes_flat_group_parameters():
    cfg = merge_config(None, {"scaling": "ThresholdScaling", "verbose": 0, "accept": "Best"})
    assert cfg.scaling.scaling == "ThresholdScaling"
    assert cfg.reporting.verbose == 0
    assert cfg.acceptance.accept == "Best"


def test_merge_config_rejects_bad_group_values():
    with pytest.raises(ConfigurationError, match="termination"):
        merge_config(None, {"termination": "PAC"})
    with pytest.raises(ConfigurationError, match="popsze"):
        merge_config(None, {"popsze": 10})


def test_recorded_config_revalidates():
    cfg = RunConfig(maximize=False, replay=9)
    recorded = cfg.recorded()
    assert recorded["max"] is False
    assert "lambda" in recorded["operators"]
    assert RunConfig.model_validate(recorded) == cfg
