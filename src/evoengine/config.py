"""Configuration models for a run of the engine."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from omegaconf import OmegaConf
from pydantic import BaseModel, ConfigDict, Field


class OperatorConfig(BaseModel):
    """Operator method labels and their local parameters.

    Slots left as ``None`` take the default method of the chosen gene
    representation. Labels are resolved (and rejected) when the run starts.
    """

    model_config = ConfigDict(populate_by_name=True)

    initgene: Optional[str] = None
    decoder: Optional[str] = None
    genemap: Optional[str] = None
    crossover: Optional[str] = None
    mutation: Optional[str] = None
    replication: Optional[str] = None

    selection: str = "SUS"
    mateselection: str = "SUS"
    selection_continuation: bool = Field(
        True, description="Draw all selection indices of a generation in one call."
    )
    offset: float = Field(1.0, ge=0.0, description="Shift for proportional selection when min(fit) <= 0.")
    eps: float = Field(0.01, ge=0.0, description="Floor added to fitness differences in selection.")
    tournament_size: int = Field(2, ge=1)
    selection_bias: float = Field(1.5, ge=1.0, le=2.0)
    max_tsr: float = Field(1.5, ge=1.0, le=2.0)

    crossrate2: float = Field(0.3, ge=0.0, le=1.0)
    ivcrossrate: str = "Const"
    mutrate2: float = Field(1.0, ge=0.0, le=1.0)
    ivmutrate: str = "Const"
    cutoff_fit: float = Field(0.5, ge=0.0, description="Fraction of the best fitness separating good genes.")
    bitmutrate: float = Field(0.005, ge=0.0, le=1.0)
    bitmutrate2: float = Field(0.01, ge=0.0, le=1.0)
    ucross_swap: float = Field(0.2, ge=0.0, le=1.0)
    lambda_: float = Field(0.05, ge=0.0, le=1.0, alias="lambda")
    scalefactor: str = "Const"
    scalefactor1: float = Field(0.9, ge=0.0)
    scalefactor2: float = Field(0.3, ge=0.0)

    evalmethod: str = "EvalGeneU"
    evalrep: int = Field(1, ge=1)
    report_eval_errors: bool = True
    worst_fitness: Optional[float] = Field(
        None,
        description="Objective value assigned to genes whose evaluation fails. "
        "None uses the worst finite fitness of the evaluated batch.",
    )


class ScalingConfig(BaseModel):
    scaling: str = "NoScaling"
    scaling_threshold: float = Field(0.0, ge=0.0, description="RDM in [1-t, 1+t] means no scaling.")
    scaling_exp: float = Field(1.0, ge=0.0)
    scaling_exp2: float = Field(1.0, ge=0.0)
    rdm_weight: float = Field(1.0, ge=0.0)
    dr_max: float = Field(2.0, gt=0.0)
    dr_min: float = Field(0.5, gt=0.0)
    dispersion_measure: str = "var"
    scaling_delay: int = Field(1, ge=1)


class AcceptanceConfig(BaseModel):
    accept: str = "All"
    alpha: float = Field(0.99, gt=0.0)
    beta: float = Field(2.0, ge=0.0)
    cooling: str = "ExponentialMultiplicative"
    cooling_power: float = Field(1.0, gt=0.0)
    temp0: float = Field(40.0, ge=0.0)
    temp_n: float = Field(0.01, ge=0.0)


class TerminationConfig(BaseModel):
    early: bool = Field(False, description="Prefer the problem environment's own terminate().")
    termination_condition: str = "NoTermination"
    termination_eps: float = Field(0.01, ge=0.0)
    termination_threshold: float = 0.0
    pac_delta: float = Field(0.01, gt=0.0, lt=1.0)


class ExecutionConfig(BaseModel):
    execution_model: str = "Sequential"
    cores: Optional[int] = Field(None, ge=1)
    semantics: Literal["byValue", "byReference"] = "byValue"
    user_apply: bool = Field(False, description="Recorded by run() when a caller supplied apply function was used.")


class ReportingConfig(BaseModel):
    verbose: int = Field(1, ge=0)
    logevals: bool = False
    allsolutions: bool = False
    profile: bool = False
    batch: bool = False
    anytime: bool = False
    path: str = "."


class RunConfig(BaseModel):
    """Resolved parameters of one run; serialises losslessly for replay."""

    model_config = ConfigDict(populate_by_name=True)

    algorithm: str = "sga"
    maximize: bool = Field(True, alias="max")
    popsize: int = Field(100, ge=2)
    generations: int = Field(20, ge=0)
    crossrate: float = Field(0.2, ge=0.0, le=1.0)
    mutrate: float = Field(1.0, ge=0.0, le=1.0)
    elitist: bool = True
    replay: int = Field(0, ge=0, description="0 draws a fresh seed; the seed used is recorded.")

    operators: OperatorConfig = Field(default_factory=OperatorConfig)
    scaling: ScalingConfig = Field(default_factory=ScalingConfig)
    acceptance: AcceptanceConfig = Field(default_factory=AcceptanceConfig)
    termination: TerminationConfig = Field(default_factory=TerminationConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)

    def recorded(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def load_run_config(path: Path | str) -> RunConfig:
    """Load a run configuration from a YAML file."""
    conf = OmegaConf.load(Path(path))
    data = OmegaConf.to_container(conf, resolve=True)
    return RunConfig.model_validate(data)


def save_run_config(config: RunConfig, path: Path | str) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    OmegaConf.save(OmegaConf.create(config.recorded()), target)
    return target


__all__ = [
    "AcceptanceConfig",
    "ExecutionConfig",
    "OperatorConfig",
    "ReportingConfig",
    "RunConfig",
    "ScalingConfig",
    "TerminationConfig",
    "load_run_config",
    "save_run_config",
]
