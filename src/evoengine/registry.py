"""Configuration resolution: method labels to bound operators.

Algorithm family labels form a closed set. Families whose representation is
not built in are valid labels but need a plugin registered with
:func:`register_representation` before a run can use them.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from evoengine.config import RunConfig
from evoengine.context import BoundOperators
from evoengine.errors import ConfigurationError
from evoengine.evolution.acceptance import accept_factory, cooling_factory
from evoengine.evolution.adaptive import crossrate_factory, dispersion_factory, mutrate_factory, scaling_factory
from evoengine.evolution.selection import selection_factory
from evoengine.evolution.termination import termination_factory
from evoengine.execution.evaluation import eval_factory
from evoengine.representations.base import Representation
from evoengine.representations.binary import BINARY
from evoengine.representations.permutation import PERMUTATION
from evoengine.representations.real import REAL, scale_factor_factory

ALGORITHMS: tuple[str, ...] = ("sga", "sgde", "sgperm", "sgp", "sge", "sgede")

_REPRESENTATIONS: dict[str, Representation] = {
    "sga": BINARY,
    "sgde": REAL,
    "sgperm": PERMUTATION,
}


def register_representation(representation: Representation) -> None:
    """Install the plugin for one of the known algorithm families."""
    if representation.algorithm not in ALGORITHMS:
        raise ConfigurationError(f"Unknown algorithm label {representation.algorithm!r}")
    _REPRESENTATIONS[representation.algorithm] = representation


def representation_for(algorithm: str) -> Representation:
    if algorithm not in ALGORITHMS:
        known = ", ".join(ALGORITHMS)
        raise ConfigurationError(f"Unknown algorithm label {algorithm!r} (known: {known})")
    try:
        return _REPRESENTATIONS[algorithm]
    except KeyError:
        raise ConfigurationError(
            f"No representation plugin registered for algorithm {algorithm!r}"
        ) from None


def _pick(rep: Representation, slot: str, label: Optional[str], fits: Callable[[Any], bool]) -> tuple[str, Any]:
    """Resolve ``slot``; an unset slot falls back to the first method that fits."""
    chosen, op = rep.resolve(slot, label)
    if label is not None or fits(op):
        return chosen, op
    for name, candidate in getattr(rep, slot).items():
        if fits(candidate):
            return name, candidate
    return chosen, op


def resolve_operators(config: RunConfig, penv: Any) -> tuple[BoundOperators, RunConfig]:
    """Bind every operator of ``config``.

    Returns the bound operators and a copy of ``config`` whose defaulted
    operator slots name the methods actually used.
    """
    rep = representation_for(config.algorithm)
    opc = config.operators
    accept_label = config.acceptance.accept

    replication_label, replicate = _pick(
        rep, "replication", opc.replication, lambda r: accept_label == "All" or r.embeds_acceptance
    )
    crossover_label, crossover = _pick(rep, "crossover", opc.crossover, lambda c: c.kids == replicate.kids)
    mutation_label, mutate = _pick(rep, "mutation", opc.mutation, lambda m: m.donors == replicate.donors)
    initgene_label, init_gene = rep.resolve("initgene", opc.initgene)
    decoder_label, decode_gene = rep.resolve("decoder", opc.decoder)
    genemap_label, gene_map = rep.resolve("genemap", opc.genemap)

    if crossover.kids != replicate.kids:
        raise ConfigurationError(
            f"crossover {crossover_label!r} produces {crossover.kids} kid(s) "
            f"but replication {replication_label!r} expects {replicate.kids}"
        )
    if mutate.donors != replicate.donors:
        raise ConfigurationError(
            f"mutation {mutation_label!r} does not fit replication {replication_label!r}"
        )
    if accept_label != "All" and not replicate.embeds_acceptance:
        raise ConfigurationError(
            f"acceptance rule {accept_label!r} needs a replication with an acceptance step, "
            f"{replication_label!r} has none"
        )

    ops = BoundOperators(
        init_gene=init_gene,
        decode_gene=decode_gene,
        gene_map=gene_map,
        crossover=crossover,
        mutate=mutate,
        replicate=replicate,
        select_gene=selection_factory(opc.selection),
        select_mate=selection_factory(opc.mateselection),
        scaling=scaling_factory(config.scaling.scaling),
        dispersion=dispersion_factory(config.scaling.dispersion_measure),
        crossrate=crossrate_factory(opc.ivcrossrate),
        mutrate=mutrate_factory(opc.ivmutrate),
        scale_factor=scale_factor_factory(opc.scalefactor),
        accept=accept_factory(accept_label),
        cooling=cooling_factory(config.acceptance.cooling),
        terminate=termination_factory(
            config.termination.termination_condition, penv, early=config.termination.early
        ),
        eval_gene=eval_factory(opc.evalmethod),
    )
    resolved = config.model_copy(
        update={
            "operators": opc.model_copy(
                update={
                    "initgene": initgene_label,
                    "decoder": decoder_label,
                    "genemap": genemap_label,
                    "crossover": crossover_label,
                    "mutation": mutation_label,
                    "replication": replication_label,
                }
            )
        }
    )
    return ops, resolved


__all__ = ["ALGORITHMS", "register_representation", "representation_for", "resolve_operators"]
