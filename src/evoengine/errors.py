"""Exception hierarchy for the engine."""

from __future__ import annotations

from typing import Mapping, TypeVar

T = TypeVar("T")


class EvoEngineError(Exception):
    """Base class for engine errors."""


class ConfigurationError(EvoEngineError, ValueError):
    """Raised when a label or an operator combination cannot be resolved."""


class PopulationIntegrityError(EvoEngineError):
    """Describes a population that shrank below ``popsize`` during evaluation."""


class PersistenceError(EvoEngineError, OSError):
    """Raised when a result file cannot be created or renamed."""


def lookup(table: Mapping[str, T], kind: str, label: str) -> T:
    """Resolve ``label`` in ``table`` or fail naming the bad label."""
    try:
        return table[label]
    except KeyError:
        known = ", ".join(sorted(table))
        raise ConfigurationError(f"Unknown {kind} label {label!r} (known: {known})") from None


__all__ = [
    "ConfigurationError",
    "EvoEngineError",
    "PersistenceError",
    "PopulationIntegrityError",
    "lookup",
]
