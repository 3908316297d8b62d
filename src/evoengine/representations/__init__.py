"""Built-in gene representations and the plugin contract."""

from .base import Crossover, Mutation, Replication, Representation
from .binary import BINARY
from .permutation import PERMUTATION
from .real import REAL

__all__ = ["BINARY", "PERMUTATION", "REAL", "Crossover", "Mutation", "Replication", "Representation"]
