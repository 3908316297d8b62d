"""Example problem environments."""

from .problems import CircleTour, Parabola2D, Parabola2DEarly

__all__ = ["CircleTour", "Parabola2D", "Parabola2DEarly"]
