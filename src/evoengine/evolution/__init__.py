"""Generational loop building blocks: selection, scaling, acceptance, termination."""
