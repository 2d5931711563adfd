"""
Module: builder.distinctness

Purpose:
    Batch-wide duplicate detection for generated papers.
"""

from .enforcer import DistinctnessEnforcer, PaperKey

__all__ = ["DistinctnessEnforcer", "PaperKey"]
