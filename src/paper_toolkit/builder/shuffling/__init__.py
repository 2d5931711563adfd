"""
Module: builder.shuffling

Purpose:
    Unbiased question-order and option-order randomization.
"""

from .shuffler import shuffle_options, shuffle_paper

__all__ = ["shuffle_options", "shuffle_paper"]
