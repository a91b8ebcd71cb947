"""Scoring module for prospect ranking."""

from .expansion import calculate_expansion_score, get_expansion_breakdown

__all__ = [
    "calculate_expansion_score",
    "get_expansion_breakdown",
]
