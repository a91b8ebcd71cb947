"""Expansion score calculation - How likely is this business to take new space?"""

from typing import Optional
from ..config import ScoringConfig


def _ratio(value: float, cap: float) -> float:
    """Fraction of the cap reached, clamped to [0, 1]."""
    return max(0.0, min(value / cap, 1.0))


def calculate_expansion_score(
    chain_count: int,
    review_count: int,
    rating: float,
    news_hits: int,
    config: Optional[ScoringConfig] = None,
) -> float:
    """
    Calculate the expansion score for a candidate.

    Combines chain size, review volume, rating and recent expansion news.
    Each input stops contributing once it reaches its cap.

    Args:
        chain_count: Exact-name locations in the metro area
        review_count: Number of directory reviews
        rating: Directory rating (0.0-5.0)
        news_hits: Recent expansion news articles
        config: Scoring configuration (uses defaults if not provided)

    Returns:
        Expansion score from 0.0 to 9.0 with default weights
    """
    config = config or ScoringConfig()

    chain_score = _ratio(chain_count, config.chain_cap) * config.chain_weight
    review_score = _ratio(review_count, config.review_cap) * config.review_weight
    rating_score = _ratio(rating, config.rating_cap) * config.rating_weight
    news_score = _ratio(news_hits, config.news_cap) * config.news_weight

    return (chain_score + review_score + rating_score + news_score) * config.scale


def get_expansion_breakdown(
    chain_count: int,
    review_count: int,
    rating: float,
    news_hits: int,
    config: Optional[ScoringConfig] = None,
) -> dict:
    """
    Get a detailed breakdown of expansion score components.

    Returns:
        Dictionary with each component's contribution on the final scale
    """
    config = config or ScoringConfig()
    breakdown = {
        "total": 0.0,
        "components": [],
    }

    parts = [
        (f"{chain_count} location(s) in metro area",
         _ratio(chain_count, config.chain_cap) * config.chain_weight),
        (f"{review_count} review(s)",
         _ratio(review_count, config.review_cap) * config.review_weight),
        (f"Rated {rating}",
         _ratio(rating, config.rating_cap) * config.rating_weight),
        (f"{news_hits} expansion news hit(s)",
         _ratio(news_hits, config.news_cap) * config.news_weight),
    ]

    for factor, weighted in parts:
        points = weighted * config.scale
        breakdown["components"].append({
            "factor": factor,
            "points": points,
        })
        breakdown["total"] += points

    return breakdown
