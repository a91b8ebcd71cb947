"""
Programmatic API for the tenant prospect ranker.

Usage:
    from tenant_prospect import rank_prospects

    results = rank_prospects("cafe", 40.7580, -73.9855)
    strong = [r for r in results if r.score > 6]
"""

import asyncio
import logging
from typing import Optional, List

from tenant_prospect.config import Settings, load_config
from tenant_prospect.models import Coordinate, ProspectScore
from tenant_prospect.pipeline import ProspectPipeline
from tenant_prospect.sources import AuthenticationError, SourceError

logger = logging.getLogger(__name__)

UNABLE_TO_LOAD = "Unable to load prospects"


async def rank_prospects_async(
    category: str,
    coordinate: Coordinate,
    settings: Optional[Settings] = None,
) -> List[ProspectScore]:
    """Run the pipeline once with fresh sources, closing them afterwards."""
    async with ProspectPipeline.from_settings(settings) as pipeline:
        return await pipeline.rank(category, coordinate)


def rank_prospects(
    category: str,
    latitude: float,
    longitude: float,
    limit: Optional[int] = None,
    min_score: float = 0,
    radius: Optional[int] = None,
    config_path: Optional[str] = None,
) -> List[ProspectScore]:
    """
    Rank prospective tenants near a location.

    Args:
        category: Business category to search (e.g., "cafe")
        latitude: Latitude of the search centre
        longitude: Longitude of the search centre
        limit: Maximum number of results (default: all)
        min_score: Minimum expansion score filter
        radius: Search radius in metres (overrides config)
        config_path: Optional path to YAML config

    Returns:
        List of ProspectScore objects, sorted by score

    Raises:
        RuntimeError: API keys missing or the candidate search failed

    Example:
        for p in rank_prospects("bakery", 40.7128, -74.0060, limit=10):
            print(f"{p.name}: {p.formatted_score}")
    """
    settings = load_config(config_path) if config_path else Settings()
    if radius:
        settings.search_radius_m = radius

    coordinate = Coordinate(latitude, longitude)

    try:
        results = asyncio.run(rank_prospects_async(category, coordinate, settings))
    except AuthenticationError as e:
        raise RuntimeError(f"API keys not configured: {e}") from e
    except SourceError as e:
        logger.error("%s: %s", UNABLE_TO_LOAD, e)
        raise RuntimeError(f"{UNABLE_TO_LOAD}: {e}") from e

    if min_score:
        results = [r for r in results if r.score >= min_score]

    if limit is not None:
        results = results[:limit]

    return results
