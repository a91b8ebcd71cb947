"""
Tenant Prospect Ranker - Find businesses likely to lease new space.

Searches a business directory around a location, estimates each brand's
chain size and recent expansion news, and ranks candidates by an
expansion score.

CLI Usage:
    tenant-prospect rank "cafe" --lat 40.7580 --lon -73.9855
    tenant-prospect rank "bakery" --lat 40.7128 --lon -74.0060 -f json -q | jq '.'

Library Usage:
    from tenant_prospect import rank_prospects

    results = rank_prospects("cafe", 40.7580, -73.9855, limit=20)

    for r in results:
        print(f"{r.name}: {r.formatted_score}")
"""

__version__ = "0.3.0"

VERSION_INFO = {
    "major": 0,
    "minor": 3,
    "patch": 0,
    "release": "stable",  # stable, beta, alpha
}


def get_version() -> str:
    """Get full version string."""
    version = f"{VERSION_INFO['major']}.{VERSION_INFO['minor']}.{VERSION_INFO['patch']}"
    if VERSION_INFO["release"] != "stable":
        version += f"-{VERSION_INFO['release']}"
    return version


from tenant_prospect.api import rank_prospects
from tenant_prospect.models import BusinessCandidate, Coordinate, ProspectScore
from tenant_prospect.pipeline import ProspectPipeline

__all__ = [
    "rank_prospects",
    "ProspectPipeline",
    "Coordinate",
    "BusinessCandidate",
    "ProspectScore",
    "__version__",
    "get_version",
    "VERSION_INFO",
]
