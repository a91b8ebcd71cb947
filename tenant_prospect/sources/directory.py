"""
Yelp Fusion client for candidate search and chain size estimation.

Usage:
    async with DirectoryClient(api_key="your_key") as directory:
        candidates = await directory.search("cafe", Coordinate(40.758, -73.9855))
        locations = await directory.estimate_chain_size(candidates[0].name)
"""

import logging
import os
from typing import Optional

import httpx
from pydantic import ValidationError

from ..models import BusinessCandidate, Coordinate
from .errors import AuthenticationError, DecodeError, NetworkError, UpstreamError
from .schemas import YelpBusiness, YelpSearchResponse

logger = logging.getLogger(__name__)


class DirectoryClient:
    """
    Client for the Yelp Fusion business search endpoint.

    Every call is a single GET; failures are raised, never retried.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.yelp.com/v3",
        timeout: float = 15.0,
        chain_location: str = "New York, NY",
        chain_radius: int = 40000,
        chain_limit: int = 50,
        chain_categories: str = "restaurants,food,bars",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the directory client.

        Args:
            api_key: Yelp Fusion API key (falls back to YELP_API_KEY)
            base_url: API root URL
            timeout: Per-request timeout in seconds
            chain_location: Metro area used for chain size estimation
            chain_radius: Radius (metres) for chain size estimation
            chain_limit: Result cap for chain size estimation
            chain_categories: Category filter for chain size estimation
            transport: Optional httpx transport (used by tests)
        """
        if not api_key:
            api_key = os.environ.get("YELP_API_KEY")

        if not api_key:
            raise AuthenticationError(
                "Yelp API key not configured. "
                "Set YELP_API_KEY environment variable or pass api_key parameter."
            )

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.chain_location = chain_location
        self.chain_radius = chain_radius
        self.chain_limit = chain_limit
        self.chain_categories = chain_categories

        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        """Initialize the HTTP client."""
        if self._client:
            return

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Accept": "application/json",
            },
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def search(
        self,
        term: str,
        coordinate: Coordinate,
        radius: int = 16093,
        limit: int = 50,
    ) -> list[BusinessCandidate]:
        """
        Search for businesses matching a term around a coordinate.

        Args:
            term: Search term or category (e.g., "cafe")
            coordinate: Centre of the search area
            radius: Search radius in metres (default ~10 miles)
            limit: Maximum results to return

        Returns:
            List of BusinessCandidate in directory order

        Raises:
            NetworkError: transport failure or timeout
            UpstreamError: non-2xx response
            DecodeError: response does not match the expected schema
        """
        if not term or not term.strip():
            raise ValueError("Search term must not be empty")

        params = {
            "term": term.strip(),
            "latitude": coordinate.latitude,
            "longitude": coordinate.longitude,
            "radius": radius,
            "limit": limit,
        }

        logger.info("Directory search: %s near %s,%s", term, coordinate.latitude, coordinate.longitude)

        envelope = await self._search(params)
        candidates = [self._to_candidate(b) for b in envelope.businesses]

        logger.info("Directory returned %d of %d businesses", len(candidates), envelope.total)
        return candidates

    async def estimate_chain_size(self, brand_name: str) -> int:
        """
        Count metro-area locations carrying exactly this brand name.

        Yelp's term matching is fuzzy, so results are filtered to names
        equal to the brand ignoring case ("Joe's Pizza NYC" does not count
        for "Joe's Pizza").

        Args:
            brand_name: Business name to count

        Returns:
            Number of exact-name matches

        Raises:
            NetworkError, UpstreamError, DecodeError: as for search()
        """
        params = {
            "term": f'"{brand_name}"',
            "location": self.chain_location,
            "radius": self.chain_radius,
            "limit": self.chain_limit,
            "categories": self.chain_categories,
        }

        envelope = await self._search(params)
        count = count_exact_matches(brand_name, [b.name for b in envelope.businesses])

        logger.debug("Chain size for %s: %d exact of %d returned", brand_name, count, len(envelope.businesses))
        return count

    async def _search(self, params: dict) -> YelpSearchResponse:
        """Run /businesses/search and decode the envelope."""
        if not self._client:
            await self.start()

        url = f"{self.base_url}/businesses/search"
        logger.debug("GET %s params=%s", url, params)

        try:
            response = await self._client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Directory request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Directory request failed: {e}") from e

        self._handle_errors(response)

        try:
            return YelpSearchResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            # ValueError covers a body that is not JSON at all
            logger.warning("Directory response did not decode: %s", e)
            raise DecodeError(f"Unexpected directory response: {e}") from e

    def _handle_errors(self, response: httpx.Response) -> None:
        """Raise UpstreamError for any non-2xx response."""
        if response.is_success:
            return

        try:
            error_data = response.json()
            error_msg = error_data.get("error", {}).get("description") or response.text
        except Exception:
            error_msg = response.text

        logger.warning("Directory error %d: %s", response.status_code, error_msg[:200])
        raise UpstreamError(
            f"Directory error {response.status_code}: {error_msg[:200]}",
            status_code=response.status_code,
        )

    @staticmethod
    def _to_candidate(business: YelpBusiness) -> BusinessCandidate:
        """Map a Yelp business onto our model."""
        return BusinessCandidate(
            id=business.id,
            name=business.name,
            review_count=business.review_count,
            rating=business.rating,
            phone=business.phone or None,
            address=business.location.address1 or None,
        )


def count_exact_matches(brand_name: str, names: list[str]) -> int:
    """Count names equal to the brand, ignoring case."""
    target = brand_name.casefold()
    return sum(1 for name in names if name.casefold() == target)
