"""NewsAPI client for recent expansion activity."""

import logging
import os
from datetime import date, timedelta
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from .errors import AuthenticationError
from .schemas import NewsSearchResponse

logger = logging.getLogger(__name__)

DEFAULT_KEYWORDS = ["opens", "expands", "raises"]


class NewsClient:
    """
    Client for the NewsAPI /everything endpoint.

    Unlike the directory client, failures here never raise: a brand whose
    news lookup fails is treated as having no recent news.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://newsapi.org/v2",
        timeout: float = 15.0,
        window_days: int = 30,
        keywords: Optional[list[str]] = None,
        today: Callable[[], date] = date.today,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            api_key = os.environ.get("NEWS_API_KEY")

        if not api_key:
            raise AuthenticationError(
                "NewsAPI key not configured. "
                "Set NEWS_API_KEY environment variable or pass api_key parameter."
            )

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.window_days = window_days
        if keywords is None:
            keywords = DEFAULT_KEYWORDS
        elif isinstance(keywords, str):
            keywords = [keywords]
        self.keywords = list(keywords)
        self._today = today

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
            headers={"Accept": "application/json"},
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def build_query(self, brand_name: str) -> str:
        """Disjunction of the brand and the expansion keywords."""
        return " OR ".join([brand_name] + self.keywords)

    def build_params(self, brand_name: str) -> dict:
        """Query parameters for a trailing-window relevancy search."""
        today = self._today()
        return {
            "q": self.build_query(brand_name),
            "from": (today - timedelta(days=self.window_days)).isoformat(),
            "to": today.isoformat(),
            "sortBy": "relevancy",
            "apiKey": self.api_key,
        }

    def search_url(self, brand_name: str) -> str:
        """URL of the same article search, for opening in a browser."""
        request = httpx.Request("GET", f"{self.base_url}/everything", params=self.build_params(brand_name))
        return str(request.url)

    async def count_expansion_articles(self, brand_name: str) -> int:
        """
        Count recent articles about a brand and expansion keywords.

        Args:
            brand_name: Business name

        Returns:
            Upstream totalResults (not the number of articles returned),
            or 0 when the request fails for any reason
        """
        if not self._client:
            await self.start()

        url = f"{self.base_url}/everything"
        params = self.build_params(brand_name)
        logger.debug("GET %s q=%s from=%s to=%s", url, params["q"], params["from"], params["to"])

        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.warning("News request failed for %s: %s", brand_name, e)
            return 0

        if not response.is_success:
            logger.warning(
                "News error %d for %s: %s",
                response.status_code,
                brand_name,
                response.text[:200],
            )
            return 0

        try:
            payload = NewsSearchResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning("News response did not decode for %s: %s", brand_name, e)
            return 0

        logger.debug("News hits for %s: %d", brand_name, payload.totalResults)
        return payload.totalResults
