"""Prospect ranking pipeline: search, enrich with signals, score, sort."""

import asyncio
import logging
from typing import Optional

from .config import Settings, ScoringConfig
from .models import BusinessCandidate, Coordinate, ProspectScore
from .scoring import calculate_expansion_score
from .sources import DirectoryClient, NewsClient, SourceError

logger = logging.getLogger(__name__)


class ProspectPipeline:
    """
    Ranks businesses near a coordinate by expansion score.

    Each candidate gets its chain size and news hits fetched concurrently.
    A candidate whose chain size lookup fails is left out of the ranking;
    a failing news lookup only counts as zero hits (NewsClient never raises).

    Usage:
        async with ProspectPipeline.from_settings(settings) as pipeline:
            ranked = await pipeline.rank("cafe", Coordinate(40.758, -73.9855))
    """

    def __init__(
        self,
        directory: DirectoryClient,
        news: NewsClient,
        search_radius: int = 16093,
        search_limit: int = 50,
        max_concurrent: int = 5,
        scoring: Optional[ScoringConfig] = None,
    ):
        self.directory = directory
        self.news = news
        self.search_radius = search_radius
        self.search_limit = search_limit
        self.max_concurrent = max(1, max_concurrent)
        self.scoring = scoring or ScoringConfig()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        scoring: Optional[ScoringConfig] = None,
    ) -> "ProspectPipeline":
        """Build a pipeline and both sources from settings."""
        settings = settings or Settings()

        directory = DirectoryClient(
            api_key=settings.yelp_api_key,
            base_url=settings.yelp_base_url,
            timeout=settings.request_timeout,
            chain_location=settings.chain_location,
            chain_radius=settings.chain_radius_m,
            chain_limit=settings.chain_limit,
            chain_categories=settings.chain_categories,
        )
        news = NewsClient(
            api_key=settings.news_api_key,
            base_url=settings.news_base_url,
            timeout=settings.request_timeout,
            window_days=settings.news_window_days,
            keywords=settings.news_keywords,
        )

        return cls(
            directory=directory,
            news=news,
            search_radius=settings.search_radius_m,
            search_limit=settings.search_limit,
            max_concurrent=settings.max_concurrent,
            scoring=scoring,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Close both sources."""
        await self.directory.close()
        await self.news.close()

    async def rank(self, category: str, coordinate: Coordinate) -> list[ProspectScore]:
        """
        Rank candidates for a category around a coordinate.

        Args:
            category: Directory search term (e.g., "cafe")
            coordinate: Centre of the search area

        Returns:
            ProspectScore list sorted by score, highest first

        Raises:
            SourceError: the candidate search itself failed
        """
        candidates = await self.directory.search(
            category,
            coordinate,
            radius=self.search_radius,
            limit=self.search_limit,
        )

        if not candidates:
            logger.info("No candidates for %s", category)
            return []

        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def score_with_semaphore(candidate: BusinessCandidate) -> Optional[ProspectScore]:
            async with semaphore:
                return await self.score_candidate(candidate)

        tasks = [asyncio.ensure_future(score_with_semaphore(c)) for c in candidates]
        try:
            scored = await asyncio.gather(*tasks)
        except BaseException:
            # Stop sibling candidates before the sources are closed under them
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        results = [s for s in scored if s is not None]
        results.sort(key=lambda p: p.score, reverse=True)

        logger.info(
            "Ranked %d of %d candidates for %s",
            len(results),
            len(candidates),
            category,
        )
        return results

    async def score_candidate(self, candidate: BusinessCandidate) -> Optional[ProspectScore]:
        """
        Fetch both signals for one candidate and score it.

        Returns:
            ProspectScore, or None when either signal could not be fetched
        """
        chain_count, news_hits = await asyncio.gather(
            self.directory.estimate_chain_size(candidate.name),
            self.news.count_expansion_articles(candidate.name),
            return_exceptions=True,
        )

        for outcome in (chain_count, news_hits):
            if isinstance(outcome, SourceError):
                logger.warning("Skipping %s: %s", candidate.name, outcome)
                return None
            if isinstance(outcome, BaseException):
                raise outcome

        score = calculate_expansion_score(
            chain_count=chain_count,
            review_count=candidate.review_count,
            rating=candidate.rating,
            news_hits=news_hits,
            config=self.scoring,
        )
        logger.debug(
            "%s: chain=%d news=%d score=%.2f",
            candidate.name,
            chain_count,
            news_hits,
            score,
        )

        return ProspectScore(
            name=candidate.name,
            score=score,
            chain_count=chain_count,
            news_hits=news_hits,
            candidate=candidate,
        )
