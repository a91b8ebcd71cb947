"""Tests for the prospect ranking pipeline."""

import asyncio
from datetime import date

import httpx
import pytest

from conftest import news_envelope, transport_for, yelp_business, yelp_envelope
from tenant_prospect.config import Settings
from tenant_prospect.models import BusinessCandidate, Coordinate
from tenant_prospect.pipeline import ProspectPipeline
from tenant_prospect.sources import (
    DirectoryClient,
    NetworkError,
    NewsClient,
    UpstreamError,
)

TIMES_SQUARE = Coordinate(40.7580, -73.9855)


class FakeDirectory:
    """Directory stand-in with fixed candidates and chain sizes."""

    def __init__(self, candidates, chain_sizes, search_error=None):
        self.candidates = candidates
        self.chain_sizes = chain_sizes
        self.search_error = search_error
        self.chain_calls = []
        self.closed = False

    async def search(self, term, coordinate, radius=16093, limit=50):
        if self.search_error:
            raise self.search_error
        return list(self.candidates)

    async def estimate_chain_size(self, brand_name):
        self.chain_calls.append(brand_name)
        value = self.chain_sizes[brand_name]
        if isinstance(value, BaseException):
            raise value
        return value

    async def close(self):
        self.closed = True


class FakeNews:
    """News stand-in with fixed hit counts."""

    def __init__(self, hits):
        self.hits = hits
        self.closed = False

    async def count_expansion_articles(self, brand_name):
        return self.hits.get(brand_name, 0)

    async def close(self):
        self.closed = True


def candidate(id, name, review_count=0, rating=0.0):
    return BusinessCandidate(id=id, name=name, review_count=review_count, rating=rating)


class TestRanking:
    """Test scoring and ordering."""

    @pytest.mark.asyncio
    async def test_sorted_by_score_descending(self):
        """Output is ordered highest score first."""
        directory = FakeDirectory(
            [candidate("1", "Low", 10, 3.0), candidate("2", "High", 300, 5.0), candidate("3", "Mid", 150, 4.0)],
            {"Low": 0, "High": 10, "Mid": 5},
        )
        pipeline = ProspectPipeline(directory, FakeNews({"High": 5}))

        results = await pipeline.rank("cafe", TIMES_SQUARE)

        assert [r.name for r in results] == ["High", "Mid", "Low"]
        assert results[0].score == pytest.approx(9.0)

    @pytest.mark.asyncio
    async def test_prospect_fields(self):
        """ProspectScore carries signals and the originating candidate."""
        biz = candidate("1", "Sweetgreen", 150, 4.0)
        pipeline = ProspectPipeline(FakeDirectory([biz], {"Sweetgreen": 5}), FakeNews({"Sweetgreen": 2}))

        [result] = await pipeline.rank("salad", TIMES_SQUARE)

        assert result.name == "Sweetgreen"
        assert result.chain_count == 5
        assert result.news_hits == 2
        assert result.candidate is biz
        assert result.score == pytest.approx(2.0 + 1.0 + 1.2 + 0.6)
        assert result.formatted_score == "4.80"

    @pytest.mark.asyncio
    async def test_no_candidates(self):
        """An empty search gives an empty ranking."""
        pipeline = ProspectPipeline(FakeDirectory([], {}), FakeNews({}))
        assert await pipeline.rank("cafe", TIMES_SQUARE) == []

    @pytest.mark.asyncio
    async def test_duplicate_names_scored_independently(self):
        """Same-name candidates both appear with the same chain signal."""
        directory = FakeDirectory(
            [candidate("1", "Joe's Pizza", 100, 4.0), candidate("2", "Joe's Pizza", 20, 3.0)],
            {"Joe's Pizza": 4},
        )
        pipeline = ProspectPipeline(directory, FakeNews({}))

        results = await pipeline.rank("pizza", TIMES_SQUARE)

        assert [r.candidate.id for r in results] == ["1", "2"]
        assert {r.chain_count for r in results} == {4}
        assert directory.chain_calls == ["Joe's Pizza", "Joe's Pizza"]

    @pytest.mark.asyncio
    async def test_ties_keep_directory_order(self):
        """Equal scores stay in directory order."""
        directory = FakeDirectory(
            [candidate("1", "A", 50, 4.0), candidate("2", "B", 50, 4.0), candidate("3", "C", 50, 4.0)],
            {"A": 1, "B": 1, "C": 1},
        )
        pipeline = ProspectPipeline(directory, FakeNews({}))

        results = await pipeline.rank("cafe", TIMES_SQUARE)

        assert [r.name for r in results] == ["A", "B", "C"]


class TestErrorPolicy:
    """Per-candidate failures versus fatal search failures."""

    @pytest.mark.asyncio
    async def test_chain_failure_drops_only_that_candidate(self):
        """B's chain lookup fails: A and C are still ranked."""
        directory = FakeDirectory(
            [candidate("a", "A", 100, 4.0), candidate("b", "B", 300, 5.0), candidate("c", "C", 250, 4.5)],
            {"A": 2, "B": UpstreamError("boom", status_code=500), "C": 8},
        )
        pipeline = ProspectPipeline(directory, FakeNews({}))

        results = await pipeline.rank("cafe", TIMES_SQUARE)

        assert [r.name for r in results] == ["C", "A"]
        assert results[0].score >= results[1].score

    @pytest.mark.asyncio
    async def test_news_failure_keeps_candidate_with_zero_hits(self):
        """A news 5xx counts as 0 hits; unlike chain failures, nothing is dropped."""
        directory = FakeDirectory([candidate("a", "A", 100, 4.0)], {"A": 3})
        news = NewsClient(
            api_key="news-key",
            today=lambda: date(2024, 3, 31),
            transport=transport_for(lambda request: httpx.Response(503, text="down")),
        )

        async with ProspectPipeline(directory, news) as pipeline:
            results = await pipeline.rank("cafe", TIMES_SQUARE)

        assert len(results) == 1
        assert results[0].news_hits == 0
        assert results[0].chain_count == 3

    @pytest.mark.asyncio
    async def test_undecodable_news_body_keeps_batch(self):
        """A news body that fails to decompress gives 0 hits for that candidate only."""
        def handler(request):
            if request.url.params["q"].startswith("B OR"):
                return httpx.Response(
                    200,
                    headers={"Content-Encoding": "gzip"},
                    stream=httpx.ByteStream(b"not gzip"),
                )
            return httpx.Response(200, json=news_envelope(4))

        directory = FakeDirectory([candidate("a", "A", 100, 4.0), candidate("b", "B", 100, 4.0)], {"A": 1, "B": 1})
        news = NewsClient(api_key="news-key", today=lambda: date(2024, 3, 31), transport=transport_for(handler))

        async with ProspectPipeline(directory, news) as pipeline:
            results = await pipeline.rank("cafe", TIMES_SQUARE)

        assert {r.name: r.news_hits for r in results} == {"A": 4, "B": 0}

    @pytest.mark.asyncio
    async def test_search_failure_is_fatal(self):
        """A failed candidate search fails the whole call."""
        directory = FakeDirectory([], {}, search_error=NetworkError("offline"))
        pipeline = ProspectPipeline(directory, FakeNews({}))

        with pytest.raises(NetworkError):
            await pipeline.rank("cafe", TIMES_SQUARE)

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self):
        """Programming errors are not mistaken for source failures."""
        directory = FakeDirectory([candidate("a", "A")], {"A": KeyError("bug")})
        pipeline = ProspectPipeline(directory, FakeNews({}))

        with pytest.raises(KeyError):
            await pipeline.rank("cafe", TIMES_SQUARE)

    @pytest.mark.asyncio
    async def test_unexpected_error_cancels_other_candidates(self):
        """Sibling lookups are cancelled before the error leaves rank."""
        started = []
        cancelled = []

        class FailingDirectory(FakeDirectory):
            async def estimate_chain_size(self, brand_name):
                started.append(brand_name)
                if brand_name == "A":
                    while "B" not in started:
                        await asyncio.sleep(0)
                    raise KeyError("bug")
                try:
                    await asyncio.Event().wait()
                except asyncio.CancelledError:
                    cancelled.append(brand_name)
                    raise

        directory = FailingDirectory([candidate("a", "A"), candidate("b", "B")], {})
        pipeline = ProspectPipeline(directory, FakeNews({}))

        with pytest.raises(KeyError):
            await pipeline.rank("cafe", TIMES_SQUARE)

        assert cancelled == ["B"]

    @pytest.mark.asyncio
    async def test_every_chain_lookup_fails(self):
        """All candidates dropped gives an empty list, not an error."""
        directory = FakeDirectory(
            [candidate("a", "A"), candidate("b", "B")],
            {"A": NetworkError("x"), "B": NetworkError("y")},
        )
        pipeline = ProspectPipeline(directory, FakeNews({}))

        assert await pipeline.rank("cafe", TIMES_SQUARE) == []


class TestConcurrency:
    """Test fan-out behaviour."""

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        """No more than max_concurrent candidates are in flight."""
        in_flight = 0
        peak = 0

        class SlowDirectory(FakeDirectory):
            async def estimate_chain_size(self, brand_name):
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                return 1

        candidates = [candidate(str(i), f"Biz {i}") for i in range(8)]
        pipeline = ProspectPipeline(SlowDirectory(candidates, {}), FakeNews({}), max_concurrent=2)

        results = await pipeline.rank("cafe", TIMES_SQUARE)

        assert len(results) == 8
        assert peak == 2

    @pytest.mark.asyncio
    async def test_signals_fetched_concurrently(self):
        """Chain and news lookups for a candidate overlap."""
        chain_started = asyncio.Event()
        news_started = asyncio.Event()

        class WaitingDirectory(FakeDirectory):
            async def estimate_chain_size(self, brand_name):
                chain_started.set()
                await asyncio.wait_for(news_started.wait(), timeout=1)
                return 1

        class WaitingNews(FakeNews):
            async def count_expansion_articles(self, brand_name):
                news_started.set()
                await asyncio.wait_for(chain_started.wait(), timeout=1)
                return 1

        pipeline = ProspectPipeline(WaitingDirectory([candidate("a", "A")], {}), WaitingNews({}))

        results = await pipeline.rank("cafe", TIMES_SQUARE)

        assert results[0].chain_count == 1
        assert results[0].news_hits == 1

    @pytest.mark.asyncio
    async def test_cancellation_discards_everything(self):
        """Cancelling rank cancels in-flight lookups and returns nothing."""
        cancelled = []
        started = []

        class HangingDirectory(FakeDirectory):
            async def estimate_chain_size(self, brand_name):
                started.append(brand_name)
                try:
                    await asyncio.Event().wait()
                except asyncio.CancelledError:
                    cancelled.append(brand_name)
                    raise

        candidates = [candidate("a", "A"), candidate("b", "B")]
        pipeline = ProspectPipeline(HangingDirectory(candidates, {}), FakeNews({}))

        task = asyncio.create_task(pipeline.rank("cafe", TIMES_SQUARE))
        for _ in range(100):
            if len(started) == 2:
                break
            await asyncio.sleep(0)
        assert len(started) == 2

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert sorted(cancelled) == ["A", "B"]


class TestLifecycle:
    """Test construction and cleanup."""

    @pytest.mark.asyncio
    async def test_context_manager_closes_sources(self):
        directory = FakeDirectory([], {})
        news = FakeNews({})

        async with ProspectPipeline(directory, news):
            pass

        assert directory.closed
        assert news.closed

    def test_from_settings(self):
        """Settings flow into both sources."""
        settings = Settings(
            yelp_api_key="y",
            news_api_key="n",
            request_timeout=5,
            search_radius_m=8000,
            chain_location="Boston, MA",
            news_window_days=14,
            max_concurrent=3,
        )

        pipeline = ProspectPipeline.from_settings(settings)

        assert pipeline.search_radius == 8000
        assert pipeline.max_concurrent == 3
        assert pipeline.directory.api_key == "y"
        assert pipeline.directory.chain_location == "Boston, MA"
        assert pipeline.directory.timeout == 5
        assert pipeline.news.api_key == "n"
        assert pipeline.news.window_days == 14


class TestEndToEnd:
    """Full pipeline over mocked HTTP with hand-computed scores."""

    @pytest.mark.asyncio
    async def test_cafe_near_times_square(self):
        """
        Corner Cafe:        chain 1,  30 reviews, 5.0, news 10 -> 0.04+0.02+0.15+0.15   = 3.60
        Joe Coffee:         chain 5, 150 reviews, 4.0, news 0  -> 0.20+0.10+0.12+0.00   = 4.20
        Blue Bottle Coffee: chain 12, 300 reviews, 4.5, news 3 -> 0.40+0.20+0.135+0.09  = 8.25
        """
        search_body = yelp_envelope([
            yelp_business("c1", "Corner Cafe", 30, 5.0),
            yelp_business("j1", "Joe Coffee", 150, 4.0, "+12125550111", "141 Waverly Pl"),
            yelp_business("b1", "Blue Bottle Coffee", 300, 4.5),
        ])
        chain_sizes = {"Corner Cafe": 1, "Joe Coffee": 5, "Blue Bottle Coffee": 12}
        news_hits = {"Corner Cafe": 10, "Joe Coffee": 0, "Blue Bottle Coffee": 3}

        def yelp_handler(request):
            params = request.url.params
            if "latitude" in params:
                assert params["term"] == "cafe"
                return httpx.Response(200, json=search_body)
            brand = params["term"].strip('"')
            matches = [yelp_business(f"{brand}-{i}", brand) for i in range(chain_sizes[brand])]
            # Fuzzy neighbours that must not be counted
            matches.append(yelp_business("x", f"{brand} Express"))
            return httpx.Response(200, json=yelp_envelope(matches))

        def news_handler(request):
            brand = request.url.params["q"].split(" OR ")[0]
            return httpx.Response(200, json=news_envelope(news_hits[brand]))

        directory = DirectoryClient(api_key="y", transport=transport_for(yelp_handler))
        news = NewsClient(api_key="n", transport=transport_for(news_handler))

        async with ProspectPipeline(directory, news) as pipeline:
            results = await pipeline.rank("cafe", TIMES_SQUARE)

        assert [(r.name, r.chain_count, r.news_hits) for r in results] == [
            ("Blue Bottle Coffee", 12, 3),
            ("Joe Coffee", 5, 0),
            ("Corner Cafe", 1, 10),
        ]
        assert [r.score for r in results] == pytest.approx([8.25, 4.2, 3.6])
        assert [r.formatted_score for r in results] == ["8.25", "4.20", "3.60"]
        assert results[1].candidate.address == "141 Waverly Pl"
