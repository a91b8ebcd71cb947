"""Shared fixtures and payload builders."""

import httpx
import pytest


def yelp_business(
    id: str,
    name: str,
    review_count: int = 0,
    rating: float = 0.0,
    phone: str = "",
    address1=None,
) -> dict:
    """A business as it appears in a Yelp search response."""
    return {
        "id": id,
        "name": name,
        "review_count": review_count,
        "rating": rating,
        "phone": phone,
        "location": {"address1": address1},
    }


def yelp_envelope(businesses: list) -> dict:
    """A Yelp /businesses/search response body."""
    return {"businesses": businesses, "total": len(businesses)}


def news_envelope(total: int, titles=()) -> dict:
    """A NewsAPI /everything response body."""
    return {
        "status": "ok",
        "totalResults": total,
        "articles": [{"title": t} for t in titles],
    }


@pytest.fixture
def no_api_keys(monkeypatch):
    """Remove API keys from the environment."""
    monkeypatch.delenv("YELP_API_KEY", raising=False)
    monkeypatch.delenv("NEWS_API_KEY", raising=False)


@pytest.fixture
def recorder():
    """Collects requests seen by a MockTransport handler."""
    return []


def transport_for(handler, recorder=None) -> httpx.MockTransport:
    """Wrap a handler, recording each request."""
    def _handler(request: httpx.Request) -> httpx.Response:
        if recorder is not None:
            recorder.append(request)
        return handler(request)

    return httpx.MockTransport(_handler)
