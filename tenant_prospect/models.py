"""Data models for the tenant prospect ranker."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Coordinate:
    """A point in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")


@dataclass(frozen=True)
class BusinessCandidate:
    """A business returned by a directory search."""

    id: str
    name: str
    review_count: int = 0
    rating: float = 0.0
    phone: Optional[str] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class ProspectScore:
    """A scored candidate, as returned by the pipeline."""

    name: str
    score: float
    chain_count: int
    news_hits: int
    candidate: BusinessCandidate

    @property
    def formatted_score(self) -> str:
        """Score with two decimals, e.g. "6.45"."""
        return f"{self.score:.2f}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.candidate.id,
            "name": self.name,
            "score": round(self.score, 2),
            "chain_count": self.chain_count,
            "news_hits": self.news_hits,
            "review_count": self.candidate.review_count,
            "rating": self.candidate.rating,
            "phone": self.candidate.phone,
            "address": self.candidate.address,
        }
