"""Pydantic models for the upstream JSON payloads."""

from typing import List, Optional
from pydantic import BaseModel, Field


class YelpLocation(BaseModel):
    """Business location (only the street line is used)."""
    address1: Optional[str] = None


class YelpBusiness(BaseModel):
    """A business in a Yelp search response."""
    id: str
    name: str
    review_count: int = Field(ge=0)
    rating: float = Field(ge=0.0, le=5.0)
    phone: Optional[str] = None
    location: YelpLocation = Field(default_factory=YelpLocation)


class YelpSearchResponse(BaseModel):
    """Envelope of /businesses/search."""
    businesses: List[YelpBusiness]
    total: int


class NewsArticle(BaseModel):
    """An article in a NewsAPI response."""
    title: Optional[str] = None


class NewsSearchResponse(BaseModel):
    """Envelope of /everything."""
    totalResults: int = Field(ge=0)
    articles: List[NewsArticle] = Field(default_factory=list)
