"""Configuration settings for the tenant prospect ranker."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    """Unified settings with YAML override support."""

    # API Keys (from environment)
    yelp_api_key: str = field(default_factory=lambda: os.environ.get("YELP_API_KEY", ""))
    news_api_key: str = field(default_factory=lambda: os.environ.get("NEWS_API_KEY", ""))

    # Endpoints
    yelp_base_url: str = "https://api.yelp.com/v3"
    news_base_url: str = "https://newsapi.org/v2"

    # Per-request timeout (seconds)
    request_timeout: float = 15.0

    # Candidate search
    search_radius_m: int = 16093  # 10 miles
    search_limit: int = 50

    # Chain size estimation (metro-wide exact-name search)
    chain_location: str = "New York, NY"
    chain_radius_m: int = 40000  # 25 miles, Yelp's maximum
    chain_limit: int = 50
    chain_categories: str = "restaurants,food,bars"

    # News activity
    news_window_days: int = 30
    news_keywords: list = field(default_factory=lambda: ["opens", "expands", "raises"])

    # Candidates processed at once
    max_concurrent: int = 5


def load_config(path: Optional[str] = None) -> Settings:
    """
    Load settings from YAML file with environment overrides.

    Priority: environment > config file > defaults

    Args:
        path: Path to YAML config file (optional)

    Returns:
        Settings instance with merged configuration
    """
    settings = Settings()

    if path:
        config_path = Path(path)
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}

            for key, value in data.items():
                if hasattr(settings, key):
                    setattr(settings, key, value)

            # A single keyword may be written as a bare scalar
            if isinstance(settings.news_keywords, str):
                settings.news_keywords = [settings.news_keywords]

    # Environment overrides (always win)
    if os.environ.get("YELP_API_KEY"):
        settings.yelp_api_key = os.environ["YELP_API_KEY"]
    if os.environ.get("NEWS_API_KEY"):
        settings.news_api_key = os.environ["NEWS_API_KEY"]

    return settings


@dataclass
class ScoringConfig:
    """Weights and caps for the expansion score.

    The four weights sum to 0.90, so the best attainable score is 9.0.
    """

    chain_weight: float = 0.40
    review_weight: float = 0.20
    rating_weight: float = 0.15
    news_weight: float = 0.15

    chain_cap: int = 10
    review_cap: int = 300
    rating_cap: float = 5.0
    news_cap: int = 5

    scale: float = 10.0
