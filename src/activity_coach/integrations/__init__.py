"""Activity source integrations."""

from .base import (
    ActivitySource,
    AuthenticationError,
    IntegrationError,
    RateLimitError,
)
from .strava import (
    FileActivitySource,
    StaticActivitySource,
    StravaActivitySource,
)

__all__ = [
    "ActivitySource",
    "AuthenticationError",
    "IntegrationError",
    "RateLimitError",
    "FileActivitySource",
    "StaticActivitySource",
    "StravaActivitySource",
]
