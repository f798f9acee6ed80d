"""
Base classes for activity sources.

An activity source only lists recent activities; authorization and sync with
the backend store happen elsewhere.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class IntegrationError(Exception):
    """Base exception for integration errors."""

    def __init__(self, message: str, provider: str = "", code: Optional[str] = None):
        self.provider = provider
        self.code = code
        super().__init__(message)


class RateLimitError(IntegrationError):
    """Rate limit exceeded."""

    def __init__(
        self,
        message: str,
        provider: str,
        retry_after: Optional[int] = None,
    ):
        self.retry_after = retry_after
        super().__init__(message, provider, "rate_limit")


class AuthenticationError(IntegrationError):
    """Authentication failed or expired."""
    pass


class ActivitySource(ABC):
    """
    Abstract source of raw activity records.
    """

    provider: str = "base"

    @abstractmethod
    async def list_recent_activities(self) -> List[Dict[str, Any]]:
        """
        Fetch the most recent activities as raw mappings.

        Raises:
            IntegrationError: On network, auth or format failures
        """
        pass

    async def close(self) -> None:
        """Release any held resources."""
        return None
