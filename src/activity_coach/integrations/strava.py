"""
Activity sources: the Strava API and exported JSON files.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx

from .base import (
    ActivitySource,
    AuthenticationError,
    IntegrationError,
    RateLimitError,
)


logger = logging.getLogger(__name__)


class StravaActivitySource(ActivitySource):
    """
    Lists the athlete's recent activities from Strava API v3.

    The access token comes from the authorization flow; this class never
    refreshes it. A 401 surfaces as AuthenticationError so the caller can
    re-authenticate.

    Usage:
        source = StravaActivitySource(access_token=token)
        activities = await source.list_recent_activities()
    """

    provider = "strava"
    default_base_url = "https://www.strava.com/api/v3"

    def __init__(
        self,
        access_token: str,
        base_url: Optional[str] = None,
        per_page: int = 30,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not access_token:
            raise AuthenticationError("Strava access token not configured", self.provider)
        self.access_token = access_token
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.per_page = per_page
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=30.0)
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "StravaActivitySource":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def get_auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    async def list_recent_activities(self) -> List[Dict[str, Any]]:
        """
        Fetch the latest page of activities.

        Raises:
            AuthenticationError: If the token is expired or invalid
            RateLimitError: If Strava's rate limit is exceeded
            IntegrationError: For other API or transport errors
        """
        client = await self._get_client()
        url = f"{self.base_url}/athlete/activities"

        try:
            response = await client.get(
                url,
                headers=self.get_auth_headers(),
                params={"per_page": self.per_page},
            )
        except httpx.HTTPError as e:
            raise IntegrationError(f"Strava request failed: {e}", self.provider, "network")

        if response.status_code == 401:
            raise AuthenticationError(
                "Token expired or invalid. Please re-authenticate.",
                self.provider,
            )

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                "Strava rate limit exceeded. Please wait before retrying.",
                self.provider,
                int(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        if response.status_code != 200:
            try:
                error_data = response.json()
                error_msg = error_data.get("message", str(error_data))
            except ValueError:
                error_msg = response.text or f"HTTP {response.status_code}"
            raise IntegrationError(
                f"Strava API error: {error_msg}",
                self.provider,
                str(response.status_code),
            )

        try:
            data = response.json()
        except ValueError as e:
            raise IntegrationError(f"Strava returned invalid JSON: {e}", self.provider, "invalid_response")

        if not isinstance(data, list):
            raise IntegrationError("Strava returned an unexpected payload", self.provider, "invalid_response")

        logger.info(f"Received {len(data)} activities from Strava")
        return data


class FileActivitySource(ActivitySource):
    """Reads activities from a JSON array (e.g. a saved Strava response)."""

    provider = "file"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def list_recent_activities(self) -> List[Dict[str, Any]]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise IntegrationError(f"Cannot read {self.path}: {e}", self.provider, "io")
        except json.JSONDecodeError as e:
            raise IntegrationError(f"Invalid JSON in {self.path}: {e}", self.provider, "invalid_response")

        # Accept a bare list or {"activities": [...]}
        if isinstance(data, dict):
            data = data.get("activities")
        if not isinstance(data, list):
            raise IntegrationError(f"{self.path} does not contain an activity list", self.provider, "invalid_response")
        return data


class StaticActivitySource(ActivitySource):
    """In-memory activities, for tests and demos."""

    provider = "static"

    def __init__(self, activities: Optional[List[Dict[str, Any]]] = None):
        self.activities = list(activities or [])

    async def list_recent_activities(self) -> List[Dict[str, Any]]:
        return list(self.activities)
