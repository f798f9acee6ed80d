"""
Text generation client.

Wraps any OpenAI-compatible chat completions endpoint with:
- Endpoint and credential validation
- Automatic retry with exponential backoff
- An explicit per-request timeout
- Mapping of every failure onto the ExternalServiceError hierarchy
"""

from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar
from urllib.parse import urlsplit
import asyncio
import logging
import threading
import time

import httpx
from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
)

from ..config import get_settings
from ..exceptions import (
    AuthRejectedError,
    ExternalServiceError,
    InvalidEndpointError,
    LLMNotConfiguredError,
    LLMTimeoutError,
    MalformedResponseError,
    NetworkError,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_retries: int = 2,
        base_delay: float = 1.0,
        max_delay: float = 10.0,
        exponential_base: float = 2.0,
        retryable_status_codes: Optional[set[int]] = None,
    ) -> None:
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.retryable_status_codes = retryable_status_codes or {429, 500, 502, 503, 504}

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for a given attempt number."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)


class LLMMetrics:
    """Track text generation usage."""

    def __init__(self) -> None:
        self.total_requests = 0
        self.successful_requests = 0
        self.failed_requests = 0
        self.retried_requests = 0
        self._request_times: list[float] = []

    def record_request(
        self,
        success: bool,
        retried: bool = False,
        duration_ms: Optional[float] = None,
    ) -> None:
        """Record a request."""
        self.total_requests += 1
        if success:
            self.successful_requests += 1
        else:
            self.failed_requests += 1
        if retried:
            self.retried_requests += 1
        if duration_ms is not None:
            self._request_times.append(duration_ms)
            # Keep only last 100 request times
            if len(self._request_times) > 100:
                self._request_times = self._request_times[-100:]

    @property
    def avg_request_time_ms(self) -> float:
        """Average request time in milliseconds."""
        if not self._request_times:
            return 0.0
        return sum(self._request_times) / len(self._request_times)

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary."""
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "retried_requests": self.retried_requests,
            "avg_request_time_ms": round(self.avg_request_time_ms, 2),
        }


def validate_endpoint(endpoint: Optional[str]) -> str:
    """Return the endpoint if it is an absolute http(s) URL."""
    if not endpoint:
        raise InvalidEndpointError(endpoint or "")
    parts = urlsplit(endpoint)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidEndpointError(endpoint)
    return endpoint


class LLMClient:
    """
    Chat completion client for coaching advice.

    Every failure is raised as an ExternalServiceError subclass:
    InvalidEndpointError, LLMNotConfiguredError, AuthRejectedError,
    NetworkError (LLMTimeoutError) or MalformedResponseError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_config: Optional[RetryConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: API key (defaults to settings, then OPENAI_API_KEY / GEMINI_API_KEY)
            base_url: OpenAI-compatible base URL (defaults to settings)
            model: Model name (defaults to settings)
            timeout: Per-request timeout in seconds (defaults to settings)
            retry_config: Configuration for retry behavior
            http_client: Optional pre-built httpx client (tests inject a mock transport)
        """
        settings = get_settings()

        self.base_url = validate_endpoint(base_url or settings.llm_base_url)
        api_key = api_key or settings.resolved_llm_api_key()
        if not api_key:
            raise LLMNotConfiguredError()

        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            max_retries=0,  # retries handled here
            http_client=http_client,
        )
        self.model = model or settings.llm_model
        self.timeout = timeout if timeout is not None else settings.llm_timeout_seconds
        self.retry_config = retry_config or RetryConfig(max_retries=settings.llm_max_retries)
        self.metrics = LLMMetrics()
        self._logger = logger

    async def _execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str = "LLM request",
    ) -> T:
        """
        Execute an operation with retry logic.

        Args:
            operation: Async callable to execute
            operation_name: Name for logging

        Returns:
            The operation result

        Raises:
            ExternalServiceError: On unrecoverable failure
        """
        retried = False
        max_retries = self.retry_config.max_retries

        for attempt in range(max_retries + 1):
            start_time = time.time()
            can_retry = attempt < max_retries

            try:
                result = await operation()
                duration_ms = (time.time() - start_time) * 1000
                self.metrics.record_request(success=True, retried=retried, duration_ms=duration_ms)
                return result

            except (AuthenticationError, PermissionDeniedError) as e:
                self.metrics.record_request(success=False, retried=retried)
                raise AuthRejectedError(status_code=e.status_code)

            except RateLimitError as e:
                retried = True
                if not can_retry:
                    self.metrics.record_request(success=False, retried=True)
                    raise NetworkError(
                        message="Text generation service rate limit exceeded",
                        details={"status_code": e.status_code},
                    )
                delay = self.retry_config.get_delay(attempt)
                self._logger.warning(
                    f"{operation_name} rate limited. "
                    f"Retry {attempt + 1}/{max_retries} in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

            except APITimeoutError:
                self.metrics.record_request(success=False, retried=retried)
                raise LLMTimeoutError(timeout_seconds=self.timeout)

            except APIConnectionError as e:
                retried = True
                if not can_retry:
                    self.metrics.record_request(success=False, retried=True)
                    raise NetworkError(message=f"Connection to text generation service failed: {e}")
                delay = self.retry_config.get_delay(attempt)
                self._logger.warning(
                    f"{operation_name} connection error. "
                    f"Retry {attempt + 1}/{max_retries} in {delay:.1f}s: {e}"
                )
                await asyncio.sleep(delay)

            except APIStatusError as e:
                status = e.status_code
                if status not in self.retry_config.retryable_status_codes:
                    self.metrics.record_request(success=False, retried=retried)
                    raise MalformedResponseError(
                        message=f"Text generation service returned HTTP {status}",
                        details={"status_code": status},
                    )
                retried = True
                if not can_retry:
                    self.metrics.record_request(success=False, retried=True)
                    raise NetworkError(
                        message=f"Text generation service error after retries (HTTP {status})",
                        details={"status_code": status},
                    )
                delay = self.retry_config.get_delay(attempt)
                self._logger.warning(
                    f"{operation_name} API error (status {status}). "
                    f"Retry {attempt + 1}/{max_retries} in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

            except APIError as e:
                # Response arrived but did not match the expected schema
                self.metrics.record_request(success=False, retried=retried)
                raise MalformedResponseError(message=f"Unexpected response from text generation service: {e}")

            except asyncio.TimeoutError:
                self.metrics.record_request(success=False, retried=retried)
                raise LLMTimeoutError(timeout_seconds=self.timeout)

            except ExternalServiceError:
                self.metrics.record_request(success=False, retried=retried)
                raise

            except (ValueError, TypeError, KeyError, IndexError, AttributeError) as e:
                # Undecodable body or unexpected payload shape
                self.metrics.record_request(success=False, retried=retried)
                raise MalformedResponseError(message=f"Could not read response: {e}")

            except Exception as e:
                self.metrics.record_request(success=False, retried=retried)
                self._logger.error(f"Unexpected error in {operation_name}: {e}")
                raise ExternalServiceError(message=f"Unexpected text generation error: {e}")

        # Loop always returns or raises
        raise ExternalServiceError(message=f"{operation_name} failed after all retries")

    async def generate_advice(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 300,
        temperature: float = 0.7,
    ) -> str:
        """
        Get advice text from the model.

        Args:
            system_prompt: System role message
            user_prompt: User message
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature

        Returns:
            The assistant's response text, stripped

        Raises:
            ExternalServiceError: On any failure
        """
        async def _make_request() -> str:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    max_tokens=max_tokens,
                    temperature=temperature,
                ),
                timeout=self.timeout,
            )
            if not response.choices:
                raise MalformedResponseError(message="Response contained no choices")
            content = response.choices[0].message.content
            if not content or not content.strip():
                raise MalformedResponseError(message="Empty response from text generation service")
            return content.strip()

        return await self._execute_with_retry(_make_request, "generate_advice")

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics."""
        return self.metrics.to_dict()

    async def close(self) -> None:
        await self.client.close()


# Singleton instance with thread-safe locking
_llm_client: Optional[LLMClient] = None
_llm_client_lock = threading.Lock()


def get_llm_client() -> LLMClient:
    """
    Get the LLM client singleton (thread-safe).

    Raises:
        ExternalServiceError: If the endpoint or API key is not usable
    """
    global _llm_client
    if _llm_client is None:
        with _llm_client_lock:
            if _llm_client is None:
                _llm_client = LLMClient()
    return _llm_client


def reset_llm_client() -> None:
    """Reset the LLM client singleton (for testing)."""
    global _llm_client
    with _llm_client_lock:
        _llm_client = None


def get_llm_metrics() -> Optional[Dict[str, Any]]:
    """Usage counters of the shared client, or None before its first use."""
    client = _llm_client
    if client is None:
        return None
    return client.get_metrics()


async def close_llm_client() -> None:
    """Close the shared client's HTTP pool and drop the singleton."""
    global _llm_client
    with _llm_client_lock:
        client, _llm_client = _llm_client, None
    if client is not None:
        await client.close()
