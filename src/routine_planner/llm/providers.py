"""
LLM provider client.

Thin wrapper over the OpenAI SDK that:
- routes requests to the configured model
- translates SDK errors into the planner's error taxonomy
- tracks request metrics

Retries are deliberately not done here: callers wrap oracle calls in
``utils.retry.retry_async`` with their own bounded policy.
"""

from typing import Any, Dict, Optional
import asyncio
import json
import logging
import time

from openai import AsyncOpenAI, APIConnectionError, APIError, APITimeoutError, RateLimitError

from ..config import get_settings
from ..exceptions import (
    LLMError,
    LLMRateLimitError,
    LLMResponseInvalidError,
    LLMServiceUnavailableError,
    LLMTimeoutError,
)


logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {408, 409, 429, 500, 502, 503, 504}


class LLMMetrics:
    """Track LLM usage metrics."""

    def __init__(self) -> None:
        self.total_requests = 0
        self.successful_requests = 0
        self.failed_requests = 0
        self.total_tokens_input = 0
        self.total_tokens_output = 0
        self._request_times: list[float] = []

    def record_request(
        self,
        success: bool,
        input_tokens: int = 0,
        output_tokens: int = 0,
        duration_ms: Optional[float] = None,
    ) -> None:
        """Record a request."""
        self.total_requests += 1
        if success:
            self.successful_requests += 1
        else:
            self.failed_requests += 1
        self.total_tokens_input += input_tokens
        self.total_tokens_output += output_tokens
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
            "total_tokens_input": self.total_tokens_input,
            "total_tokens_output": self.total_tokens_output,
            "avg_request_time_ms": round(self.avg_request_time_ms, 2),
        }


class LLMClient:
    """OpenAI chat client returning text or parsed JSON."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        """
        Initialize the LLM client.

        Args:
            api_key: OpenAI API key (defaults to settings)
            model: Model id (defaults to settings)
            client: Preconfigured SDK client, mainly for tests
        """
        settings = get_settings()
        self.model = model or settings.llm_model
        self.temperature = settings.llm_temperature
        self.timeout = settings.llm_timeout_seconds
        self.max_tokens = settings.llm_max_tokens
        self.metrics = LLMMetrics()

        if client is not None:
            self.client = client
            return

        api_key = api_key or settings.openai_api_key
        if not api_key:
            raise LLMServiceUnavailableError(
                message="OPENAI_API_KEY not configured",
                details={"configuration_missing": "openai_api_key"},
            )
        self.client = AsyncOpenAI(api_key=api_key)

    async def _request(self, system: str, user: str, json_mode: bool) -> str:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        start_time = time.time()
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(**kwargs),
                timeout=self.timeout,
            )
        except RateLimitError as e:
            self.metrics.record_request(success=False)
            retry_after = None
            headers = getattr(getattr(e, "response", None), "headers", None) or {}
            if headers.get("retry-after"):
                try:
                    retry_after = float(headers["retry-after"])
                except ValueError:
                    retry_after = None
            raise LLMRateLimitError(retry_after=retry_after) from e
        except (asyncio.TimeoutError, APITimeoutError) as e:
            self.metrics.record_request(success=False)
            raise LLMTimeoutError(timeout_seconds=self.timeout) from e
        except APIConnectionError as e:
            self.metrics.record_request(success=False)
            raise LLMServiceUnavailableError(
                message=f"Connection to LLM service failed: {e}",
            ) from e
        except APIError as e:
            self.metrics.record_request(success=False)
            status = getattr(e, "status_code", None)
            if status is None or status in RETRYABLE_STATUS_CODES:
                raise LLMServiceUnavailableError(
                    message=f"LLM API error: {e}",
                    details={"status_code": status},
                ) from e
            raise LLMError(
                message=f"LLM API error: {e}",
                details={"status_code": status},
            ) from e

        usage = getattr(response, "usage", None)
        self.metrics.record_request(
            success=True,
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            duration_ms=(time.time() - start_time) * 1000,
        )

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise LLMResponseInvalidError(message="Empty response from LLM")
        return content

    async def completion(self, system: str, user: str) -> str:
        """Get a plain text completion."""
        return await self._request(system, user, json_mode=False)

    async def completion_json(self, system: str, user: str) -> Dict[str, Any]:
        """
        Get a JSON completion using JSON mode.

        Raises:
            LLMResponseInvalidError: If the response is not a JSON object
        """
        content = await self._request(system, user, json_mode=True)
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise LLMResponseInvalidError(
                message=f"Invalid JSON response from LLM: {e}",
                details={"raw_content": content[:500]},
            ) from e
        if not isinstance(parsed, dict):
            raise LLMResponseInvalidError(
                message="LLM returned JSON that is not an object",
                details={"raw_content": content[:500]},
            )
        return parsed
