import asyncio
import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from src.core.config import settings
from src.core.exceptions import AnalysisServiceError

logger = logging.getLogger(__name__)


class AnalysisClient:
    """
    Thin wrapper around an OpenAI-compatible chat completions endpoint.

    Every failure (missing key, timeout, HTTP/API error, empty choice) is
    raised as AnalysisServiceError so callers have one thing to catch.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key or settings.openai_api_key
        self.api_base = api_base or settings.openai_api_base
        self.model = model or settings.llm_model
        self.timeout = timeout or settings.llm_request_timeout
        self._client: Optional[AsyncOpenAI] = None
        self.total_tokens = 0

        if not self.api_key:
            logger.warning("OPENAI_API_KEY not set. Analysis calls will fail and fall back to defaults.")

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.api_base, max_retries=0)
        return self._client

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "You are a helpful assistant.",
        temperature: float = 0.1,
        max_tokens: int = 500,
    ) -> str:
        """Return the raw text of the first completion choice."""
        if not self.api_key:
            raise AnalysisServiceError("Analysis service API key not configured")

        try:
            response = await asyncio.wait_for(
                self._get_client().chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": prompt},
                    ],
                    temperature=temperature,
                    max_tokens=max_tokens,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise AnalysisServiceError(f"Analysis call timed out after {self.timeout}s") from e
        except OpenAIError as e:
            logger.error(f"Analysis service error: {e}")
            raise AnalysisServiceError(f"Analysis API failed: {e}") from e

        if response.usage is not None:
            self.total_tokens += response.usage.total_tokens or 0
        if not response.choices:
            raise AnalysisServiceError("Analysis API returned no choices")
        return response.choices[0].message.content or ""


# Singleton
ai_client = AnalysisClient()
