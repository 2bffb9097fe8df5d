"""Prompt optimizer client backed by an external text-transform webhook."""

import logging
from typing import Optional

import httpx

from comfyrun.config import settings

logger = logging.getLogger(__name__)


class PromptOptimizer:
    """Rewrites prompts through the optimizer service, falling back to identity."""

    def __init__(
        self,
        url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: Optional[float] = None,
    ):
        """Initialize the optimizer client."""
        self.url = settings.PROMPT_OPTIMIZER_URL if url is None else url
        self.client = client
        self.timeout_seconds = (
            settings.OPTIMIZER_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )

    async def optimize(self, prompt: str) -> str:
        """
        Optimize a prompt with a single call to the optimizer service.

        Any failure (error status, network error, unexpected body) returns
        the original prompt. This method never raises.

        Args:
            prompt: User prompt

        Returns:
            Optimized prompt, or the original prompt on failure
        """
        if not self.url:
            return prompt

        logger.info("Optimizing prompt with assistant...")

        try:
            response = await self._post({"prompt": prompt})
        except Exception as e:
            logger.error(f"Error optimizing the prompt: {e}")
            return prompt

        if not response.is_success:
            logger.error(f"Failed to optimize prompt: {response.status_code} {response.reason_phrase}")
            return prompt

        try:
            result = response.json()
        except ValueError:
            logger.warning("Optimizer returned a non-JSON body, using original prompt")
            return prompt

        optimized = _extract_content(result)
        if not optimized:
            logger.warning("Content not found in optimizer response, using original prompt")
            return prompt

        logger.info(f"Optimized prompt: {optimized}")
        return optimized

    async def _post(self, payload) -> httpx.Response:
        if self.client is not None:
            return await self.client.post(self.url, json=payload, timeout=self.timeout_seconds)
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.post(self.url, json=payload)


def _extract_content(result) -> Optional[str]:
    """Read choices[0].content from an optimizer response."""
    if not isinstance(result, dict):
        return None
    choices = result.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    content = first.get("content")
    if not isinstance(content, str) or not content.strip():
        return None
    return content
