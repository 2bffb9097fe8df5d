"""ComfyDeploy job submitter with bounded timeout and fixed-backoff retries."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from comfyrun.config import settings
from comfyrun.errors import (
    InvalidResponse,
    RetriesExhausted,
    RetryableProviderTimeout,
    Unauthenticated,
)
from comfyrun.services.prompt_optimizer import PromptOptimizer
from comfyrun.services.run_store import RunStore

logger = logging.getLogger(__name__)

# Fixed deployment inputs; the workflow expects string values
BATCH = "1"
WIDTH = "832"
HEIGHT = "1216"


class SubmitterConfig(BaseModel):
    """Explicit configuration for the job submitter."""

    api_key: str
    deployment_id: str
    api_url: str = "https://www.comfydeploy.com/api/run"
    webhook_url: str = ""
    timeout_seconds: float = 30.0
    max_retries: int = 3
    backoff_seconds: float = 5.0

    @classmethod
    def from_settings(cls, webhook_url: str = "") -> "SubmitterConfig":
        """Build a config from the global application settings."""
        return cls(
            api_key=settings.COMFY_DEPLOY_API_KEY,
            deployment_id=settings.COMFY_DEPLOY_WF_DEPLOYMENT_ID,
            api_url=settings.COMFY_DEPLOY_API_URL,
            webhook_url=webhook_url,
            timeout_seconds=settings.SUBMIT_TIMEOUT_SECONDS,
            max_retries=settings.SUBMIT_MAX_RETRIES,
            backoff_seconds=settings.SUBMIT_BACKOFF_SECONDS,
        )


def build_inputs(prompt: str) -> Dict[str, str]:
    """Build the deployment input record for a prompt."""
    return {
        "input_text": prompt,
        "batch": BATCH,
        "width": WIDTH,
        "height": HEIGHT,
        "id": "",
    }


class JobSubmitter:
    """Submits image generation jobs and records accepted runs."""

    def __init__(
        self,
        config: SubmitterConfig,
        store: RunStore,
        optimizer: PromptOptimizer,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the submitter."""
        self.config = config
        self.store = store
        self.optimizer = optimizer
        self.client = client
        self.sleep = sleep

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    async def submit(self, prompt: str, user_id: Optional[str]) -> str:
        """
        Optimize a prompt, submit it to ComfyDeploy and persist the run.

        Args:
            prompt: User prompt
            user_id: Authenticated principal

        Returns:
            Provider run id

        Raises:
            Unauthenticated: If no principal is supplied
            InvalidResponse: On a non-504 error status or a malformed response
            RetriesExhausted: If every attempt hit a 504 or the local timeout
        """
        if not user_id:
            logger.error("Submission rejected: user not authenticated")
            raise Unauthenticated("User not found")

        logger.info(f"Starting image generation for user {user_id}")

        effective_prompt = await self.optimizer.optimize(prompt)
        inputs = build_inputs(effective_prompt)
        payload = {
            "deployment_id": self.config.deployment_id,
            "inputs": inputs,
            "webhook": self.config.webhook_url,
        }

        if self.client is not None:
            run_id = await self._submit_with_retries(self.client, payload)
        else:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                run_id = await self._submit_with_retries(client, payload)

        # Session commit is blocking; keep it off the event loop
        await asyncio.to_thread(self.store.create, run_id, user_id, inputs)
        logger.info(f"Image generation accepted with run_id: {run_id}")
        return run_id

    async def _submit_with_retries(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> str:
        max_attempts = max(1, self.config.max_retries)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_fixed(self.config.backoff_seconds),
            retry=retry_if_exception_type(RetryableProviderTimeout),
            sleep=self.sleep,
            before_sleep=self._log_backoff,
        )

        run_id = ""
        try:
            async for attempt in retrying:
                with attempt:
                    run_id = await self._attempt(client, payload, attempt.retry_state.attempt_number)
        except RetryError:
            logger.warning(f"Retries exhausted after {max_attempts} attempts, image not generated")
            raise RetriesExhausted(max_attempts)

        return run_id

    async def _attempt(self, client: httpx.AsyncClient, payload: Dict[str, Any], attempt_number: int) -> str:
        """Run one submission attempt bounded by the configured timeout."""
        try:
            response = await asyncio.wait_for(
                client.post(self.config.api_url, headers=self._build_headers(), json=payload),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"Request cancelled by timeout on attempt {attempt_number}")
            raise RetryableProviderTimeout(f"Timed out after {self.config.timeout_seconds}s")
        except httpx.TransportError as e:
            logger.error(f"Error calling ComfyDeploy on attempt {attempt_number}: {e}")
            raise RetryableProviderTimeout(str(e))

        if response.status_code == 504:
            logger.warning(f"504 Gateway Timeout on attempt {attempt_number}")
            raise RetryableProviderTimeout("504 Gateway Timeout")

        try:
            result = response.json()
        except ValueError:
            logger.error(f"ComfyDeploy returned a non-JSON body with status {response.status_code}")
            raise InvalidResponse("Image generation failed: Invalid response", response.status_code)

        logger.info(f"ComfyDeploy response ({response.status_code}): {result}")

        run_id = result.get("run_id") if isinstance(result, dict) else None
        if not response.is_success or not run_id:
            logger.error("No valid generation result or unexpected response status")
            raise InvalidResponse("Image generation failed: Invalid response", response.status_code)

        return str(run_id)

    def _log_backoff(self, retry_state: RetryCallState) -> None:
        logger.info(
            f"Waiting {self.config.backoff_seconds}s before retry "
            f"{retry_state.attempt_number + 1}/{max(1, self.config.max_retries)}..."
        )
