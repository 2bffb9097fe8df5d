"""Client-side status poller for submitted runs."""

import asyncio
import inspect
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

import httpx

from comfyrun.config import settings
from comfyrun.schemas.run import RunStatus

logger = logging.getLogger(__name__)


class PollHandle:
    """Handle on a background poll of one run."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        self.stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    def cancel(self) -> None:
        """Stop polling. No request is issued after this returns."""
        self.stop_event.set()
        if self._task is not None:
            self._task.cancel()

    async def stop(self) -> None:
        """Cancel and wait until the poll task has released its resources."""
        self.cancel()
        await self.wait()

    async def wait(self) -> None:
        """Wait for the poll task to finish, by completion or cancellation."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()


class StatusPoller:
    """Polls the status endpoint at a fixed interval until an image URL appears."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        interval_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the poller.

        Args:
            client: HTTP client whose base_url points at the service
            interval_seconds: Delay between status queries
            sleep: Awaitable sleep, replaceable in tests
        """
        self.client = client
        self.interval_seconds = (
            settings.STATUS_POLL_INTERVAL if interval_seconds is None else interval_seconds
        )
        self.sleep = sleep

    async def fetch(self, run_id: str) -> RunStatus:
        """
        Issue a single status query.

        Only the image URL field decides completion; a missing run id or
        status is filled in from the observed run.
        """
        response = await self.client.get(f"/api/status/{run_id}")
        response.raise_for_status()

        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"Unexpected status body: {body!r}")

        image_url = body.get("image_url") or None
        return RunStatus(
            run_id=body.get("run_id") or run_id,
            status=body.get("status") or ("complete" if image_url else "pending"),
            image_url=image_url,
        )

    async def observe(
        self,
        run_id: str,
        interval_seconds: Optional[float] = None,
        stop_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[RunStatus]:
        """
        Yield run snapshots, one per tick, until one carries an image URL.

        A failed tick is skipped and polling continues on the next interval.
        Each call starts a fresh sequence.

        Args:
            run_id: Run to observe
            interval_seconds: Override for the poll interval
            stop_event: Optional event that ends the sequence when set
        """
        interval = self.interval_seconds if interval_seconds is None else interval_seconds

        while True:
            await self.sleep(interval)
            if stop_event is not None and stop_event.is_set():
                logger.debug(f"Polling for run {run_id} stopped")
                return

            try:
                snapshot = await self.fetch(run_id)
            except (httpx.HTTPError, ValueError, TypeError) as e:
                logger.debug(f"Status query for run {run_id} failed, skipping tick: {e}")
                continue

            yield snapshot

            if snapshot.image_url:
                logger.info(f"Run {run_id} complete: {snapshot.image_url}")
                return

    def watch(
        self,
        run_id: str,
        on_complete: Callable[[RunStatus], Any],
        interval_seconds: Optional[float] = None,
    ) -> PollHandle:
        """
        Poll a run in a background task and call on_complete exactly once.

        Args:
            run_id: Run to observe
            on_complete: Callback (sync or async) receiving the completed snapshot
            interval_seconds: Override for the poll interval

        Returns:
            PollHandle used to cancel the poll
        """
        handle = PollHandle(run_id)
        handle._task = asyncio.get_running_loop().create_task(
            self._run(handle, on_complete, interval_seconds)
        )
        return handle

    async def _run(
        self,
        handle: PollHandle,
        on_complete: Callable[[RunStatus], Any],
        interval_seconds: Optional[float],
    ) -> None:
        async for snapshot in self.observe(handle.run_id, interval_seconds, handle.stop_event):
            if not snapshot.image_url:
                continue
            try:
                result = on_complete(snapshot)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Completion callback for run {handle.run_id} failed: {e}", exc_info=True)
