"""Fire-and-forget telemetry for widget events."""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from assistant_orb.clients.api_client import AssistantApiClient
from assistant_orb.schemas.chat import TrackedEvent


logger = logging.getLogger(__name__)


class EventTracker:
    """Posts widget events to the backend without blocking the caller.

    ``track`` schedules the request on the running loop and returns at once.
    A failed post is logged and dropped; tracking never breaks the widget.
    """

    def __init__(self, api: AssistantApiClient, enabled: bool = True, source: str = "web"):
        self.api = api
        self.enabled = enabled
        self.source = source
        self._tasks: set[asyncio.Task] = set()

    def track(self, event_name: str, properties: dict[str, Any] | None = None) -> asyncio.Task | None:
        if not self.enabled:
            return None

        event = TrackedEvent(
            event_name=event_name,
            event_properties={
                **(properties or {}),
                "timestamp": datetime.now(UTC).isoformat(),
            },
            source=self.source,
            user_agent=self.api.user_agent,
        )
        task = asyncio.get_running_loop().create_task(self._post(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _post(self, event: TrackedEvent):
        try:
            await self.api.track_event(event)
            logger.debug(f"Tracked event {event.event_name}")
        except Exception as e:
            logger.error(f"Failed to track event {event.event_name}: {str(e)}")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self):
        """Wait for every scheduled post to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))
