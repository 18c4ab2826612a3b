"""Single ordered event queue delivering messages through pubsub.pub."""

import asyncio
import contextlib
import functools
import logging
from typing import Any, Callable, Optional

from pubsub import pub

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Serializes every event of one client onto the event loop.

    Producers post messages from the loop (``post``) or from other threads
    (``post_threadsafe``). One consumer task delivers them in post order with
    ``pub.sendMessage``, so listeners never run concurrently with each other.
    Topics are namespaced per client so several clients can share a process.
    """

    def __init__(self, topic_root: str):
        """Initialize dispatcher.

        Args:
            topic_root: Topic prefix for this client, e.g. "room_ab12cd34"
        """
        self.topic_root = topic_root
        self.queue: asyncio.Queue = asyncio.Queue()
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.consumer_task: Optional[asyncio.Task] = None
        logger.info(f"EventDispatcher initialized with topic root: {topic_root}")

    def topic(self, name: str) -> str:
        return f"{self.topic_root}.{name}"

    def subscribe(self, listener: Callable[..., Any], name: str) -> None:
        pub.subscribe(listener, self.topic(name))

    def unsubscribe(self, listener: Callable[..., Any], name: str) -> None:
        try:
            pub.unsubscribe(listener, self.topic(name))
        except Exception as e:
            logger.warning(f"Error during unsubscribe from {name}: {e}")

    async def start(self) -> None:
        """Start the consumer task on the running loop."""
        if self.consumer_task and not self.consumer_task.done():
            return
        self.loop = asyncio.get_running_loop()
        self.consumer_task = asyncio.create_task(self._consume())
        self.consumer_task.set_name(f"dispatcher-{self.topic_root}")

    async def stop(self) -> None:
        """Deliver everything already queued, then stop the consumer."""
        if not self.consumer_task:
            return
        if not self.consumer_task.done():
            await self.queue.join()
        self.consumer_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self.consumer_task
        self.consumer_task = None

    async def join(self) -> None:
        """Wait until every posted message has been delivered."""
        if self.consumer_task is None:
            return
        await self.queue.join()

    def post(self, name: str, **kwargs: Any) -> None:
        """Queue a message. Must be called from the event loop thread."""
        self.queue.put_nowait((name, kwargs))

    def post_threadsafe(self, name: str, **kwargs: Any) -> None:
        """Queue a message from a thread other than the event loop's."""
        if self.loop is None:
            raise RuntimeError("EventDispatcher is not started")
        self.loop.call_soon_threadsafe(functools.partial(self.post, name, **kwargs))

    def deliver(self, name: str, **kwargs: Any) -> None:
        """Deliver a message immediately, bypassing the queue."""
        pub.sendMessage(self.topic(name), **kwargs)

    def notify(self, name: str, **kwargs: Any) -> None:
        """Deliver a message immediately; listener exceptions are logged, not raised."""
        try:
            self.deliver(name, **kwargs)
        except Exception as e:
            logger.error(f"Unhandled exception delivering {name}: {e}", exc_info=True)

    async def _consume(self) -> None:
        while True:
            name, kwargs = await self.queue.get()
            try:
                self.notify(name, **kwargs)
            finally:
                self.queue.task_done()
