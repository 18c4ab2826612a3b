"""HTTP control requests that start and stop backend transcription."""

import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp

from ..exceptions import ControlRequestError

logger = logging.getLogger(__name__)


class ControlClient:
    """Issues the start/stop control requests for a room."""

    START_ENDPOINT = "/start_transcription_ct"
    STOP_ENDPOINT = "/stop_transcription"

    def __init__(self, base_url: str, timeout: float = 10.0):
        """Initialize control client.

        Args:
            base_url: Backend base URL
            timeout: Total timeout per request in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None

        logger.info(f"ControlClient initialized for {self.base_url}")

    def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self.session

    async def start_transcription(self, room: str) -> Any:
        """Ask the backend to initialize a transcription session for the room."""
        return await self._post_room(self.START_ENDPOINT, room)

    async def stop_transcription(self, room: str) -> Any:
        """Ask the backend to tear down the transcription session for the room."""
        return await self._post_room(self.STOP_ENDPOINT, room)

    async def _post_room(self, endpoint: str, room: str) -> Any:
        """POST {"room": room} to an endpoint and return the decoded body.

        Raises:
            ControlRequestError: On network failure, timeout or a non-2xx status
        """
        url = f"{self.base_url}{endpoint}"
        session = self._get_session()
        try:
            async with session.post(url, json={"room": room}) as response:
                text = await response.text()
                if response.status >= 300:
                    raise ControlRequestError(endpoint, f"HTTP {response.status} - {text}", response.status)
        except asyncio.TimeoutError as e:
            raise ControlRequestError(endpoint, "request timed out") from e
        except aiohttp.ClientError as e:
            raise ControlRequestError(endpoint, str(e) or type(e).__name__) from e

        try:
            body = json.loads(text)
        except ValueError:
            body = text
        logger.info(f"{endpoint} response: {body}")
        return body

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None
