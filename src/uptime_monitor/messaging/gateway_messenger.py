"""
Messaging transport backed by an HTTP WhatsApp gateway.

The gateway owns the WhatsApp session (pairing, reconnects); this client only
asks it whether it is connected and posts texts to it. Readiness is cached
from the last status poll so that is_ready() stays synchronous.
"""

import asyncio
import logging
import re
from typing import Any, Dict, Optional

import aiohttp

from uptime_monitor.contracts import Messenger
from uptime_monitor.errors import MessagingError

# Module logger
logger = logging.getLogger(__name__)

DIRECT_CHAT_SUFFIX = "@s.whatsapp.net"
GATEWAY_TIMEOUT = 10
STATUS_POLL_INTERVAL = 30


def to_direct_chat_id(phone: str) -> str:
    """
    Converts a phone number as typed by a user into a direct chat id.

    Everything but digits is dropped, e.g. '+62 812-3456' -> '628123456@s.whatsapp.net'.
    """
    return f"{re.sub(r'[^0-9]', '', phone)}{DIRECT_CHAT_SUFFIX}"


class GatewayMessenger(Messenger):
    """
    A Messenger that talks to a WhatsApp gateway over HTTP.

    Endpoints used:
        GET  {base_url}/status -> {"state": "connected", ...}
        POST {base_url}/send   <- {"chatId": "...", "text": "..."}
    """

    def __init__(self, session: aiohttp.ClientSession, base_url: str, token: str = "") -> None:
        """
        Args:
            session: The shared aiohttp session.
            base_url: Base URL of the gateway, without trailing slash.
            token: Optional bearer token sent with every request.
        """
        if not base_url:
            raise ValueError("base_url must be provided and must be not blank.")

        self._session: aiohttp.ClientSession = session
        self._base_url: str = base_url.rstrip("/")
        self._headers: Dict[str, str] = {"Authorization": f"Bearer {token}"} if token else {}
        self._ready: bool = False
        self._poll_task: Optional[asyncio.Task] = None

    def is_ready(self) -> bool:
        return self._ready

    async def start(self, poll_interval: int = STATUS_POLL_INTERVAL) -> None:
        """Polls the gateway once, then keeps polling in the background."""
        await self.refresh_status()
        if self._poll_task is None:
            self._poll_task = asyncio.create_task(self._poll_status(poll_interval))

    async def stop(self) -> None:
        """Stops the background status polling."""
        if self._poll_task is not None:
            self._poll_task.cancel()
            await asyncio.gather(self._poll_task, return_exceptions=True)
            self._poll_task = None
        self._ready = False

    async def _poll_status(self, poll_interval: int) -> None:
        while True:
            await asyncio.sleep(poll_interval)
            await self.refresh_status()

    async def refresh_status(self) -> bool:
        """
        Polls the gateway and caches whether it is connected.

        Failures are logged and leave the messenger marked as not ready.

        Returns:
            bool: The new readiness.
        """
        try:
            async with self._session.get(
                f"{self._base_url}/status",
                headers=self._headers,
                timeout=aiohttp.ClientTimeout(total=GATEWAY_TIMEOUT),
            ) as response:
                payload: Dict[str, Any] = await response.json() if response.status == 200 else {}
        except Exception as e:
            logger.warning(f"Could not reach messaging gateway: {e}")
            payload = {}

        ready = payload.get("state") == "connected"
        if ready != self._ready:
            logger.info(f"Messaging gateway is now {'ready' if ready else 'not ready'}")
        self._ready = ready
        return ready

    async def send_direct(self, recipient_id: str, text: str) -> None:
        await self._send(to_direct_chat_id(recipient_id), text)

    async def send_to_group(self, group_id: str, text: str) -> None:
        await self._send(group_id, text)

    async def _send(self, chat_id: str, text: str) -> None:
        body: Optional[str] = None
        try:
            async with self._session.post(
                f"{self._base_url}/send",
                json={"chatId": chat_id, "text": text},
                headers=self._headers,
                timeout=aiohttp.ClientTimeout(total=GATEWAY_TIMEOUT),
            ) as response:
                status = response.status
                if status >= 300:
                    body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise MessagingError(f"Messaging gateway request failed: {e}") from e

        if body is not None:
            if status == 409:
                # The gateway lost its session; stop sending until the next poll
                self._ready = False
            raise MessagingError(f"Messaging gateway answered {status}: {body}", status_code=status)

        logger.debug(f"Delivered message to {chat_id}")
