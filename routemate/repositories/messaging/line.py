import asyncio
import base64
import hashlib
import hmac
import logging
from typing import Any, Dict, Optional

import aiohttp

from routemate.core.exceptions import NotificationError

logger = logging.getLogger(__name__)

# LINE rejects text messages longer than this
MAX_TEXT_LENGTH = 5000


def verify_signature(channel_secret: str, body: bytes, signature: Optional[str]) -> bool:
    """Check an ``X-Line-Signature`` header against the raw webhook body."""
    if not signature:
        return False
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("utf-8")
    return hmac.compare_digest(expected, signature)


class LineMessagingRepository:
    """Repository for pushing text messages through the LINE Messaging API."""

    def __init__(self, access_token: str, timeout: float = 10.0):
        self.access_token = access_token
        self.base_url = "https://api.line.me/v2/bot"
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> None:
        """Make authenticated request to the LINE API."""
        url = f"{self.base_url}/{endpoint}"
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(url, headers=headers, json=payload) as response:
                if response.status != 200:
                    body = await response.text()
                    logger.warning(f"LINE API {endpoint} returned {response.status}: {body}")
                    raise NotificationError(f"LINE API responded with status {response.status}")

    async def push_text(self, to: str, text: str) -> None:
        """Push a single text message to a user or group."""
        if len(text) > MAX_TEXT_LENGTH:
            logger.info(f"Truncating LINE message from {len(text)} to {MAX_TEXT_LENGTH} characters")
            text = text[:MAX_TEXT_LENGTH]

        payload = {"to": to, "messages": [{"type": "text", "text": text}]}
        logger.info(f"Pushing LINE message to '{to}'")
        try:
            await self._post("message/push", payload)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Transport error pushing LINE message to '{to}': {e}", exc_info=True)
            raise NotificationError(f"Could not reach LINE API: {e}") from e
