"""Deliver command replies to the platform's callback URL.

Each reply is posted once. There is no retry: by the time a reply is
sent the original webhook request has already been acknowledged, so
a failed delivery can only be logged.
"""

import asyncio
from typing import Optional

import aiohttp
import structlog

from .exceptions import DeliveryError
from .models import CommandReply

logger = structlog.get_logger("slashbot.responder")

DEFAULT_REPLY_TIMEOUT = 10.0


class Responder:
    """Posts CommandReply payloads as JSON over a shared client session.

    Args:
        session: aiohttp session owned by the caller.
        timeout: Total seconds allowed for one delivery attempt.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: float = DEFAULT_REPLY_TIMEOUT,
    ):
        self.session = session
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def respond(self, response_url: str, reply: CommandReply) -> None:
        """POST ``reply`` to ``response_url`` and discard the response body.

        Raises:
            DeliveryError: On connection failure, timeout, or a non-2xx
                status from the callback endpoint.
        """
        if not response_url:
            raise DeliveryError("Request has no response_url")

        status: Optional[int] = None
        try:
            async with self.session.post(
                response_url, json=reply.to_payload(), timeout=self.timeout
            ) as resp:
                status = resp.status
                await resp.read()
        except asyncio.TimeoutError as e:
            raise DeliveryError("Timed out delivering reply") from e
        except aiohttp.ClientError as e:
            raise DeliveryError(f"Could not deliver reply: {e}") from e

        if not 200 <= status < 300:
            raise DeliveryError(
                f"Callback endpoint returned HTTP {status}", status=status
            )
        logger.debug(
            "reply_delivered",
            status=status,
            response_type=reply.response_type.value,
        )
