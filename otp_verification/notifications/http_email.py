"""
HTTP Email Sink
===============
Delivers messages through a transactional email JSON API (Brevo-compatible).
"""

import logging
from typing import Any, Dict, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .base import DeliveryError, NotificationSink
from .templates import EmailMessage, otp_message, welcome_message

logger = structlog.get_logger(__name__)
_retry_logger = logging.getLogger(__name__)


class HttpEmailSink(NotificationSink):
    """
    Email sink backed by an HTTP transactional email API.

    Transport errors (connection refused, timeouts) are retried with
    exponential backoff. Any non-2xx response fails immediately.
    """

    name = "http_email"

    def __init__(
        self,
        api_url: str,
        api_key: str,
        sender_email: str,
        sender_name: str = "OTP Verification",
        otp_expiry_minutes: int = 15,
        timeout: float = 15.0,
        max_attempts: int = 3,
        backoff_multiplier: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        if not api_key:
            raise ValueError("Email API key is required")
        self.api_url = api_url
        self.api_key = api_key
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.otp_expiry_minutes = otp_expiry_minutes
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff_multiplier = backoff_multiplier
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        """Create HTTP client with auth."""
        self._client = httpx.AsyncClient(
            headers={
                "accept": "application/json",
                "api-key": self.api_key,
                "content-type": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )
        await super().initialize()

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        await super().close()

    def _payload(self, to_email: str, message: EmailMessage) -> Dict[str, Any]:
        return {
            "sender": {"email": self.sender_email, "name": self.sender_name},
            "to": [{"email": to_email}],
            "subject": message.subject,
            "htmlContent": message.html,
            "textContent": message.text,
        }

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_multiplier, max=10),
            before_sleep=before_sleep_log(_retry_logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                return await self._client.post(self.api_url, json=payload)

    async def _send(self, to_email: str, message: EmailMessage, kind: str) -> None:
        if not self._client:
            raise RuntimeError("Email sink not initialized")

        try:
            response = await self._post(self._payload(to_email, message))
        except httpx.HTTPError as e:
            logger.error("Email send failed", kind=kind, error=str(e))
            raise DeliveryError(f"Email transport failed: {e}") from e

        if response.status_code >= 300:
            logger.error(
                "Email provider rejected message",
                kind=kind,
                status_code=response.status_code,
            )
            raise DeliveryError(
                f"Email provider returned {response.status_code}",
                status_code=response.status_code,
            )

        logger.info("Email sent", kind=kind)

    async def send_otp(self, email: str, code: str) -> None:
        await self._send(email, otp_message(code, self.otp_expiry_minutes), "otp")

    async def send_welcome(self, email: str, name: str) -> None:
        await self._send(email, welcome_message(name), "welcome")
