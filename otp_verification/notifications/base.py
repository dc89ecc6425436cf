"""
Notification Sink
=================
Base class for email delivery of codes and welcome messages.
"""

from abc import ABC, abstractmethod
from typing import Optional
import structlog

logger = structlog.get_logger(__name__)


class DeliveryError(Exception):
    """Raised when a message could not be delivered."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotificationSink(ABC):
    """
    Abstract base class for notification sinks.

    Implementations raise DeliveryError when a message cannot be handed off.
    """

    name: str = "base"

    def __init__(self):
        self._is_initialized = False

    async def initialize(self) -> None:
        """Initialize the sink (e.g., create HTTP clients)."""
        self._is_initialized = True
        logger.info("Notification sink initialized", sink=self.name)

    async def close(self) -> None:
        """Clean up resources (e.g., close HTTP clients)."""
        self._is_initialized = False
        logger.info("Notification sink closed", sink=self.name)

    @abstractmethod
    async def send_otp(self, email: str, code: str) -> None:
        """
        Deliver a one-time code.

        Args:
            email: Recipient address
            code: The code to deliver

        Raises:
            DeliveryError: If the message was not accepted
        """
        pass

    @abstractmethod
    async def send_welcome(self, email: str, name: str) -> None:
        """Send the post-verification welcome message."""
        pass
