"""
Logging Sink
============
Development sink that writes messages to the log instead of sending them.
Never use in production: codes end up in the logs.
"""

import structlog

from .base import NotificationSink
from .templates import otp_message, welcome_message

logger = structlog.get_logger(__name__)


class LoggingEmailSink(NotificationSink):

    name = "logging"

    def __init__(self, otp_expiry_minutes: int = 15):
        super().__init__()
        self.otp_expiry_minutes = otp_expiry_minutes

    async def send_otp(self, email: str, code: str) -> None:
        message = otp_message(code, self.otp_expiry_minutes)
        logger.warning("Email not sent (logging sink)", to=email, subject=message.subject, body=message.text)

    async def send_welcome(self, email: str, name: str) -> None:
        message = welcome_message(name)
        logger.info("Email not sent (logging sink)", to=email, subject=message.subject)
