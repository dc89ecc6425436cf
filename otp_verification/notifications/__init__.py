"""
Notification Sinks
==================
Email delivery for OTP codes and welcome messages.
"""

from .base import NotificationSink, DeliveryError
from .http_email import HttpEmailSink
from .logging_sink import LoggingEmailSink
from .templates import EmailMessage, otp_message, welcome_message

__all__ = [
    "NotificationSink",
    "DeliveryError",
    "HttpEmailSink",
    "LoggingEmailSink",
    "EmailMessage",
    "otp_message",
    "welcome_message",
]
