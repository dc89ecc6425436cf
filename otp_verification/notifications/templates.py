"""
Email Templates
===============
Subjects and bodies for outgoing messages.
"""

from dataclasses import dataclass
from html import escape


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    text: str
    html: str


def otp_message(code: str, expiry_minutes: int) -> EmailMessage:
    text = (
        f"Your OTP is: {code}\n\n"
        f"This OTP will expire in {expiry_minutes} minutes.\n\n"
        "If you did not request this OTP, please ignore this email."
    )
    html = f"""
    <div style="font-family:Arial,sans-serif">
      <h2>Email verification</h2>
      <p>Your OTP is:</p>
      <div style="font-size:28px;font-weight:700;letter-spacing:2px">{escape(code)}</div>
      <p>This OTP will expire in {expiry_minutes} minutes.</p>
      <p>If you did not request this OTP, please ignore this email.</p>
    </div>
    """
    return EmailMessage(subject="Your OTP for Email Verification", text=text, html=html)


def welcome_message(name: str) -> EmailMessage:
    text = (
        f"Hello {name},\n\n"
        "Your email has been successfully verified.\n\n"
        "You can now access all features of our application.\n\n"
        "Best regards,\nOTP Verification Team"
    )
    html = f"""
    <div style="font-family:Arial,sans-serif">
      <p>Hello {escape(name)},</p>
      <p>Your email has been successfully verified.</p>
      <p>You can now access all features of our application.</p>
    </div>
    """
    return EmailMessage(subject="Welcome to OTP Email Verification", text=text, html=html)
