"""
Session Issuer
==============
Opaque signed bearer credentials bound to an identity and an expiry.
"""

from .token import SessionIssuer, SessionClaims, PURPOSE_ACCESS, PURPOSE_OTP

__all__ = [
    "SessionIssuer",
    "SessionClaims",
    "PURPOSE_ACCESS",
    "PURPOSE_OTP",
]
