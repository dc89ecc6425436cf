"""
OTP Generation and Records
==========================
Code generation, format validation and the OTP record model.
"""

from .models import OtpConfig, OtpRecord, OtpState
from .generator import CodeGenerator

__all__ = [
    # Models
    "OtpConfig",
    "OtpRecord",
    "OtpState",
    # Generator
    "CodeGenerator",
]
