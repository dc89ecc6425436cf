"""
OTP Code Generator
==================
Fixed-length numeric codes from a cryptographically secure source.
"""

import re
import secrets
from random import Random
from typing import Optional

DIGITS = "0123456789"


class CodeGenerator:
    """
    Generates and validates numeric one-time codes.

    Holds nothing but the RNG handle, so one instance can be shared by
    every request.
    """

    def __init__(self, length: int = 6, rng: Optional[Random] = None):
        if length < 1:
            raise ValueError("Code length must be positive")
        self.length = length
        self._rng = rng or secrets.SystemRandom()
        self._pattern = re.compile(f"[0-9]{{{length}}}")

    def generate(self) -> str:
        """
        Generate a new code.

        Each digit is drawn independently and uniformly.

        Returns:
            Code of exactly ``length`` ASCII digits
        """
        return "".join(self._rng.choice(DIGITS) for _ in range(self.length))

    def is_well_formed(self, code) -> bool:
        """
        Check the shape of a user-supplied code.

        Args:
            code: Candidate code

        Returns:
            True if code is exactly ``length`` ASCII digits
        """
        if not isinstance(code, str):
            return False
        return self._pattern.fullmatch(code) is not None
