"""Verification code extraction from email bodies."""

import re
from typing import List, Optional, Pattern

from loguru import logger

from ...constants import VERIFICATION_CODE_PATTERN
from ...utils.masking import mask_code


class VerificationCodeExtractor:
    """Regex-based verification code extractor.

    Patterns are tried in order; the first capture group of the first match
    is the code. The default pattern captures the digits wrapped in an HTML
    ``<span>`` element.
    """

    DEFAULT_PATTERNS: List[str] = [VERIFICATION_CODE_PATTERN]

    def __init__(self, custom_patterns: Optional[List[str]] = None):
        patterns = custom_patterns or self.DEFAULT_PATTERNS
        self._patterns: List[Pattern] = [re.compile(p, re.IGNORECASE | re.DOTALL) for p in patterns]

    def extract_code(self, body: str) -> Optional[str]:
        """
        Extract the verification code from an email body.

        Args:
            body: Raw or HTML email body

        Returns:
            The code as a string of digits, or None if no pattern matches
        """
        if not body:
            return None

        for pattern in self._patterns:
            match = pattern.search(body)
            if match:
                code = match.group(1)
                logger.debug(f"Verification code extracted: {mask_code(code)}")
                return code

        logger.warning("No verification code found in email body")
        return None
