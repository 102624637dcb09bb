"""
Input validation for scam scripts entering the engine.
"""

import re
from typing import Any

from app.core.logging import get_logger

logger = get_logger(__name__)

# Control characters other than tab and newlines
_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]')


class ScriptValidationError(ValueError):
    """Raised when a script cannot be analyzed."""


def validate_script(script: Any, max_length: int = 5000) -> str:
    """
    Validate and normalise a raw scam script.

    Args:
        script: Raw script supplied by the caller
        max_length: Maximum accepted length in characters

    Returns:
        str: Script with control characters removed and outer whitespace stripped

    Raises:
        ScriptValidationError: If the script is not text, empty, or too long
    """
    if not isinstance(script, str):
        raise ScriptValidationError(
            f"Script must be a string, got {type(script).__name__}"
        )

    cleaned = _CONTROL_CHARS.sub('', script).strip()

    if not cleaned:
        raise ScriptValidationError("Script must not be empty")

    if len(cleaned) > max_length:
        logger.warning(
            "Rejected over-long script",
            extra={"script_length": len(cleaned), "max_length": max_length}
        )
        raise ScriptValidationError(f"Script too long: {len(cleaned)} > {max_length}")

    return cleaned
