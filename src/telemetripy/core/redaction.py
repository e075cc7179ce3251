"""Serialization and secret redaction for log payloads.

Redaction is textual: it runs over the serialized JSON and rewrites the
value of every flat ``"password"``, ``"apiKey"`` or ``"token"`` string
field. Escaped or nested quotes inside a value are not handled.
"""

import json
import re
from typing import Any

MASK = "*****"
UNSERIALIZABLE = "[Unserializable object]"

SENSITIVE_KEYS = ("password", "apiKey", "token")

_SENSITIVE_PATTERN = re.compile(
    r'"(' + "|".join(SENSITIVE_KEYS) + r')":\s*"[^"]*"'
)


def stringify(obj: Any) -> str:
    """Serialize an object to compact JSON.

    Args:
        obj: Any JSON-serializable value.

    Returns:
        The JSON text, or UNSERIALIZABLE if the value contains
        unserializable members or references itself.
    """
    try:
        return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError, RecursionError):
        return UNSERIALIZABLE


def redact(text: str) -> str:
    """Mask the values of sensitive keys in serialized JSON.

    Args:
        text: JSON text as produced by stringify().

    Returns:
        The text with each sensitive string value replaced by MASK.
    """
    return _SENSITIVE_PATTERN.sub(lambda m: f'"{m.group(1)}":"{MASK}"', text)


def sanitize(obj: Any) -> str:
    """Serialize an object and redact its sensitive values."""
    return redact(stringify(obj))
