"""Resource identifier generation and validation.

Identifiers are BSON ObjectIds rendered as 24 lowercase hex characters:
a 4-byte timestamp, 5 random bytes and a 3-byte counter, so they sort in
creation order.
"""

import re

from bson import ObjectId

_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")


def generate_id() -> str:
    """Return a fresh, globally unique identifier."""
    return str(ObjectId())


def is_valid_id(value: object) -> bool:
    """Check that value is a canonical identifier string."""
    return isinstance(value, str) and _ID_PATTERN.fullmatch(value) is not None
