"""
License key generator.
"""

from __future__ import annotations

import logging
import re
import secrets
import string

from boundlic.common.config import Config

logger = logging.getLogger(__name__)

KEY_ALPHABET = string.ascii_uppercase + string.digits
SEGMENT_COUNT = 4
SEGMENT_LENGTH = 4


class KeyGenerator:
    """Produces ``PREFIX-XXXX-XXXX-XXXX-XXXX`` keys.

    Stateless: uniqueness is enforced by the database, not here.
    """

    def __init__(self, prefix: str | None = None):
        if prefix is None:
            prefix = Config().KEY_PREFIX
        self.prefix = prefix.upper()
        self.pattern = re.compile(
            rf"^{re.escape(self.prefix)}"
            rf"(-[A-Z0-9]{{{SEGMENT_LENGTH}}}){{{SEGMENT_COUNT}}}$"
        )

    def generate(self) -> str:
        """Generate a new random license key."""
        segments = [
            "".join(secrets.choice(KEY_ALPHABET) for _ in range(SEGMENT_LENGTH))
            for _ in range(SEGMENT_COUNT)
        ]
        return "-".join([self.prefix, *segments])

    def is_well_formed(self, license_key: str) -> bool:
        """Check a candidate key against the key shape (case-insensitive)."""
        return bool(self.pattern.match(normalize_key(license_key)))


def normalize_key(license_key: str) -> str:
    """Keys are case-insensitive and tolerate surrounding whitespace."""
    return license_key.strip().upper()
