"""
Access policy for administrative operations.
"""

from __future__ import annotations

import hmac
import logging

from boundlic.common.exceptions import UnauthorizedError
from boundlic.common.messages import Messages

logger = logging.getLogger(__name__)


class SharedSecretPolicy:
    """Grants administrative capability to holders of one shared secret.

    An unset secret denies every administrative call.
    """

    def __init__(self, admin_key: str | None, messages: Messages | None = None):
        self._admin_key = admin_key or None
        self.messages = messages or Messages()
        if self._admin_key is None:
            logger.warning("No admin key configured; administrative API disabled")

    def authorize_admin(self, credential: str | None) -> None:
        """Raise ``UnauthorizedError`` unless ``credential`` matches the secret."""
        if (
            self._admin_key is None
            or credential is None
            or not hmac.compare_digest(
                credential.encode("utf-8"), self._admin_key.encode("utf-8")
            )
        ):
            logger.warning("Rejected administrative request: bad admin key")
            raise UnauthorizedError(self.messages.get("unauthorized"))
