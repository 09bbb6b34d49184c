"""License decorators for function protection.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any

from boundlic.common.exceptions import ForbiddenError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


def requires_active_license(
    license_client: Any | Callable[[], Any] | str,
    error_message: str = "License is not active",
    *,
    raise_exception: bool = True,
) -> Callable:
    """Decorator that ensures function runs only when license is active.

    Args:
        license_client: LicenseClient instance, a callable returning one, or
            the name of an attribute holding one on ``self``
        error_message: Message to show when license is not active
        raise_exception: Whether to raise ``ForbiddenError`` or return None

    Returns:
        Decorated function that only executes when license is active
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if isinstance(license_client, str):
                if not args:
                    msg = f"Cannot get client attribute '{license_client}' without self"
                    raise ValueError(msg)
                client = getattr(args[0], license_client)
            elif callable(license_client) and not hasattr(
                license_client, "is_license_active"
            ):
                client = license_client()
            else:
                client = license_client

            if not client.is_license_active():
                if raise_exception:
                    raise ForbiddenError(error_message)
                logger.warning("License check failed: %s", error_message)
                return None
            return func(*args, **kwargs)

        return wrapper

    return decorator
