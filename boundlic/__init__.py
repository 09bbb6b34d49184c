# Machine-bound license keys

from boundlic.client.client import AdminClient, LicenseClient
from boundlic.common.decorators import requires_active_license

__all__ = [
    "AdminClient",
    "LicenseClient",
    "requires_active_license",
]
