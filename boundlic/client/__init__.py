from boundlic.client.client import AdminClient, LicenseClient, default_machine_id

__all__ = ["AdminClient", "LicenseClient", "default_machine_id"]
