"""
Interfaces and protocols for dependency injection.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date

    from boundlic.common.models import (
        ActivationLogInfo,
        ActivationResult,
        AuditAction,
        LicenseInfo,
        VerifyResult,
    )


class IKeyGenerator(Protocol):
    """Protocol for license key generation."""

    def generate(self) -> str: ...

    def is_well_formed(self, license_key: str) -> bool: ...


class IAccessPolicy(Protocol):
    """Protocol for the administrative capability check."""

    def authorize_admin(self, credential: str | None) -> None: ...


class IAuditLog(Protocol):
    """Protocol for the append-only activation log."""

    def record(
        self,
        license_key: str,
        machine_id: str | None,
        ip_address: str | None,
        action: AuditAction,
        success: bool,  # noqa: FBT001
        message: str,
    ) -> None: ...

    def list_entries(
        self, license_key: str | None = None, limit: int | None = None
    ) -> Sequence[ActivationLogInfo]: ...

    def purge(self, older_than_days: int) -> int: ...


class ILicenseRegistry(Protocol):
    """Protocol for the license lifecycle."""

    def create(
        self,
        client_name: str | None,
        expires_at: date | str | None,
        client_email: str | None = None,
        notes: str | None = None,
    ) -> LicenseInfo: ...

    def activate(
        self, license_key: str, machine_id: str, source_address: str | None
    ) -> ActivationResult: ...

    def verify(
        self, license_key: str, machine_id: str, source_address: str | None = None
    ) -> VerifyResult: ...

    def reset_machine(self, license_key: str) -> LicenseInfo: ...

    def list_licenses(
        self, limit: int | None = None, offset: int = 0
    ) -> Sequence[LicenseInfo]: ...
