"""
Admin request handler for license service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from boundlic.common.exceptions import ValidationError
from boundlic.common.models import ApiResponse

if TYPE_CHECKING:
    from boundlic.common.interfaces import IAccessPolicy, IAuditLog, ILicenseRegistry
    from boundlic.common.messages import Messages
    from boundlic.common.models import CreateLicenseRequest, ResetMachineRequest


class AdminHandler:
    """Handles admin requests: create, list, reset machine and audit listing.

    Every call is authorized through the access policy before anything else
    runs.
    """

    def __init__(
        self,
        registry: ILicenseRegistry,
        audit_log: IAuditLog,
        access_policy: IAccessPolicy,
        messages: Messages,
    ):
        self.registry = registry
        self.audit_log = audit_log
        self.access_policy = access_policy
        self.messages = messages

    def create(self, req: CreateLicenseRequest, admin_key: str | None) -> ApiResponse:
        """Handle license creation."""
        self.access_policy.authorize_admin(admin_key or req.admin_key)
        created = self.registry.create(
            client_name=req.client_name,
            expires_at=req.expires_at,
            client_email=req.client_email,
            notes=req.notes,
        )
        return ApiResponse(
            success=True,
            message=self.messages.get("create_success"),
            data=created.model_dump(mode="json"),
        )

    def list_licenses(
        self, admin_key: str | None, limit: int | None = None, offset: int = 0
    ) -> ApiResponse:
        """Handle license listing."""
        self.access_policy.authorize_admin(admin_key)
        licenses = self.registry.list_licenses(limit=limit, offset=offset)
        return ApiResponse(
            success=True, data=[lic.model_dump(mode="json") for lic in licenses]
        )

    def reset_machine(
        self, req: ResetMachineRequest, admin_key: str | None
    ) -> ApiResponse:
        """Handle machine reset."""
        self.access_policy.authorize_admin(admin_key or req.admin_key)
        if not (req.license_key or "").strip():
            raise ValidationError(self.messages.get("license_key_required"))
        reset = self.registry.reset_machine(req.license_key)
        return ApiResponse(
            success=True,
            message=self.messages.get("reset_success"),
            data=reset.model_dump(mode="json"),
        )

    def list_logs(
        self,
        admin_key: str | None,
        license_key: str | None = None,
        limit: int | None = None,
    ) -> ApiResponse:
        """Handle activation log listing."""
        self.access_policy.authorize_admin(admin_key)
        key = license_key.strip().upper() if license_key else None
        entries = self.audit_log.list_entries(license_key=key, limit=limit)
        return ApiResponse(
            success=True, data=[entry.model_dump(mode="json") for entry in entries]
        )
