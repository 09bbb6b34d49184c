"""
End-user request handler: activation and verification.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from boundlic.common.exceptions import NotFoundError, ValidationError
from boundlic.common.models import ApiResponse

if TYPE_CHECKING:
    from boundlic.common.interfaces import ILicenseRegistry
    from boundlic.common.messages import Messages
    from boundlic.common.models import ActivateRequest, VerifyRequest


class ActivationHandler:
    """Handles activate and verify requests from installed applications."""

    def __init__(self, registry: ILicenseRegistry, messages: Messages):
        self.registry = registry
        self.messages = messages

    def _require_fields(self, license_key: str | None, machine_id: str | None) -> None:
        if not (license_key or "").strip() or not (machine_id or "").strip():
            raise ValidationError(self.messages.get("activation_fields_required"))

    def activate(self, req: ActivateRequest, source_address: str | None) -> ApiResponse:
        """Handle license activation."""
        self._require_fields(req.license_key, req.machine_id)
        result = self.registry.activate(req.license_key, req.machine_id, source_address)
        return ApiResponse(
            success=True,
            message=self.messages.get("activation_success"),
            data=result.model_dump(mode="json"),
        )

    def verify(self, req: VerifyRequest, source_address: str | None) -> ApiResponse:
        """Handle license verification.

        Unknown key and wrong machine both answer ``valid: false``.
        """
        self._require_fields(req.license_key, req.machine_id)
        try:
            result = self.registry.verify(
                req.license_key, req.machine_id, source_address
            )
        except NotFoundError as e:
            return ApiResponse(success=False, valid=False, message=e.message)
        data = result.model_dump(mode="json", exclude={"valid"})
        return ApiResponse(success=True, valid=result.valid, data=data)
