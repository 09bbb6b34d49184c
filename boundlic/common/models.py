"""
Pydantic models for request/response validation.

Request fields are optional on purpose: missing values are reported by the
handlers as ``ValidationError`` (HTTP 400), after the admin secret check.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class AuditAction(str, Enum):
    ACTIVATE = "ACTIVATE"
    VERIFY = "VERIFY"
    RESET = "RESET"


class ActivateRequest(BaseModel):
    license_key: str | None = None
    machine_id: str | None = None


class VerifyRequest(BaseModel):
    license_key: str | None = None
    machine_id: str | None = None


class CreateLicenseRequest(BaseModel):
    admin_key: str | None = None
    client_name: str | None = None
    client_email: str | None = None
    expires_at: str | None = None
    notes: str | None = None


class ResetMachineRequest(BaseModel):
    admin_key: str | None = None
    license_key: str | None = None


class LicenseInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    license_key: str
    client_name: str
    client_email: str | None = None
    machine_id: str | None = None
    activated_at: datetime | None = None
    expires_at: date
    is_active: bool
    created_at: datetime
    notes: str | None = None


class ActivationLogInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    license_key: str
    machine_id: str | None = None
    ip_address: str | None = None
    action: AuditAction
    success: bool
    message: str | None = None
    created_at: datetime


class ActivationResult(BaseModel):
    client_name: str
    expires_at: date
    days_remaining: int


class VerifyResult(BaseModel):
    valid: bool
    client_name: str
    expires_at: date
    days_remaining: int
    is_active: bool


class ApiResponse(BaseModel):
    """Envelope shared by every endpoint."""

    success: bool
    message: str | None = None
    valid: bool | None = None
    data: Any = None

    def body(self) -> dict[str, Any]:
        """JSON body; unset envelope fields are left out, ``data`` is kept as is."""
        body: dict[str, Any] = {"success": self.success}
        if self.valid is not None:
            body["valid"] = self.valid
        if self.message is not None:
            body["message"] = self.message
        if self.data is not None:
            body["data"] = self.data
        return body
