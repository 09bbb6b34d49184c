"""Business logic services for the license server.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable

from boundlic.common.messages import Messages
from boundlic.server.access import SharedSecretPolicy
from boundlic.server.audit import ActivationAuditLog
from boundlic.server.database import Database, utcnow
from boundlic.server.domain.activation_handler import ActivationHandler
from boundlic.server.domain.admin_handler import AdminHandler
from boundlic.server.keygen import KeyGenerator
from boundlic.server.registry import LicenseRegistry

if TYPE_CHECKING:
    from boundlic.common.config import Config
    from boundlic.common.interfaces import IAccessPolicy
    from boundlic.common.models import (
        ActivateRequest,
        ApiResponse,
        CreateLicenseRequest,
        ResetMachineRequest,
        VerifyRequest,
    )


class LicenseService:
    """Wires the registry, audit log and access policy behind the handlers."""

    def __init__(
        self,
        config: Config,
        database: Database | None = None,
        access_policy: IAccessPolicy | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.messages = Messages(config.LOCALE)
        self.database = database or Database(config.DATABASE_URL)
        self.audit_log = ActivationAuditLog(self.database, clock=clock)
        self.registry = LicenseRegistry(
            database=self.database,
            audit_log=self.audit_log,
            key_generator=KeyGenerator(config.KEY_PREFIX),
            messages=self.messages,
            config=config,
            clock=clock,
        )
        self.access_policy = access_policy or SharedSecretPolicy(
            config.ADMIN_KEY, self.messages
        )

        # Initialize handlers
        self.activation_handler = ActivationHandler(self.registry, self.messages)
        self.admin_handler = AdminHandler(
            registry=self.registry,
            audit_log=self.audit_log,
            access_policy=self.access_policy,
            messages=self.messages,
        )

    def initialize(self) -> None:
        """Create tables and apply the audit retention policy, if any."""
        self.database.create_all()
        if self.config.AUDIT_RETENTION_DAYS is not None:
            self.audit_log.purge(self.config.AUDIT_RETENTION_DAYS)

    def banner(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "service": self.config.SERVICE_NAME,
            "version": self.config.VERSION,
        }

    def health(self) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "timestamp": int(time.time())}

    def activate(self, req: ActivateRequest, source_address: str | None) -> ApiResponse:
        return self.activation_handler.activate(req, source_address)

    def verify(self, req: VerifyRequest, source_address: str | None) -> ApiResponse:
        return self.activation_handler.verify(req, source_address)

    def create_license(
        self, req: CreateLicenseRequest, admin_key: str | None
    ) -> ApiResponse:
        return self.admin_handler.create(req, admin_key)

    def list_licenses(
        self, admin_key: str | None, limit: int | None = None, offset: int = 0
    ) -> ApiResponse:
        return self.admin_handler.list_licenses(admin_key, limit=limit, offset=offset)

    def reset_machine(
        self, req: ResetMachineRequest, admin_key: str | None
    ) -> ApiResponse:
        return self.admin_handler.reset_machine(req, admin_key)

    def list_logs(
        self,
        admin_key: str | None,
        license_key: str | None = None,
        limit: int | None = None,
    ) -> ApiResponse:
        return self.admin_handler.list_logs(
            admin_key, license_key=license_key, limit=limit
        )
