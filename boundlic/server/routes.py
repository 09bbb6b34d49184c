"""
Routes for the license server.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from fastapi import FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from boundlic.common.exceptions import LicenseError, UnauthorizedError
from boundlic.common.models import (
    ActivateRequest,
    ApiResponse,
    CreateLicenseRequest,
    ResetMachineRequest,
    VerifyRequest,
)

if TYPE_CHECKING:
    from .services import LicenseService

ADMIN_PREFIX = "/api/admin"


def source_address(request: Request) -> str | None:
    """Client address, honouring a reverse proxy's X-Forwarded-For."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


class LicenseRoutes:
    """Handles FastAPI routes for the license server."""

    def __init__(self, service: LicenseService):
        self.service = service
        self.messages = service.messages
        self.logger = logging.getLogger(__name__)

    def setup_routes(self, app: FastAPI) -> None:
        """Setup API routes on the FastAPI app."""
        app.get("/")(self.root)
        app.get("/health")(self.health)
        app.post("/api/license/activate")(self.activate)
        app.post("/api/license/verify")(self.verify)
        app.post(f"{ADMIN_PREFIX}/license/create")(self.create_license)
        app.get(f"{ADMIN_PREFIX}/licenses")(self.list_licenses)
        app.post(f"{ADMIN_PREFIX}/license/reset-machine")(self.reset_machine)
        app.get(f"{ADMIN_PREFIX}/logs")(self.list_logs)
        app.add_exception_handler(RequestValidationError, self.invalid_request)

    def _error(self, status_code: int, message: str) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=ApiResponse(success=False, message=message).body(),
        )

    def _run(
        self, operation: str, error_key: str, call: Callable[[], ApiResponse]
    ) -> JSONResponse:
        """Run ``call``, mapping license errors and unexpected failures to JSON."""
        try:
            response = call()
        except LicenseError as e:
            return self._error(e.status_code, e.message)
        except Exception:
            self.logger.exception("%s failed", operation)
            return self._error(500, self.messages.get(error_key))
        return JSONResponse(content=response.body())

    def root(self) -> dict[str, Any]:
        """Handle / endpoint."""
        return self.service.banner()

    def health(self) -> dict[str, Any]:
        """Handle /health endpoint."""
        return self.service.health()

    def activate(self, req: ActivateRequest, request: Request) -> JSONResponse:
        """Handle /api/license/activate endpoint."""
        return self._run(
            "Activation",
            "activation_server_error",
            lambda: self.service.activate(req, source_address(request)),
        )

    def verify(self, req: VerifyRequest, request: Request) -> JSONResponse:
        """Handle /api/license/verify endpoint."""
        return self._run(
            "Verification",
            "server_error",
            lambda: self.service.verify(req, source_address(request)),
        )

    def create_license(
        self,
        req: CreateLicenseRequest,
        x_admin_key: str | None = Header(default=None),
    ) -> JSONResponse:
        """Handle /api/admin/license/create endpoint."""
        return self._run(
            "License creation",
            "create_server_error",
            lambda: self.service.create_license(req, x_admin_key),
        )

    def list_licenses(
        self,
        x_admin_key: str | None = Header(default=None),
        limit: int | None = Query(default=None, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        """Handle /api/admin/licenses endpoint."""
        return self._run(
            "License listing",
            "server_error",
            lambda: self.service.list_licenses(x_admin_key, limit=limit, offset=offset),
        )

    def reset_machine(
        self,
        req: ResetMachineRequest,
        x_admin_key: str | None = Header(default=None),
    ) -> JSONResponse:
        """Handle /api/admin/license/reset-machine endpoint."""
        return self._run(
            "Machine reset",
            "server_error",
            lambda: self.service.reset_machine(req, x_admin_key),
        )

    def list_logs(
        self,
        x_admin_key: str | None = Header(default=None),
        license_key: str | None = None,
        limit: int | None = Query(default=None, ge=1),
    ) -> JSONResponse:
        """Handle /api/admin/logs endpoint."""
        return self._run(
            "Log listing",
            "server_error",
            lambda: self.service.list_logs(
                x_admin_key, license_key=license_key, limit=limit
            ),
        )

    @staticmethod
    def _admin_credential(request: Request, exc: RequestValidationError) -> str | None:
        """Header secret, else the ``admin_key`` of a body that parsed as JSON."""
        header = request.headers.get("x-admin-key")
        if header:
            return header
        body = getattr(exc, "body", None)
        if isinstance(body, dict) and isinstance(body.get("admin_key"), str):
            return body["admin_key"]
        return None

    async def invalid_request(
        self, request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed bodies answer 400; admin routes still check the secret first."""
        if request.url.path.startswith(ADMIN_PREFIX):
            try:
                self.service.access_policy.authorize_admin(
                    self._admin_credential(request, exc)
                )
            except UnauthorizedError as e:
                return self._error(e.status_code, e.message)
        self.logger.info("Rejected malformed request to %s: %s", request.url.path, exc)
        return self._error(400, self.messages.get("invalid_request"))
