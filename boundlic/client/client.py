"""
HTTP clients for the license server.

``LicenseClient`` is what the desktop application embeds; ``AdminClient``
backs the administrative CLI commands.
"""

from __future__ import annotations

import hashlib
import logging
import platform
import uuid
from typing import Any

import requests

from boundlic.common.config import Config
from boundlic.common.exceptions import (
    ForbiddenError,
    InternalError,
    LicenseError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from boundlic.common.logging_utils import setup_logger
from boundlic.common.models import (
    ActivationLogInfo,
    ActivationResult,
    LicenseInfo,
    VerifyResult,
)

ERRORS_BY_STATUS: dict[int, type[LicenseError]] = {
    400: ValidationError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
}

DEFAULT_TIMEOUT = 10.0


def default_machine_id() -> str:
    """Stable fingerprint of this computer (host name and MAC address)."""
    raw = f"{platform.node()}|{uuid.getnode():012x}|{platform.system()}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:32].upper()


class _BaseClient:
    def __init__(
        self,
        server_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        log_level: int | None = None,
        session: requests.Session | None = None,
    ):
        config = Config()
        self.server_url = (server_url or config.SERVER_URL).rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()
        self.logger = logging.getLogger(__name__)
        setup_logger(self.logger, log_level if log_level is not None else config.LOG_LEVEL)

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Send a request and return the JSON body, raising on error statuses."""
        try:
            response = self.http.request(
                method, f"{self.server_url}{path}", timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            msg = f"License server unreachable: {e}"
            raise InternalError(msg) from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code >= 400:  # noqa: PLR2004
            message = body.get("message") or f"HTTP {response.status_code}"
            error_cls = ERRORS_BY_STATUS.get(response.status_code, InternalError)
            raise error_cls(message, response.status_code)
        return body


class LicenseClient(_BaseClient):
    """Activates and verifies one license from the machine it runs on."""

    def __init__(
        self,
        license_key: str,
        server_url: str | None = None,
        machine_id: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        log_level: int | None = None,
        session: requests.Session | None = None,
    ):
        super().__init__(server_url, timeout, log_level, session)
        self.license_key = license_key.strip().upper()
        self.machine_id = machine_id or default_machine_id()
        self.last_result: VerifyResult | None = None

    def _payload(self) -> dict[str, str]:
        return {"license_key": self.license_key, "machine_id": self.machine_id}

    def activate(self) -> ActivationResult:
        """Bind the license to this machine (idempotent on the same machine)."""
        self.logger.info("Activating license %s", self.license_key)
        body = self._request("POST", "/api/license/activate", json=self._payload())
        return ActivationResult.model_validate(body["data"])

    def verify(self) -> VerifyResult | None:
        """Current validity for this machine; None when the server does not
        know the key on this machine."""
        body = self._request("POST", "/api/license/verify", json=self._payload())
        if not body.get("success"):
            self.logger.info("License %s unknown on this machine", self.license_key)
            self.last_result = None
            return None
        self.last_result = VerifyResult(valid=body["valid"], **body["data"])
        return self.last_result

    def is_license_active(self) -> bool:
        """True when the server reports the license valid for this machine."""
        try:
            result = self.verify()
        except LicenseError:
            self.logger.warning("License check failed", exc_info=True)
            return False
        return result is not None and result.valid


class AdminClient(_BaseClient):
    """Administrative operations, authenticated with the shared admin key."""

    def __init__(
        self,
        admin_key: str,
        server_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        log_level: int | None = None,
        session: requests.Session | None = None,
    ):
        super().__init__(server_url, timeout, log_level, session)
        self.http.headers["X-Admin-Key"] = admin_key

    def create_license(
        self,
        client_name: str,
        expires_at: str,
        client_email: str | None = None,
        notes: str | None = None,
    ) -> LicenseInfo:
        body = self._request(
            "POST",
            "/api/admin/license/create",
            json={
                "client_name": client_name,
                "expires_at": expires_at,
                "client_email": client_email,
                "notes": notes,
            },
        )
        return LicenseInfo.model_validate(body["data"])

    def list_licenses(
        self, limit: int | None = None, offset: int = 0
    ) -> list[LicenseInfo]:
        params: dict[str, int] = {"offset": offset}
        if limit is not None:
            params["limit"] = limit
        body = self._request("GET", "/api/admin/licenses", params=params)
        return [LicenseInfo.model_validate(item) for item in body["data"]]

    def reset_machine(self, license_key: str) -> LicenseInfo:
        body = self._request(
            "POST",
            "/api/admin/license/reset-machine",
            json={"license_key": license_key},
        )
        return LicenseInfo.model_validate(body["data"])

    def list_logs(
        self, license_key: str | None = None, limit: int | None = None
    ) -> list[ActivationLogInfo]:
        params: dict[str, Any] = {}
        if license_key:
            params["license_key"] = license_key
        if limit is not None:
            params["limit"] = limit
        body = self._request("GET", "/api/admin/logs", params=params)
        return [ActivationLogInfo.model_validate(item) for item in body["data"]]
