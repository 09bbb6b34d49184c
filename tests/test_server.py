from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from boundlic.common.config import Config
from boundlic.server.core import LicenseServer
from boundlic.server.database import Database

from .conftest import ADMIN_KEY, FrozenClock

ADMIN_HEADERS = {"X-Admin-Key": ADMIN_KEY}


def _create(http: TestClient, clock: FrozenClock, days: int = 30, **extra: str) -> str:
    response = http.post(
        "/api/admin/license/create",
        json={
            "admin_key": ADMIN_KEY,
            "client_name": "Moulin Test",
            "expires_at": (clock.today() + timedelta(days=days)).isoformat(),
            **extra,
        },
    )
    assert response.status_code == 200  # noqa: PLR2004
    return response.json()["data"]["license_key"]


def _activate(http: TestClient, key: str, machine: str, **headers: str):
    return http.post(
        "/api/license/activate",
        json={"license_key": key, "machine_id": machine},
        headers=headers,
    )


def test_server_initialization(server: LicenseServer, config: Config) -> None:
    """Test server initialization."""
    assert server.server_host == config.SERVER_HOST
    assert server.server_port == config.SERVER_PORT
    routes = [route.path for route in server.app.routes]  # type: ignore[attr-defined]
    assert "/health" in routes
    assert "/api/license/activate" in routes
    assert "/api/admin/licenses" in routes


def test_root_and_health(http: TestClient) -> None:
    banner = http.get("/").json()
    assert banner == {
        "status": "ok",
        "service": "HASNA License Server",
        "version": "1.0.0",
    }
    health = http.get("/health").json()
    assert health["status"] == "ok"
    assert isinstance(health["timestamp"], int)


def test_moulin_scenario(http: TestClient, clock: FrozenClock) -> None:
    """Create, activate, refuse second PC, reset, activate second PC."""
    key = _create(http, clock, client_email="moulin@example.com")

    first = _activate(http, key, "PC-001")
    assert first.status_code == 200  # noqa: PLR2004
    body = first.json()
    assert body["success"] is True
    assert body["message"] == "Licence activée avec succès"
    assert body["data"]["client_name"] == "Moulin Test"
    assert body["data"]["days_remaining"] == 30  # noqa: PLR2004
    assert body["data"]["expires_at"] == "2025-04-09"

    second = _activate(http, key, "PC-002")
    assert second.status_code == 403  # noqa: PLR2004
    assert second.json()["success"] is False

    reset = http.post(
        "/api/admin/license/reset-machine",
        json={"admin_key": ADMIN_KEY, "license_key": key},
    )
    assert reset.status_code == 200  # noqa: PLR2004
    assert reset.json()["data"]["machine_id"] is None

    third = _activate(http, key, "PC-002")
    assert third.status_code == 200  # noqa: PLR2004
    assert third.json()["success"] is True


def test_activate_repeat_from_same_machine(http: TestClient, clock: FrozenClock) -> None:
    key = _create(http, clock)
    assert _activate(http, key, "PC-001").status_code == 200  # noqa: PLR2004
    assert _activate(http, key.lower(), "PC-001").status_code == 200  # noqa: PLR2004


@pytest.mark.parametrize(
    "payload",
    [{}, {"license_key": "HASNA-AAAA-AAAA-AAAA-AAAA"}, {"machine_id": "PC-1"},
     {"license_key": "  ", "machine_id": "PC-1"},
     {"license_key": "HASNA-AAAA-AAAA-AAAA-AAAA", "machine_id": "   "}],
)
def test_activate_missing_fields(http: TestClient, payload: dict) -> None:
    response = http.post("/api/license/activate", json=payload)
    assert response.status_code == 400  # noqa: PLR2004
    assert response.json() == {
        "success": False,
        "message": "Clé de licence et identifiant machine requis",
    }


def test_activate_malformed_body_is_400(http: TestClient) -> None:
    response = http.post(
        "/api/license/activate",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400  # noqa: PLR2004
    assert response.json()["success"] is False


def test_activate_unknown_key(http: TestClient) -> None:
    response = _activate(http, "HASNA-0000-0000-0000-0000", "PC-001")
    assert response.status_code == 404  # noqa: PLR2004
    assert response.json() == {"success": False, "message": "Clé de licence invalide"}


def test_activate_expired(http: TestClient, clock: FrozenClock) -> None:
    key = _create(http, clock, days=-1)
    response = _activate(http, key, "PC-001")
    assert response.status_code == 403  # noqa: PLR2004
    assert response.json()["message"] == "Cette licence a expiré le 09/03/2025"


def test_activate_records_forwarded_address(http: TestClient, clock: FrozenClock) -> None:
    key = _create(http, clock)
    _activate(http, key, "PC-001", **{"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

    logs = http.get(
        "/api/admin/logs", params={"license_key": key.lower()}, headers=ADMIN_HEADERS
    ).json()["data"]
    assert len(logs) == 1
    assert logs[0]["ip_address"] == "203.0.113.7"
    assert logs[0]["action"] == "ACTIVATE"
    assert logs[0]["success"] is True


def test_verify_valid(http: TestClient, clock: FrozenClock) -> None:
    key = _create(http, clock, days=10)
    _activate(http, key, "PC-001")

    response = http.post(
        "/api/license/verify", json={"license_key": key, "machine_id": "PC-001"}
    )

    assert response.status_code == 200  # noqa: PLR2004
    assert response.json() == {
        "success": True,
        "valid": True,
        "data": {
            "client_name": "Moulin Test",
            "expires_at": "2025-03-20",
            "days_remaining": 10,
            "is_active": True,
        },
    }


def test_verify_expired_is_success_but_invalid(
    http: TestClient, clock: FrozenClock
) -> None:
    key = _create(http, clock, days=1)
    _activate(http, key, "PC-001")
    clock.advance(days=3)

    body = http.post(
        "/api/license/verify", json={"license_key": key, "machine_id": "PC-001"}
    ).json()

    assert body["success"] is True
    assert body["valid"] is False
    assert body["data"]["days_remaining"] == -2  # noqa: PLR2004


def test_verify_wrong_machine_is_not_found(http: TestClient, clock: FrozenClock) -> None:
    key = _create(http, clock)
    _activate(http, key, "PC-001")

    wrong_machine = http.post(
        "/api/license/verify", json={"license_key": key, "machine_id": "PC-002"}
    )
    unknown_key = http.post(
        "/api/license/verify",
        json={"license_key": "HASNA-0000-0000-0000-0000", "machine_id": "PC-001"},
    )

    assert wrong_machine.status_code == 200  # noqa: PLR2004
    assert wrong_machine.json() == unknown_key.json()
    assert wrong_machine.json() == {
        "success": False,
        "valid": False,
        "message": "Licence non trouvée ou machine non autorisée",
    }


def test_verify_missing_fields(http: TestClient) -> None:
    response = http.post("/api/license/verify", json={"license_key": "X"})
    assert response.status_code == 400  # noqa: PLR2004


def test_create_requires_fields(http: TestClient) -> None:
    response = http.post(
        "/api/admin/license/create", json={"admin_key": ADMIN_KEY, "client_name": "X"}
    )
    assert response.status_code == 400  # noqa: PLR2004
    assert response.json()["message"] == "Nom du client et date d'expiration requis"


def test_create_rejects_bad_date(http: TestClient) -> None:
    response = http.post(
        "/api/admin/license/create",
        json={"admin_key": ADMIN_KEY, "client_name": "X", "expires_at": "demain"},
    )
    assert response.status_code == 400  # noqa: PLR2004


def test_create_returns_full_record(http: TestClient) -> None:
    response = http.post(
        "/api/admin/license/create",
        headers=ADMIN_HEADERS,
        json={
            "client_name": "Minoterie",
            "client_email": "contact@example.com",
            "expires_at": "2026-12-31",
            "notes": "Commande 42",
        },
    )
    assert response.status_code == 200  # noqa: PLR2004
    body = response.json()
    assert body["message"] == "Licence créée avec succès"
    data = body["data"]
    assert data["license_key"].startswith("HASNA-")
    assert data["client_email"] == "contact@example.com"
    assert data["notes"] == "Commande 42"
    assert data["machine_id"] is None
    assert data["is_active"] is True


def test_list_licenses(http: TestClient, clock: FrozenClock) -> None:
    first = _create(http, clock)
    clock.advance(minutes=1)
    second = _create(http, clock)

    response = http.get("/api/admin/licenses", headers=ADMIN_HEADERS)
    assert response.status_code == 200  # noqa: PLR2004
    assert [lic["license_key"] for lic in response.json()["data"]] == [second, first]

    page = http.get(
        "/api/admin/licenses", params={"limit": 1, "offset": 1}, headers=ADMIN_HEADERS
    )
    assert [lic["license_key"] for lic in page.json()["data"]] == [first]


def test_timestamps_match_across_endpoints(http: TestClient, clock: FrozenClock) -> None:
    created = http.post(
        "/api/admin/license/create",
        headers=ADMIN_HEADERS,
        json={"client_name": "Moulin Test", "expires_at": "2025-04-09"},
    ).json()["data"]
    _activate(http, created["license_key"], "PC-001")

    (listed,) = http.get("/api/admin/licenses", headers=ADMIN_HEADERS).json()["data"]
    reset = http.post(
        "/api/admin/license/reset-machine",
        headers=ADMIN_HEADERS,
        json={"license_key": created["license_key"]},
    ).json()["data"]

    assert created["created_at"] == "2025-03-10T09:30:00Z"
    assert listed["created_at"] == created["created_at"]
    assert reset["created_at"] == created["created_at"]
    assert reset["activated_at"] == listed["activated_at"] == "2025-03-10T09:30:00Z"

    (entry, *_) = http.get("/api/admin/logs", headers=ADMIN_HEADERS).json()["data"]
    assert entry["created_at"] == "2025-03-10T09:30:00Z"


def test_reset_unknown_key(http: TestClient) -> None:
    response = http.post(
        "/api/admin/license/reset-machine",
        headers=ADMIN_HEADERS,
        json={"license_key": "HASNA-0000-0000-0000-0000"},
    )
    assert response.status_code == 404  # noqa: PLR2004
    assert response.json() == {"success": False, "message": "Licence non trouvée"}


@pytest.mark.parametrize("admin_key", [None, "", "wrong"])
def test_admin_operations_reject_bad_secret(
    http: TestClient, clock: FrozenClock, admin_key: str | None
) -> None:
    """No mutation and no audit entry on unauthorized calls."""
    key = _create(http, clock)
    _activate(http, key, "PC-001")
    headers = {} if admin_key is None else {"X-Admin-Key": admin_key}
    logs_before = http.get("/api/admin/logs", headers=ADMIN_HEADERS).json()["data"]

    calls = [
        http.post(
            "/api/admin/license/create",
            headers=headers,
            json={"admin_key": admin_key, "client_name": "X", "expires_at": "2030-01-01"},
        ),
        http.get("/api/admin/licenses", headers=headers),
        http.post(
            "/api/admin/license/reset-machine",
            headers=headers,
            json={"admin_key": admin_key, "license_key": key},
        ),
        http.get("/api/admin/logs", headers=headers),
        # Secret is checked before field validation
        http.post("/api/admin/license/create", headers=headers, json={}),
    ]

    for response in calls:
        assert response.status_code == 401  # noqa: PLR2004
        assert response.json() == {"success": False, "message": "Accès non autorisé"}

    licenses = http.get("/api/admin/licenses", headers=ADMIN_HEADERS).json()["data"]
    assert len(licenses) == 1
    assert licenses[0]["machine_id"] == "PC-001"
    logs_after = http.get("/api/admin/logs", headers=ADMIN_HEADERS).json()["data"]
    assert logs_after == logs_before


def test_admin_malformed_query_checks_secret_first(http: TestClient) -> None:
    response = http.get("/api/admin/licenses", params={"limit": "lots"})
    assert response.status_code == 401  # noqa: PLR2004

    response = http.get(
        "/api/admin/licenses", params={"limit": "lots"}, headers=ADMIN_HEADERS
    )
    assert response.status_code == 400  # noqa: PLR2004


def test_admin_malformed_body_accepts_body_secret(http: TestClient) -> None:
    response = http.post(
        "/api/admin/license/create",
        json={"admin_key": ADMIN_KEY, "client_name": "X", "expires_at": 20300101},
    )
    assert response.status_code == 400  # noqa: PLR2004
    assert response.json() == {"success": False, "message": "Requête invalide"}

    response = http.post(
        "/api/admin/license/reset-machine",
        json={"admin_key": ADMIN_KEY, "license_key": ["HASNA-0000-0000-0000-0000"]},
    )
    assert response.status_code == 400  # noqa: PLR2004

    response = http.post(
        "/api/admin/license/create",
        json={"admin_key": "wrong", "client_name": "X", "expires_at": 20300101},
    )
    assert response.status_code == 401  # noqa: PLR2004


def test_persistence_failure_is_generic_500(
    server: LicenseServer, monkeypatch: pytest.MonkeyPatch
) -> None:
    from sqlalchemy.exc import OperationalError

    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(server.service.registry, "activate", broken)
    http = TestClient(server.app)

    response = http.post(
        "/api/license/activate",
        json={"license_key": "HASNA-AAAA-AAAA-AAAA-AAAA", "machine_id": "PC-1"},
    )

    assert response.status_code == 500  # noqa: PLR2004
    assert response.json() == {
        "success": False,
        "message": "Erreur serveur lors de l'activation",
    }


def test_english_messages(config: Config, database: Database, clock: FrozenClock) -> None:
    config.LOCALE = "en"
    http = TestClient(LicenseServer(config=config, database=database, clock=clock).app)

    response = http.post(
        "/api/license/activate",
        json={"license_key": "HASNA-0000-0000-0000-0000", "machine_id": "PC-1"},
    )

    assert response.json()["message"] == "Invalid license key"


def test_unset_admin_key_disables_admin_api(
    config: Config, database: Database, clock: FrozenClock
) -> None:
    config.ADMIN_KEY = None
    http = TestClient(LicenseServer(config=config, database=database, clock=clock).app)

    response = http.get("/api/admin/licenses", headers={"X-Admin-Key": ""})

    assert response.status_code == 401  # noqa: PLR2004
