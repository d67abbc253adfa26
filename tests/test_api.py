"""HTTP-level tests: routing, auth, the error envelope and the wire format."""

import os
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")

from timeforing.core.errors import register_exception_handlers
from timeforing.core.security import ADMIN_ROLE, issue_mock_token
from timeforing.db.session import Base, get_db
from timeforing.middlewares import RequestIdMiddleware
from timeforing.main import app
from timeforing.services.reporting import XLSX_MEDIA_TYPE


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        engine.dispose()


def _auth(sub="ola", roles=None, name="Ola Nordmann", email="ola@example.com"):
    kwargs = {} if roles is None else {"roles": roles}
    token = issue_mock_token(sub, name=name, email=email, **kwargs)
    return {"Authorization": f"Bearer {token}"}


def _create_project(client, headers, navn="Kundeportal"):
    response = client.post("/api/projects", json={"navn": navn}, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_health_and_correlation_header(client):
    response = client.get("/health", headers={"X-Correlation-Id": "abc-123"})
    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert response.headers["X-Correlation-Id"] == "abc-123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"

    generated = client.get("/health").headers["X-Correlation-Id"]
    assert generated


def test_protected_routes_require_bearer_token(client):
    response = client.get("/api/projects")
    assert response.status_code == 401
    body = response.json()
    assert body["code"] == "UNAUTHORIZED"
    assert body["status"] == 401
    assert body["path"] == "/api/projects"
    assert "timestamp" in body
    assert response.headers["WWW-Authenticate"] == "Bearer"

    bad = client.get("/api/projects", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401


def test_mock_auth_issues_usable_token(client):
    response = client.post(
        "/api/mock-auth/token",
        json={"sub": "ola", "name": "Ola Nordmann", "email": "ola@example.com"},
    )
    assert response.status_code == 200
    token = response.json()["token"]
    listed = client.get("/api/projects", headers={"Authorization": f"Bearer {token}"})
    assert listed.status_code == 200


def test_register_check_email_and_profile_flow(client):
    payload = {"navn": "Ola Nordmann", "mobil": "+47 41234567", "epost": "Ola@Example.com"}
    response = client.post("/api/users/register", json=payload)
    assert response.status_code == 201
    user = response.json()
    assert user["epost"] == "ola@example.com"
    assert user["mobil"] == "+4741234567"
    assert user["version"] == 1
    assert "createdAt" in user and "updatedAt" in user

    duplicate = client.post("/api/users/register", json=payload)
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "DUPLICATE_EMAIL"

    assert client.get("/api/users/check-email", params={"email": "OLA@example.com"}).json() == {"available": False}
    assert client.get("/api/users/check-email", params={"email": "kari@example.com"}).json() == {"available": True}

    headers = _auth(sub=user["id"])
    profile = client.get("/api/users/profile", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["id"] == user["id"]

    updated = client.put("/api/users/profile", json={"navn": "Ola N", "version": 1}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["navn"] == "Ola N"
    assert updated.json()["version"] == 2

    stale = client.put("/api/users/profile", json={"navn": "Ola X", "version": 1}, headers=headers)
    assert stale.status_code == 409
    assert stale.json()["code"] == "CONCURRENT_MODIFICATION"

    assert client.delete("/api/users/profile", headers=headers).status_code == 204
    gone = client.get("/api/users/profile", headers=headers)
    assert gone.status_code == 404
    assert gone.json()["code"] == "USER_NOT_FOUND"


def test_register_validation_errors_are_reported_per_field(client):
    response = client.post("/api/users/register", json={"navn": "O", "mobil": "12345", "epost": "ikke-epost"})
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert set(body["errors"]) == {"navn", "mobil", "epost"}
    assert body["errors"]["mobil"] == "Ugyldig norsk mobilnummer"


def test_admin_endpoints_require_admin_role(client):
    created = client.post(
        "/api/users/register",
        json={"navn": "Kari Nordmann", "mobil": "98765432", "epost": "kari@example.com"},
    ).json()

    assert client.get("/api/users", headers=_auth()).status_code == 403
    assert client.get("/api/users", headers=_auth()).json()["code"] == "FORBIDDEN"

    admin = _auth(sub="admin", roles=[ADMIN_ROLE])
    listed = client.get("/api/users", headers=admin)
    assert listed.status_code == 200
    assert [u["epost"] for u in listed.json()] == ["kari@example.com"]

    assert client.get(f"/api/users/{created['id']}", headers=admin).json()["navn"] == "Kari Nordmann"
    assert client.get("/api/users/999", headers=admin).status_code == 404


def test_project_crud_over_http(client):
    headers = _auth()
    project = _create_project(client, headers)
    assert set(project) == {"projectId", "navn", "beskrivelse", "aktiv", "opprettetDato", "endretDato"}
    project_id = project["projectId"]

    listed = client.get("/api/projects", params={"page": 1, "pageSize": 10, "sort": "navn", "asc": "true"}, headers=headers)
    assert listed.status_code == 200
    body = listed.json()
    assert body["page"] == 1 and body["pageSize"] == 10 and body["total"] == 1
    assert body["projects"][0]["navn"] == "Kundeportal"

    updated = client.put(f"/api/projects/{project_id}", json={"navn": "Portal", "beskrivelse": "Ny"}, headers=headers)
    assert updated.json()["navn"] == "Portal"
    assert updated.json()["beskrivelse"] == "Ny"

    # Other users cannot see the project.
    assert client.get(f"/api/projects/{project_id}", headers=_auth(sub="kari")).status_code == 404

    assert client.delete(f"/api/projects/{project_id}", headers=headers).status_code == 204
    missing = client.get(f"/api/projects/{project_id}", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["code"] == "PROJECT_NOT_FOUND"


def test_project_name_validation(client):
    response = client.post("/api/projects", json={"navn": "  "}, headers=_auth())
    assert response.status_code == 400
    assert response.json()["errors"]["navn"] == "Prosjektnavn er påkrevd"

    unknown_sort = client.get("/api/projects", params={"sort": "beskrivelse"}, headers=_auth())
    assert unknown_sort.status_code == 400


def test_time_entry_rules_surface_as_error_codes(client):
    headers = _auth()
    project_id = _create_project(client, headers)["projectId"]

    cases = [
        (0, "INVALID_TIMER_VALUE", "Timer må være positiv verdi"),
        (0.25, "INVALID_TIMER_STEP", "Kun hele eller halve timer er tillatt"),
        (25, "MAX_HOURS_PER_ENTRY", "Maks 24 timer per registrering"),
    ]
    for timer, code, message in cases:
        response = client.post(
            "/api/time-entries",
            json={"prosjektId": project_id, "dato": "2024-05-02", "timer": timer},
            headers=headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == code
        assert response.json()["message"] == message

    ok = client.post(
        "/api/time-entries",
        json={"prosjektId": project_id, "dato": "2024-05-02", "timer": 23},
        headers=headers,
    )
    assert ok.status_code == 201
    over = client.post(
        "/api/time-entries",
        json={"prosjektId": project_id, "dato": "2024-05-02", "timer": 2},
        headers=headers,
    )
    assert over.json()["code"] == "MAX_HOURS_PER_DAY"

    foreign = client.post(
        "/api/time-entries",
        json={"prosjektId": project_id, "dato": "2024-05-03", "timer": 2},
        headers=_auth(sub="kari"),
    )
    assert foreign.status_code == 400
    assert foreign.json()["code"] == "PROJECT_NOT_FOUND_OR_INACTIVE"


def test_time_entry_crud_over_http(client):
    headers = _auth()
    project_id = _create_project(client, headers)["projectId"]

    created = client.post(
        "/api/time-entries",
        json={"prosjektId": project_id, "dato": "2024-05-02", "timer": 7.5, "kommentar": "Workshop"},
        headers=headers,
    )
    assert created.status_code == 201
    entry = created.json()
    assert entry["timeEntryId"] and entry["prosjektId"] == project_id
    assert entry["dato"] == "2024-05-02"
    assert entry["version"] == 1

    client.post(
        "/api/time-entries",
        json={"prosjektId": project_id, "dato": "2024-06-01", "timer": 1},
        headers=headers,
    )
    in_may = client.get("/api/time-entries", params={"from": "2024-05-01", "to": "2024-05-31"}, headers=headers)
    assert [e["timeEntryId"] for e in in_may.json()] == [entry["timeEntryId"]]

    entry_url = f"/api/time-entries/{entry['timeEntryId']}"
    updated = client.put(
        entry_url,
        json={"prosjektId": project_id, "dato": "2024-05-02", "timer": 8, "version": 1},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["timer"] == 8
    assert updated.json()["version"] == 2

    stale = client.put(
        entry_url,
        json={"prosjektId": project_id, "dato": "2024-05-02", "timer": 6, "version": 1},
        headers=headers,
    )
    assert stale.status_code == 409

    assert client.get(entry_url, headers=_auth(sub="kari")).status_code == 404
    assert client.delete(entry_url, headers=headers).status_code == 204
    assert client.get(entry_url, headers=headers).json()["code"] == "TIME_ENTRY_NOT_FOUND"


def test_project_with_time_entries_cannot_be_deleted(client):
    headers = _auth()
    project_id = _create_project(client, headers)["projectId"]
    client.post(
        "/api/time-entries",
        json={"prosjektId": project_id, "dato": "2024-05-02", "timer": 1},
        headers=headers,
    )
    response = client.delete(f"/api/projects/{project_id}", headers=headers)
    assert response.status_code == 409
    assert response.json()["code"] == "PROJECT_HAS_TIME_ENTRIES"


def test_excel_report_download(client):
    headers = _auth()
    project_id = _create_project(client, headers)["projectId"]
    client.post(
        "/api/time-entries",
        json={"prosjektId": project_id, "dato": "2024-05-02", "timer": 3},
        headers=headers,
    )

    response = client.get("/api/reports/excel", params={"from": "2024-05-01", "to": "2024-05-31"}, headers=headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="time-report-')
    assert disposition.endswith('.xlsx"')
    # xlsx files are zip archives.
    assert response.content[:2] == b"PK"


def test_unexpected_errors_use_the_envelope():
    mini = FastAPI()
    register_exception_handlers(mini)

    @mini.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    response = TestClient(mini, raise_server_exceptions=False).get("/boom")
    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "INTERNAL_ERROR"
    assert body["message"] == "Noe gikk galt, prøv igjen senere"
    assert "kaboom" not in response.text


def test_unexpected_errors_keep_the_correlation_id():
    mini = FastAPI()
    mini.add_middleware(RequestIdMiddleware)
    register_exception_handlers(mini)

    @mini.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    response = TestClient(mini, raise_server_exceptions=False).get("/boom", headers={"X-Correlation-Id": "abc"})
    assert response.status_code == 500
    assert response.headers["X-Correlation-Id"] == "abc"


def test_lost_version_race_maps_to_conflict():
    mini = FastAPI()
    register_exception_handlers(mini)

    @mini.put("/race")
    def race():
        raise StaleDataError("UPDATE statement on table 'time_entries' expected to update 1 row(s); 0 were matched.")

    response = TestClient(mini).put("/race")
    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "CONCURRENT_MODIFICATION"
    assert body["status"] == 409
    assert body["path"] == "/race"


def test_profile_with_non_ascii_digit_subject_is_not_found(client):
    response = client.get("/api/users/profile", headers=_auth(sub="²"))
    assert response.status_code == 404
    assert response.json()["code"] == "USER_NOT_FOUND"


def test_api_responses_are_hardened_and_not_cached(client):
    response = client.get("/api/projects", headers=_auth())
    assert response.headers["Cache-Control"] == "no-store"
    assert response.headers["Referrer-Policy"] == "no-referrer"
    assert "frame-ancestors 'none'" in response.headers["Content-Security-Policy"]
    assert "X-Frame-Options" not in response.headers

    health = client.get("/health")
    assert health.headers["X-Content-Type-Options"] == "nosniff"
    assert "Cache-Control" not in health.headers
