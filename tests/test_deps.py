"""
Tests for the credential and authorization dependencies.
A minimal app exposes each dependency; services on app.state are mocks.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient

from lscs_core.core.database import get_db
from lscs_core.core.deps import (
    RequestIdentity,
    optional_session,
    require_api_consumer,
    require_api_key,
    require_api_key_management,
    require_can_edit_member,
    require_google_identity,
    require_session,
)
from lscs_core.core.security import APIKeyIssuer, KeyType
from lscs_core.core.token_validator import LocalJWTValidationStrategy, TokenValidationResult
from lscs_core.services.session import SessionWithMember
from tests.conftest import TEST_JWT_SECRET, make_settings

SESSION_ID = "d" * 64


def _session(expires_in: timedelta) -> SessionWithMember:
    now = datetime.now(timezone.utc)
    return SessionWithMember(
        id=SESSION_ID,
        member_id=3,
        created_at=now,
        expires_at=now + expires_in,
        last_activity=now,
        user_agent=None,
        ip_address=None,
        email="ct.rnd@dlsu.edu.ph",
        full_name="Member 3",
    )


def _identity_body(identity: Optional[RequestIdentity]):
    if identity is None:
        return {"anonymous": True}
    return {"email": identity.email, "member_id": identity.member_id, "session_id": identity.session_id}


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def sessions():
    service = MagicMock()
    service.get_session = AsyncMock(return_value=_session(timedelta(hours=20)))
    service.default_duration = MagicMock(return_value=timedelta(hours=24))
    service.should_extend_session = MagicMock(return_value=False)
    service.extend_session = AsyncMock()
    service.record_activity = AsyncMock()
    return service


@pytest.fixture
def rbac():
    service = MagicMock()
    service.can_access_api_key_management = AsyncMock(return_value=True)
    service.can_access_api_key_management_by_email = AsyncMock(return_value=True)
    service.can_edit_member = AsyncMock(return_value=True)
    return service


@pytest.fixture
def google_validator():
    validator = MagicMock()
    validator.validate = AsyncMock(
        return_value=TokenValidationResult(email="google@dlsu.edu.ph", claims={}, issuer="accounts.google.com")
    )
    return validator


@pytest.fixture
def app(settings, sessions, rbac, google_validator):
    app = FastAPI()
    app.state.settings = settings
    app.state.session_service = sessions
    app.state.rbac_service = rbac
    app.state.api_key_validator = LocalJWTValidationStrategy(TEST_JWT_SECRET)
    app.state.google_token_validator = google_validator

    async def fake_db():
        yield MagicMock()

    app.dependency_overrides[get_db] = fake_db

    @app.get("/session")
    async def session_route(identity: RequestIdentity = Depends(require_session)):
        return _identity_body(identity)

    @app.get("/optional")
    async def optional_route(identity: Optional[RequestIdentity] = Depends(optional_session)):
        return _identity_body(identity)

    @app.get("/api-key")
    async def api_key_route(identity: RequestIdentity = Depends(require_api_key)):
        return _identity_body(identity)

    @app.get("/consumer")
    async def consumer_route(identity: RequestIdentity = Depends(require_api_consumer)):
        return _identity_body(identity)

    @app.get("/google")
    async def google_route(identity: RequestIdentity = Depends(require_google_identity)):
        return _identity_body(identity)

    @app.get("/manage-keys")
    async def manage_route(identity: RequestIdentity = Depends(require_api_key_management)):
        return _identity_body(identity)

    @app.get("/members/{member_id}/edit")
    async def edit_route(member_id: int, identity: RequestIdentity = Depends(require_can_edit_member)):
        return _identity_body(identity)

    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def api_key():
    token, _ = APIKeyIssuer(make_settings()).generate("ct.rnd@dlsu.edu.ph", KeyType.DEV)
    return token


class TestRequireSession:
    def test_missing_cookie_is_unauthorized(self, client, sessions):
        response = client.get("/session")
        assert response.status_code == 401
        sessions.get_session.assert_not_called()

    def test_unknown_session_is_unauthorized(self, client, sessions):
        sessions.get_session.return_value = None
        client.cookies.set("session_id", SESSION_ID)
        assert client.get("/session").status_code == 401

    def test_valid_session_yields_identity(self, client, sessions):
        client.cookies.set("session_id", SESSION_ID)
        response = client.get("/session")

        assert response.status_code == 200
        assert response.json() == {"email": "ct.rnd@dlsu.edu.ph", "member_id": 3, "session_id": SESSION_ID}
        sessions.extend_session.assert_not_called()
        sessions.record_activity.assert_awaited_once_with(SESSION_ID)

    def test_near_expiry_session_is_extended(self, client, sessions):
        sessions.should_extend_session.return_value = True
        client.cookies.set("session_id", SESSION_ID)

        assert client.get("/session").status_code == 200
        sessions.extend_session.assert_awaited_once_with(SESSION_ID, timedelta(hours=24))

    def test_extension_failure_does_not_fail_request(self, client, sessions):
        sessions.should_extend_session.return_value = True
        sessions.extend_session.side_effect = RuntimeError("write failed")
        client.cookies.set("session_id", SESSION_ID)

        assert client.get("/session").status_code == 200

    def test_store_failure_rejects(self, client, sessions):
        sessions.get_session.side_effect = RuntimeError("db down")
        client.cookies.set("session_id", SESSION_ID)
        assert client.get("/session").status_code == 500

    def test_api_key_is_not_a_session(self, client, api_key):
        response = client.get("/session", headers={"Authorization": f"Bearer {api_key}"})
        assert response.status_code == 401


class TestOptionalSession:
    def test_anonymous(self, client):
        response = client.get("/optional")
        assert response.status_code == 200
        assert response.json() == {"anonymous": True}

    def test_expired_is_anonymous(self, client, sessions):
        sessions.get_session.return_value = None
        client.cookies.set("session_id", SESSION_ID)
        assert client.get("/optional").json() == {"anonymous": True}

    def test_signed_in(self, client):
        client.cookies.set("session_id", SESSION_ID)
        assert client.get("/optional").json()["member_id"] == 3


class TestRequireAPIKey:
    def test_missing_header(self, client):
        assert client.get("/api-key").status_code == 401

    def test_valid_key(self, client, api_key):
        response = client.get("/api-key", headers={"Authorization": f"Bearer {api_key}"})
        assert response.status_code == 200
        assert response.json() == {"email": "ct.rnd@dlsu.edu.ph", "member_id": None, "session_id": None}

    def test_invalid_key(self, client):
        response = client.get("/api-key", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_session_cookie_is_not_an_api_key(self, client):
        client.cookies.set("session_id", SESSION_ID)
        assert client.get("/api-key").status_code == 401


class TestRequireGoogleIdentity:
    def test_missing_header(self, client, google_validator):
        assert client.get("/google").status_code == 401
        google_validator.validate.assert_not_called()

    def test_valid_token(self, client):
        response = client.get("/google", headers={"Authorization": "Bearer google-id-token"})
        assert response.json()["email"] == "google@dlsu.edu.ph"

    def test_rejected_token(self, client, google_validator):
        google_validator.validate.side_effect = HTTPException(status_code=401, detail="Invalid ID token")
        response = client.get("/google", headers={"Authorization": "Bearer forged"})
        assert response.status_code == 401


class TestAuthorization:
    def test_consumer_allowed(self, client, api_key):
        response = client.get("/consumer", headers={"Authorization": f"Bearer {api_key}"})
        assert response.status_code == 200

    def test_consumer_forbidden_not_unauthorized(self, client, rbac, api_key):
        rbac.can_access_api_key_management_by_email.return_value = False
        response = client.get("/consumer", headers={"Authorization": f"Bearer {api_key}"})
        assert response.status_code == 403

    def test_key_management_requires_session_first(self, client, rbac):
        assert client.get("/manage-keys").status_code == 401
        rbac.can_access_api_key_management.assert_not_called()

    def test_key_management_forbidden(self, client, rbac):
        rbac.can_access_api_key_management.return_value = False
        client.cookies.set("session_id", SESSION_ID)
        assert client.get("/manage-keys").status_code == 403

    def test_edit_member_uses_path_target(self, client, rbac):
        client.cookies.set("session_id", SESSION_ID)
        assert client.get("/members/4/edit").status_code == 200
        assert rbac.can_edit_member.call_args.args[1:] == (3, 4)

    def test_edit_member_forbidden(self, client, rbac):
        rbac.can_edit_member.return_value = False
        client.cookies.set("session_id", SESSION_ID)
        assert client.get("/members/4/edit").status_code == 403
