"""
Request guard behaviour on a minimal app, independent of the database.
"""
import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from starlette.middleware.sessions import SessionMiddleware

from constants.permissions import Permission, Role
from services.permissions import PermissionPolicy
from utils.guards import (
    current_principal,
    token_principal,
    with_admin,
    with_auth,
    with_manager_or_admin,
    with_permission,
    with_role,
)
from utils.jwt import generate_token


async def _exploding_resolver(request: Request):
    raise RuntimeError("session store unavailable")


@pytest.fixture
def calls():
    return []


@pytest.fixture
def guarded_client(calls):
    app = FastAPI()
    app.add_middleware(SessionMiddleware, secret_key="guard-tests")

    @app.post("/session/{role}")
    async def start_session(request: Request, role: str):
        request.session["user"] = {"id": f"session-{role.lower()}", "email": "s@shop.com", "role": role}
        return {"ok": True}

    @app.post("/session-without-role")
    async def start_roleless_session(request: Request):
        request.session["user"] = {"id": "session-roleless", "email": "s@shop.com"}
        return {"ok": True}

    @app.get("/products")
    @with_permission("products", "read")
    async def read_products(request: Request):
        calls.append("products")
        return {"user": current_principal(request).user_id}

    @app.get("/users")
    @with_permission("users", "read")
    async def read_users(request: Request):
        calls.append("users")
        return {"ok": True}

    @app.get("/manager-area")
    @with_role("MANAGER")
    async def manager_area(request: Request):
        calls.append("manager-area")
        return {"payload": [1, 2, 3], "source": current_principal(request).source}

    @app.get("/admin-area")
    @with_admin
    async def admin_area(request: Request):
        calls.append("admin-area")
        return {"ok": True}

    @app.get("/staff-area")
    @with_manager_or_admin
    async def staff_area(request: Request):
        calls.append("staff-area")
        return {"ok": True}

    @app.get("/anyone")
    @with_auth
    async def anyone(request: Request, q: str = "x"):
        calls.append("anyone")
        return {"q": q, "role": current_principal(request).role}

    @app.get("/broken-session")
    @with_permission("products", "read", resolvers=(_exploding_resolver, token_principal))
    async def broken_session(request: Request):
        calls.append("broken-session")
        return {"ok": True}

    reports_for_users = PermissionPolicy(
        role_permissions={Role.USER: frozenset({Permission("reports", "read")})}
    )

    @app.get("/custom-policy")
    @with_permission("reports", "read", policy=reports_for_users)
    async def custom_policy(request: Request):
        calls.append("custom-policy")
        return {"ok": True}

    return TestClient(app)


def bearer(role: Role, user_id: str = "token-user") -> dict:
    return {"Authorization": f"Bearer {generate_token(user_id, 't@shop.com', role)}"}


def test_no_credentials_is_401_and_handler_not_called(guarded_client, calls):
    response = guarded_client.get("/products")

    assert response.status_code == 401
    assert response.json() == {"error": "No valid authentication found"}
    assert calls == []


def test_with_auth_reports_unauthorized(guarded_client, calls):
    response = guarded_client.get("/anyone")

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert calls == []


def test_invalid_token_is_401(guarded_client, calls):
    response = guarded_client.get("/products", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401
    assert calls == []


def test_user_token_lacking_permission_is_403(guarded_client, calls):
    response = guarded_client.get("/users", headers=bearer(Role.USER))

    assert response.status_code == 403
    assert response.json() == {"error": "Permission denied: read on users"}
    assert calls == []


def test_token_with_permission_reaches_handler(guarded_client, calls):
    response = guarded_client.get("/products", headers=bearer(Role.MANAGER, "m-1"))

    assert response.status_code == 200
    assert response.json() == {"user": "m-1"}
    assert calls == ["products"]


def test_token_in_cookie_is_accepted(guarded_client, calls):
    token = generate_token("c-1", "c@shop.com", Role.ADMIN)
    response = guarded_client.get("/products", headers={"Cookie": f"auth-token={token}"})

    assert response.status_code == 200
    assert response.json() == {"user": "c-1"}


def test_admin_session_passes_role_guard_and_result_is_unchanged(guarded_client, calls):
    guarded_client.post("/session/ADMIN")

    response = guarded_client.get("/manager-area")

    assert response.status_code == 200
    assert response.json() == {"payload": [1, 2, 3], "source": "session"}
    assert calls == ["manager-area"]


def test_role_guard_rejects_lower_role(guarded_client, calls):
    response = guarded_client.get("/manager-area", headers=bearer(Role.USER))

    assert response.status_code == 403
    assert response.json() == {"error": "Role MANAGER or higher required"}
    assert calls == []


def test_admin_and_staff_shorthands(guarded_client, calls):
    manager = bearer(Role.MANAGER)

    assert guarded_client.get("/admin-area", headers=manager).json() == {
        "error": "Role ADMIN or higher required"
    }
    assert guarded_client.get("/staff-area", headers=manager).status_code == 200
    assert guarded_client.get("/admin-area", headers=bearer(Role.ADMIN)).status_code == 200
    assert calls == ["staff-area", "admin-area"]


def test_session_takes_precedence_over_token(guarded_client, calls):
    guarded_client.post("/session/USER")

    response = guarded_client.get("/users", headers=bearer(Role.ADMIN))

    assert response.status_code == 403
    assert calls == []


def test_session_without_role_falls_back_to_token(guarded_client, calls):
    guarded_client.post("/session-without-role")

    response = guarded_client.get("/anyone", headers=bearer(Role.MANAGER))

    assert response.status_code == 200
    assert response.json() == {"q": "x", "role": "MANAGER"}


def test_token_with_unknown_role_is_forbidden(guarded_client, calls):
    response = guarded_client.get("/products", headers=bearer("SUPERUSER"))  # type: ignore[arg-type]

    assert response.status_code == 403
    assert calls == []


def test_guard_preserves_endpoint_parameters(guarded_client, calls):
    response = guarded_client.get("/anyone", params={"q": "shoes"}, headers=bearer(Role.USER))

    assert response.json() == {"q": "shoes", "role": "USER"}


def test_failing_resolver_is_skipped(guarded_client, calls):
    assert guarded_client.get("/broken-session").status_code == 401

    response = guarded_client.get("/broken-session", headers=bearer(Role.MANAGER))
    assert response.status_code == 200
    assert calls == ["broken-session"]


def test_injected_policy_is_used(guarded_client, calls):
    assert guarded_client.get("/custom-policy", headers=bearer(Role.USER)).status_code == 200
    assert guarded_client.get("/custom-policy", headers=bearer(Role.ADMIN)).status_code == 403


def test_handler_without_request_parameter_is_a_programming_error():
    app = FastAPI()

    @app.get("/oops")
    @with_auth
    async def oops():
        return {}

    with pytest.raises(TypeError):
        TestClient(app).get("/oops")
