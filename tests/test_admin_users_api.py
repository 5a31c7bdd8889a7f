"""
Admin user management: guarded listing and role changes.
"""
import pytest
from conftest import login, login_admin, register


def test_listing_requires_authentication(client):
    client.cookies.clear()

    response = client.get("/api/v1/admin/users")

    assert response.status_code == 401
    assert response.json() == {"error": "No valid authentication found"}


@pytest.mark.parametrize("params", [{"page": "0"}, {"limit": "500"}, {"role": "OWNER"}, {"page": "abc"}])
def test_listing_checks_credentials_before_query(client, params):
    client.cookies.clear()

    response = client.get("/api/v1/admin/users", params=params)

    assert response.status_code == 401
    assert response.json() == {"error": "No valid authentication found"}


@pytest.mark.parametrize("body", [["MANAGER"], "MANAGER", {"role": "OWNER"}])
def test_role_update_checks_credentials_before_body(client, body):
    client.cookies.clear()

    response = client.patch("/api/v1/admin/users/anyone", json=body)

    assert response.status_code == 401
    assert response.json() == {"error": "No valid authentication found"}


def test_customer_is_forbidden_before_query_is_checked(client):
    register(client, "Nia", "nia@shop.com")
    login(client, "nia@shop.com", "Customer123")

    response = client.get("/api/v1/admin/users", params={"page": "0"})

    assert response.status_code == 403
    assert response.json() == {"error": "Permission denied: read on users"}


@pytest.mark.parametrize(
    "params, message",
    [
        ({"page": "0"}, "Input should be greater than or equal to 1"),
        ({"limit": "101"}, "Input should be less than or equal to 100"),
        ({"role": "OWNER"}, "Input should be 'USER', 'MANAGER' or 'ADMIN'"),
    ],
)
def test_admin_gets_400_for_bad_query(client, params, message):
    login_admin(client)

    response = client.get("/api/v1/admin/users", params=params)

    assert response.status_code == 400
    assert response.json() == {"error": message}


def test_customer_cannot_list_users(client):
    register(client, "Cara", "cara@shop.com")
    token = login(client, "cara@shop.com", "Customer123")
    client.cookies.clear()

    response = client.get("/api/v1/admin/users", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403
    assert response.json() == {"error": "Permission denied: read on users"}


def test_admin_lists_users_with_pagination_and_filters(client):
    register(client, "Dana Smith", "dana@shop.com")
    register(client, "Eli Jones", "eli@shop.com")
    login_admin(client)

    response = client.get("/api/v1/admin/users", params={"limit": 2})
    assert response.status_code == 200
    body = response.json()
    assert body["pagination"] == {
        "page": 1,
        "limit": 2,
        "total": 3,
        "pages": 2,
        "hasNextPage": True,
        "hasPreviousPage": False,
    }
    assert len(body["users"]) == 2

    searched = client.get("/api/v1/admin/users", params={"search": "SMITH"}).json()
    assert [u["email"] for u in searched["users"]] == ["dana@shop.com"]

    admins = client.get("/api/v1/admin/users", params={"role": "ADMIN"}).json()
    assert [u["role"] for u in admins["users"]] == ["ADMIN"]


def test_admin_promotes_customer(client):
    customer = register(client, "Finn", "finn@shop.com")
    login_admin(client)

    response = client.patch(f"/api/v1/admin/users/{customer['id']}", json={"role": "MANAGER"})

    assert response.status_code == 200
    assert response.json()["message"] == "User role updated successfully"
    assert response.json()["user"]["role"] == "MANAGER"


def test_admin_cannot_change_own_role(client):
    login_admin(client)
    me = client.get("/api/v1/auth/me").json()["user"]

    response = client.patch(f"/api/v1/admin/users/{me['id']}", json={"role": "USER"})

    assert response.status_code == 403
    assert response.json() == {"error": "Cannot modify your own role"}


def test_admin_cannot_change_another_admins_role(client):
    other = register(client, "Gil", "gil@shop.com")
    login_admin(client)
    assert client.patch(f"/api/v1/admin/users/{other['id']}", json={"role": "ADMIN"}).status_code == 200

    response = client.patch(f"/api/v1/admin/users/{other['id']}", json={"role": "USER"})

    assert response.status_code == 403
    assert response.json() == {"error": "Cannot modify admin user roles"}


def test_invalid_role_is_rejected(client):
    customer = register(client, "Hal", "hal@shop.com")
    login_admin(client)

    response = client.patch(f"/api/v1/admin/users/{customer['id']}", json={"role": "OWNER"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid role specified"}


def test_malformed_role_body_is_rejected(client):
    customer = register(client, "Ola", "ola@shop.com")
    login_admin(client)

    as_list = client.patch(f"/api/v1/admin/users/{customer['id']}", json=["MANAGER"])
    not_json = client.patch(
        f"/api/v1/admin/users/{customer['id']}",
        content=b"role=MANAGER",
        headers={"Content-Type": "application/json"},
    )

    assert as_list.status_code == 400
    assert not_json.status_code == 400
    assert not_json.json() == {"error": "Invalid role specified"}


def test_unknown_user_is_404(client):
    login_admin(client)

    response = client.patch("/api/v1/admin/users/does-not-exist", json={"role": "USER"})

    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_manager_cannot_change_roles(client):
    manager = register(client, "Ivy", "ivy@shop.com")
    target = register(client, "Jon", "jon@shop.com")
    login_admin(client)
    client.patch(f"/api/v1/admin/users/{manager['id']}", json={"role": "MANAGER"})

    login(client, "ivy@shop.com", "Customer123")
    response = client.patch(f"/api/v1/admin/users/{target['id']}", json={"role": "MANAGER"})

    assert response.status_code == 403
    assert response.json() == {"error": "Permission denied: update on users"}


def test_navigation_per_role(client):
    manager = register(client, "Kim", "kim@shop.com")
    register(client, "Lou", "lou@shop.com")
    login_admin(client)
    admin_nav = client.get("/api/v1/admin/navigation").json()
    client.patch(f"/api/v1/admin/users/{manager['id']}", json={"role": "MANAGER"})

    assert [i["name"] for i in admin_nav["items"]] == [
        "Dashboard", "Products", "Orders", "Customers", "Reports", "Users", "Settings",
    ]

    login(client, "kim@shop.com", "Customer123")
    manager_nav = client.get("/api/v1/admin/navigation").json()
    assert manager_nav["role"] == "MANAGER"
    assert [i["name"] for i in manager_nav["items"]] == ["Dashboard", "Products", "Orders", "Customers"]
    assert "users:read" not in manager_nav["permissions"]

    login(client, "lou@shop.com", "Customer123")
    customer_nav = client.get("/api/v1/admin/navigation").json()
    assert customer_nav["items"] == []
    assert "cart:manage" in customer_nav["permissions"]
