"""HTTP surface tests: routers wired to in-memory storage through dependency overrides."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from shopfront.api.deps import gateway_dep, get_session_registry
from shopfront.domain.services.session_svc import SessionRegistry, UserSession
from shopfront.main import app
from tests.support.auth import make_auth
from tests.support.clock import FrozenClock
from tests.support.in_memory_gateway import InMemoryTableGateway

UI = {"X-Session-Id": "ui-1"}


@pytest.fixture
def registry(gateway: InMemoryTableGateway, clock: FrozenClock) -> SessionRegistry:
    return SessionRegistry(lambda sid: UserSession(sid, gateway, clock=clock))


@pytest.fixture
def client(gateway: InMemoryTableGateway, registry: SessionRegistry) -> Iterator[TestClient]:
    # no context manager: the lifespan (Mongo/Redis connect) must not run
    app.dependency_overrides[gateway_dep] = lambda: gateway
    app.dependency_overrides[get_session_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(gateway: InMemoryTableGateway, clock: FrozenClock) -> dict[str, str]:
    auth = make_auth(clock)
    gateway.seed("sessions", [
        {"access_token": auth.access_token, "user_id": auth.user_id, "expires_at": auth.expires_at},
    ])
    return {**UI, "Authorization": f"Bearer {auth.access_token}"}


def test_anonymous_wishlist_toggle_asks_to_sign_in(client, gateway):
    response = client.post("/wishlist/p-lamp/toggle", headers=UI)

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is False
    assert body["status"] == "unauthenticated"
    assert body["member"] is False
    assert [n["level"] for n in body["notices"]] == ["error"]
    assert gateway.rows("wishlists") == []


def test_wishlist_toggle_round_trip(client, gateway, auth_headers):
    added = client.post("/wishlist/p-lamp/toggle", headers=auth_headers).json()
    assert added["ok"] is True
    assert added["member"] is True
    assert gateway.rows("wishlists", user_id="user-1", product_id="p-lamp")

    assert client.get("/wishlist", headers=auth_headers).json()["items"] == ["p-lamp"]
    assert client.get("/wishlist/p-lamp", headers=auth_headers).json()["member"] is True
    products = client.get("/wishlist/products", headers=auth_headers).json()
    assert [p["name"] for p in products["items"]] == ["Desk Lamp"]

    removed = client.post("/wishlist/p-lamp/toggle", headers=auth_headers).json()
    assert removed["member"] is False
    assert gateway.rows("wishlists") == []


def test_login_loads_existing_wishlist(client, gateway, auth_headers):
    gateway.seed("wishlists", [{"user_id": "user-1", "product_id": "p-tee"}])

    body = client.get("/wishlist", headers=auth_headers).json()

    assert body["items"] == ["p-tee"]
    assert body["count"] == 1


def test_unknown_token_is_anonymous(client):
    body = client.get("/session", headers={**UI, "Authorization": "Bearer nope"}).json()

    assert body["authenticated"] is False
    assert body["user_id"] is None


def test_compare_flow(client):
    for pid in ("p-laptop", "p-phone"):
        assert client.post(f"/compare/{pid}", headers=UI).status_code == 200

    duplicate = client.post("/compare/p-phone", headers=UI).json()
    assert duplicate["count"] == 2
    assert duplicate["notices"][0]["title"] == "Already in compare"

    client.post("/compare/p-lamp", headers=UI)
    full = client.post("/compare/p-tee", headers=UI).json()
    assert [p["id"] for p in full["items"]] == ["p-laptop", "p-phone", "p-lamp"]
    assert full["notices"][0]["title"] == "Compare limit reached"
    assert full["max_items"] == 3

    after_remove = client.delete("/compare/p-phone", headers=UI).json()
    assert [p["id"] for p in after_remove["items"]] == ["p-laptop", "p-lamp"]

    opened = client.put("/compare/panel", params={"open": "true"}, headers=UI).json()
    assert opened["is_open"] is True

    cleared = client.delete("/compare", headers=UI).json()
    assert cleared["items"] == []
    assert cleared["is_open"] is True


def test_compare_unknown_product_is_404(client):
    assert client.post("/compare/p-missing", headers=UI).status_code == 404


def test_compare_catalog_failure_is_503(client, gateway):
    gateway.fail("products.select")

    assert client.post("/compare/p-lamp", headers=UI).status_code == 503


def test_compare_without_session_header_is_not_kept(client, registry):
    client.post("/compare/p-lamp")

    assert client.get("/compare").json()["items"] == []
    assert len(registry) == 0


def test_history_views_and_derived_lists(client, auth_headers, clock):
    for pid in ("p-lamp", "p-laptop", "p-laptop"):
        assert client.post(f"/history/{pid}/view", headers=auth_headers).json()["ok"] is True
        clock.advance(minutes=1)

    recent = client.get("/history/recent", headers=auth_headers).json()
    assert [i["product_id"] for i in recent["items"]] == ["p-laptop", "p-lamp"]
    assert recent["items"][0]["product"]["name"] == "Ultrabook 14"

    most = client.get("/history/most-viewed", params={"limit": 1}, headers=auth_headers).json()
    assert [(i["product_id"], i["view_count"]) for i in most["items"]] == [("p-laptop", 2)]

    categories = client.get("/history/categories", headers=auth_headers).json()
    assert categories["items"] == ["home", "tech"]


def test_anonymous_view_is_not_recorded(client, gateway):
    body = client.post("/history/p-lamp/view", headers=UI).json()

    assert body["status"] == "unauthenticated"
    assert gateway.rows("browsing_history") == []


def test_recommendations_exclude_current_product(client, auth_headers):
    client.post("/history/p-tee/view", headers=auth_headers)

    body = client.get(
        "/recommendations", params={"current_product_id": "p-tee", "limit": 2}, headers=auth_headers,
    ).json()

    assert body["personalized"] is True
    assert body["preferred_categories"] == ["fashion"]
    assert [p["id"] for p in body["items"]] == ["p-lamp", "p-laptop"]


def test_sign_out_discards_ui_session(client, registry, auth_headers):
    client.post("/wishlist/p-lamp/toggle", headers=auth_headers)
    client.post("/compare/p-lamp", headers=auth_headers)
    assert "ui-1" in registry

    body = client.delete("/session", headers=UI).json()

    assert body == {"signed_out": True, "session_closed": True}
    assert "ui-1" not in registry
    fresh = client.get("/session", headers=UI).json()
    assert fresh["wishlist_count"] == 0
    assert fresh["compare_count"] == 0
