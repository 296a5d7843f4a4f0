"""Shared fixtures: in-memory gateway with a small catalog, identities and clocks."""

from __future__ import annotations

import os
from typing import Any

# Settings require Mongo coordinates; tests never connect.
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGO_DB", "shopfront_test")
os.environ.setdefault("REDIS_URL", "")

import pytest  # noqa: E402

from shopfront.core.identity import IdentityProvider  # noqa: E402
from shopfront.domain.services.notices import NoticeSink  # noqa: E402
from tests.support.auth import make_auth  # noqa: E402
from tests.support.clock import FrozenClock  # noqa: E402
from tests.support.in_memory_gateway import InMemoryTableGateway  # noqa: E402

CATALOG: list[dict[str, Any]] = [
    {"id": "p-laptop", "name": "Ultrabook 14", "brand": "Acme", "price": 999.0, "category": "tech",
     "in_stock": True, "rating": 4.6, "reviews": 120},
    {"id": "p-phone", "name": "Pocket Phone", "brand": "Acme", "price": 499.0, "category": "tech",
     "in_stock": True, "rating": 4.2, "reviews": 80},
    {"id": "p-lamp", "name": "Desk Lamp", "brand": "Glow", "price": 39.0, "category": "home",
     "in_stock": True, "rating": 4.8, "reviews": 15},
    {"id": "p-sofa", "name": "Corner Sofa", "brand": "Nest", "price": 1299.0, "category": "home",
     "in_stock": False, "rating": 4.9, "reviews": 7},
    {"id": "p-tee", "name": "Cotton Tee", "brand": "Loom", "price": 19.0, "category": "fashion",
     "in_stock": True, "rating": 3.9, "reviews": 300},
    {"id": "p-bare", "name": "Mystery Box", "price": None, "category": None, "in_stock": None,
     "rating": None, "reviews": None, "image": None, "description": None},
]


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def gateway() -> InMemoryTableGateway:
    gw = InMemoryTableGateway()
    gw.seed("products", CATALOG)
    return gw


@pytest.fixture
def notices() -> NoticeSink:
    return NoticeSink()


@pytest.fixture
def identity(clock: FrozenClock) -> IdentityProvider:
    return IdentityProvider(clock)


@pytest.fixture
def signed_in(identity: IdentityProvider, clock: FrozenClock) -> IdentityProvider:
    identity.sign_in(make_auth(clock))
    return identity
