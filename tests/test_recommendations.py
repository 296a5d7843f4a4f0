"""Tests for history-driven product recommendations and product row mapping."""

from __future__ import annotations

from shopfront.domain.models.product import PLACEHOLDER_IMAGE, Product
from shopfront.domain.repositories.product_repo import ProductRepo
from shopfront.domain.services.browsing_history_svc import BrowsingHistoryTracker
from shopfront.domain.services.recommendation_svc import get_recommendations_svc, rank_by_preference


def test_product_row_defaults():
    product = Product.from_row({"id": 7, "name": "Mystery", "price": None, "in_stock": None,
                                "image": None, "rating": None, "reviews": None, "original_price": 0})

    assert product.id == "7"
    assert product.image == PLACEHOLDER_IMAGE
    assert product.in_stock is True
    assert product.rating == 0.0
    assert product.reviews == 0
    assert product.original_price is None
    assert product.description == ""


def test_product_row_keeps_explicit_out_of_stock():
    assert Product.from_row({"id": "x", "name": "X", "in_stock": False}).in_stock is False


def test_rank_by_preference_orders_by_category_then_rating():
    pool = [
        Product(id="a", name="a", category="home", rating=4.0),
        Product(id="b", name="b", category="tech", rating=3.0),
        Product(id="c", name="c", category="fashion", rating=5.0),
        Product(id="d", name="d", category="tech", rating=4.5),
    ]

    ranked = rank_by_preference(pool, ["tech", "home"])

    assert [p.id for p in ranked] == ["d", "b", "a", "c"]


async def test_anonymous_recommendations_use_rating_order(gateway, identity):
    history = BrowsingHistoryTracker(gateway, identity)

    result = await get_recommendations_svc(history, ProductRepo(gateway), limit=3)

    assert result.personalized is False
    assert [p.id for p in result.items] == ["p-lamp", "p-laptop", "p-phone"]
    assert all(p.in_stock for p in result.items)


async def test_recommendations_follow_preferred_categories(gateway, signed_in, clock):
    history = BrowsingHistoryTracker(gateway, signed_in, clock=clock)
    for pid in ("p-tee", "p-tee", "p-laptop"):
        await history.record_view(pid)

    result = await get_recommendations_svc(
        history, ProductRepo(gateway), current_product_id="p-laptop", limit=4,
    )

    assert result.personalized is True
    assert result.preferred_categories == ["fashion", "tech"]
    assert [p.id for p in result.items] == ["p-tee", "p-phone", "p-lamp"]
    assert result.source_product_id == "p-laptop"
    assert result.count == 3


async def test_recommendations_empty_on_catalog_failure(gateway, identity):
    history = BrowsingHistoryTracker(gateway, identity)
    gateway.fail("products.select")

    result = await get_recommendations_svc(history, ProductRepo(gateway))

    assert result.items == []
    assert result.count == 0
