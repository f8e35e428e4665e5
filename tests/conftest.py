"""
Pytest configuration and shared fixtures
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Make the repository root importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent))

from marketsearch.search import SearchConfig, SearchEngine  # noqa: E402
from marketsearch.search.models import RequestContext  # noqa: E402

from tests.fakes import InMemorySearchStore  # noqa: E402

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_listing(listing_id: str, title: str, **overrides):
    row = {
        "id": listing_id,
        "title": title,
        "description": "",
        "price": 1000,
        "image": f"https://img.example.com/{listing_id}.jpg",
        "town": "Nairobi",
        "category": "Phones",
        "brand": None,
        "condition": "pre-owned",
        "featured": False,
        "createdAt": BASE_TIME,
        "sellerId": "s-plain",
    }
    row.update(overrides)
    return row


@pytest.fixture
def sellers():
    return {
        "s-verified": {"isSellerVerified": "yes", "plan": "GOLD"},
        "s-diamond": {"verified": True, "subscription": {"name": "Diamond plan"}},
        "s-plain": {"name": "No trust fields"},
        "s-stamped": {"verifiedAt": "2024-01-02T00:00:00Z", "tier": "basic"},
        "s-unverified": {"isVerified": "unverified", "verifiedAt": "2024-01-02T00:00:00Z"},
    }


@pytest.fixture
def listings():
    return [
        make_listing(
            "l01", "iPhone 12 Pro 128GB", price=10000, brand="Apple",
            createdAt=BASE_TIME - timedelta(days=3), sellerId="s-verified",
        ),
        make_listing(
            "l02", "iPhone 13 mini", price=25000, brand="Apple",
            createdAt=BASE_TIME - timedelta(days=1), sellerId="s-plain",
        ),
        make_listing(
            "l03", "Used iphone 11", price=15000, brand="Apple",
            createdAt=BASE_TIME - timedelta(days=2), sellerId="s-diamond", featured=True,
        ),
        make_listing(
            "l04", "iPhone XR", price=8000, brand="Apple", town="Mombasa",
            createdAt=BASE_TIME - timedelta(days=4), sellerId="s-stamped",
        ),
        make_listing(
            "l05", "Samsung Galaxy S21", price=30000, brand="Samsung",
            description="Comes with a case", condition="brand new",
            createdAt=BASE_TIME - timedelta(days=5), sellerId="s-unverified",
        ),
        make_listing(
            "l06", "Toyota Vitz 2012", price=650000, category="Cars", brand="Toyota",
            town="Kisumu", createdAt=BASE_TIME - timedelta(days=6), sellerId="s-verified",
        ),
        make_listing(
            "l07", "Wooden dining table", price=None, category="Furniture", town=None,
            condition="Brand New", createdAt=BASE_TIME, sellerId=None,
        ),
    ]


@pytest.fixture
def synonyms():
    return {"phone": ["smartphone", "iphone", "Phone", ""]}


@pytest.fixture
def store(listings, sellers, synonyms):
    return InMemorySearchStore(listings=listings, sellers=sellers, synonyms=synonyms)


@pytest.fixture
def config():
    return SearchConfig()


@pytest.fixture
def engine(store, config):
    return SearchEngine(store, config)


@pytest.fixture
def anonymous_context():
    def _context(request):
        return RequestContext(is_anonymous=True, page=request.page, page_size=request.page_size)

    return _context
