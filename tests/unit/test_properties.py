"""
Property-based tests for normalization, pagination and ranking invariants.
"""

import math

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from marketsearch.search import FilterNormalizer, SearchConfig, SearchEngine
from marketsearch.search.models import RequestContext
from marketsearch.search.pagination import total_pages

from tests.conftest import BASE_TIME, make_listing
from tests.fakes import InMemorySearchStore, run

raw_values = st.one_of(st.none(), st.text(max_size=12), st.integers(-1000, 1000).map(str))

raw_params = st.fixed_dictionaries(
    {},
    optional={
        "q": raw_values,
        "town": st.sampled_from(["Nairobi", "Mombasa", "", None]),
        "minPrice": raw_values,
        "maxPrice": raw_values,
        "condition": st.sampled_from(["new", "used", "any", "junk", None]),
        "sort": st.sampled_from(["newest", "priceAsc", "priceDesc", "featured", "junk", None]),
        "verifiedOnly": st.sampled_from(["1", "true", "no", None]),
        "page": raw_values,
        "pageSize": raw_values,
    },
)


@given(raw_params)
def test_normalizer_always_produces_bounded_request(params):
    request = FilterNormalizer(SearchConfig()).normalize(params)

    assert request.page >= 1
    assert 1 <= request.page_size <= 50
    assert request.query_text == request.query_text.strip()
    assert not any("A" <= c <= "Z" for c in request.query_text)
    if request.price_min is not None:
        assert request.price_min >= 0
    if request.price_max is not None:
        assert request.price_max >= 0
    if request.price_min is not None and request.price_max is not None:
        assert request.price_min <= request.price_max


@given(st.integers(0, 10_000), st.integers(1, 50))
def test_total_pages_formula(total, page_size):
    assert total_pages(total, page_size) == max(1, math.ceil(total / page_size))


def _store():
    titles = ["iPhone 12", "iphone case", "Samsung phone", "Sofa", "Used iPhone", "Laptop bag"]
    listings = [
        make_listing(
            f"p{i:02d}",
            titles[i % len(titles)],
            price=(i * 7919) % 50000 if i % 5 else None,
            town=["Nairobi", "Mombasa", None][i % 3],
            featured=i % 4 == 0,
            createdAt=BASE_TIME,
            sellerId=["s1", "s2", None][i % 3],
        )
        for i in range(30)
    ]
    sellers = {"s1": {"verified": "yes"}, "s2": {"plan": "gold"}}
    return InMemorySearchStore(listings=listings, sellers=sellers, synonyms={"phone": ["iphone"]})


search_params = st.fixed_dictionaries(
    {},
    optional={
        "q": st.sampled_from(["", "iphone", "phone", "sofa", "zzz"]),
        "town": st.sampled_from(["Nairobi", "Mombasa"]),
        "sort": st.sampled_from(["newest", "priceAsc", "priceDesc", "featured"]),
        "verifiedOnly": st.sampled_from(["1", "0"]),
        "page": st.integers(1, 8).map(str),
        "pageSize": st.integers(1, 12).map(str),
    },
)


@settings(max_examples=60, suppress_health_check=[HealthCheck.too_slow], deadline=None)
@given(search_params, st.booleans())
def test_search_page_invariants(params, similarity_enabled):
    store = _store()
    store.similarity_enabled = similarity_enabled
    engine = SearchEngine(store)
    request = engine.normalize(params)
    context = RequestContext(is_anonymous=True, page=request.page, page_size=request.page_size)

    body = run(engine.search(request, context)).to_dict()

    assert 0 <= len(body["items"]) <= body["pageSize"]
    assert body["totalPages"] == max(1, math.ceil(body["total"] / body["pageSize"]))
    assert body["hasMore"] == (body["page"] < body["totalPages"])
    if body["page"] > body["totalPages"]:
        assert body["items"] == []
    if request.verified_only:
        assert all(item["sellerVerified"] for item in body["items"])
    for item in body["items"]:
        assert item["sellerVerified"] == item["sellerBadges"]["verified"]
        assert item["sellerFeaturedTier"] == item["sellerBadges"]["tier"]
        if similarity_enabled:
            assert 0.0 <= item["similarity"] <= 1.0
        else:
            assert item["similarity"] is None

    # Same request, same bytes
    assert run(engine.search(request, context)).to_dict() == body
