"""
End-to-end tests for the search pipeline over the in-memory store.
"""

import asyncio
from datetime import timedelta

import pytest

from marketsearch.search import SearchConfig, SearchEngine
from marketsearch.search.errors import StoreError
from marketsearch.search.models import MatchMode, RequestContext

from tests.conftest import BASE_TIME, make_listing
from tests.fakes import InMemorySearchStore, run


def _search(engine, params, anonymous=True):
    request = engine.normalize(params)
    context = RequestContext(is_anonymous=anonymous, page=request.page, page_size=request.page_size)
    return run(engine.search(request, context, request_id="test")).to_dict()


@pytest.fixture
def iphone_store():
    listings = [
        make_listing("a1", "iPhone", price=10000, createdAt=BASE_TIME - timedelta(days=1)),
        make_listing("a2", "iPhone", price=25000, createdAt=BASE_TIME - timedelta(days=2)),
        make_listing("a3", "iPhone", price=15000, createdAt=BASE_TIME - timedelta(days=3)),
        make_listing("a4", "iPhone", price=5000, town="Mombasa"),
        make_listing("a5", "Sofa set", price=1000),
    ]
    return InMemorySearchStore(listings=listings)


@pytest.mark.parametrize("similarity_enabled", [True, False])
def test_price_ascending_example(iphone_store, similarity_enabled):
    iphone_store.similarity_enabled = similarity_enabled
    engine = SearchEngine(iphone_store)
    params = {"q": "iphone", "town": "Nairobi", "sort": "priceAsc", "pageSize": "2"}

    first = _search(engine, {**params, "page": "1"})
    second = _search(engine, {**params, "page": "2"})

    assert [item["price"] for item in first["items"]] == [10000, 15000]
    assert (first["total"], first["totalPages"], first["hasMore"]) == (3, 2, True)
    assert [item["price"] for item in second["items"]] == [25000]
    assert second["hasMore"] is False
    expected_mode = "capable" if similarity_enabled else "degraded"
    assert first["mode"] == second["mode"] == expected_mode


def test_empty_query_returns_full_default_sorted_page(engine):
    body = _search(engine, {})

    assert body["total"] == 7
    assert [item["id"] for item in body["items"]] == ["l07", "l02", "l03", "l01", "l04", "l05", "l06"]
    assert body["mode"] == "capable"


def test_items_never_exceed_page_size(engine):
    body = _search(engine, {"pageSize": "3"})

    assert len(body["items"]) == 3
    assert body["totalPages"] == 3
    assert body["hasMore"] is True


def test_page_beyond_last_is_empty_with_true_total(engine, store):
    body = _search(engine, {"q": "iphone", "page": "5", "pageSize": "2"})

    assert body["items"] == []
    assert body["hasMore"] is False
    assert body["total"] == 4
    assert body["totalPages"] == 2
    assert store.calls_to("count_matches") == [MatchMode.CAPABLE]


def test_first_page_needs_no_count_query(engine, store):
    _search(engine, {"q": "nothing-matches-this"})
    assert store.calls_to("count_matches") == []


def test_offset_beyond_result_window_counts_only(store):
    engine = SearchEngine(store, SearchConfig(max_result_window=10))

    body = _search(engine, {"page": "3", "pageSize": "10"})

    assert body["items"] == []
    assert body["total"] == 7
    assert store.calls_to("fetch_ranked") == []


def test_verified_only_never_returns_unverified_sellers(engine):
    body = _search(engine, {"verifiedOnly": "true"})

    assert {item["id"] for item in body["items"]} == {"l01", "l03", "l04", "l06"}
    assert all(item["sellerVerified"] for item in body["items"])
    assert body["applied"]["verifiedOnly"] is True


def test_badges_are_resolved_for_page_sellers_only(engine, store):
    body = _search(engine, {"q": "iphone", "sort": "priceDesc"})

    by_id = {item["id"]: item for item in body["items"]}
    assert by_id["l01"]["sellerBadges"] == {"verified": True, "tier": "gold"}
    assert by_id["l03"]["sellerBadges"] == {"verified": True, "tier": "diamond"}
    assert by_id["l02"]["sellerBadges"] == {"verified": False, "tier": "basic"}
    (requested,) = store.calls_to("fetch_sellers")
    assert set(requested) == {"s-verified", "s-plain", "s-diamond", "s-stamped"}


def test_search_is_idempotent(engine):
    params = {"q": "iphone", "sort": "featured"}
    assert _search(engine, params) == _search(engine, params)


def test_featured_first_sort(engine):
    body = _search(engine, {"q": "iphone", "sort": "featuredFirst"})
    assert body["items"][0]["id"] == "l03"


def test_degraded_matches_capable_order_for_exact_substring_rows(iphone_store):
    engine = SearchEngine(iphone_store)
    capable = _search(engine, {"q": "iphone"})

    iphone_store.similarity_enabled = False
    degraded = _search(engine, {"q": "iphone"})

    assert [i["id"] for i in degraded["items"]] == [i["id"] for i in capable["items"]]
    assert degraded["mode"] == "degraded"
    assert all(item["similarity"] is None for item in degraded["items"])


def test_synonyms_widen_capable_matches():
    store = InMemorySearchStore(
        listings=[make_listing("h1", "iPhone XR"), make_listing("h2", "Garden hose")],
        synonyms={"handset": ["iphone"]},
    )
    engine = SearchEngine(store)

    assert [item["id"] for item in _search(engine, {"q": "handset"})["items"]] == ["h1"]

    store.similarity_enabled = False
    assert _search(engine, {"q": "handset"})["items"] == []


def test_facets_do_not_depend_on_query_text(engine):
    assert _search(engine, {"q": "iphone"})["facets"] == _search(engine, {"q": "toyota"})["facets"]


def test_advisory_failures_do_not_fail_the_search(engine, store):
    store.failing.update({"fetch_synonyms", "fetch_sellers", "fetch_facet:town"})

    body = _search(engine, {"q": "iphone"})

    assert body["total"] == 4
    assert body["facets"]["towns"] == []
    assert body["facets"]["categories"] != []
    assert all(item["sellerBadges"] == {"verified": False, "tier": "basic"} for item in body["items"])


def test_ranked_query_failure_is_fatal(engine, store):
    store.failing.add("fetch_ranked")

    with pytest.raises(StoreError):
        _search(engine, {"q": "iphone"})


class BlockingFacetStore(InMemorySearchStore):
    """Facet queries never finish; the ranked query fails."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.facets_cancelled = 0
        self.failing.add("fetch_ranked")

    async def fetch_synonyms(self, term):
        # Let the facet queries start before ranking fails
        for _ in range(3):
            await asyncio.sleep(0)
        return await super().fetch_synonyms(term)

    async def fetch_facet(self, dimension, predicate, limit):
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.facets_cancelled += 1
            raise


def test_ranked_failure_cancels_and_reaps_facet_queries(listings):
    store = BlockingFacetStore(listings=listings)
    engine = SearchEngine(store)

    async def scenario():
        request = engine.normalize({"q": "iphone"})
        with pytest.raises(StoreError):
            await engine.search(request, RequestContext(True, 1, 20))
        return [task for task in asyncio.all_tasks() if task is not asyncio.current_task()]

    assert run(scenario()) == []
    assert store.facets_cancelled == 4


def test_cache_policy_follows_context(engine):
    request = engine.normalize({"page": "1"})
    private = run(engine.search(request, RequestContext(False, 1, 20)))
    public = run(engine.search(request, RequestContext(True, 1, 20)))

    assert not private.cache_policy.cacheable
    assert public.cache_policy.cacheable
