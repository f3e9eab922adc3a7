from datetime import datetime, timedelta

from marketplace.api.routes.services import record_views
from marketplace.db.base import utcnow
from marketplace.db.models.service import Service


def _ids(resp):
    return [s["id"] for s in resp.json()["data"]["services"]]


def test_only_active_and_verified_listings_are_returned(client, provider, make_service):
    visible = make_service(provider)
    make_service(provider, status="pending_review")
    make_service(provider, status="suspended")
    make_service(provider, is_verified=False)

    resp = client.get("/api/services")

    assert resp.status_code == 200
    assert _ids(resp) == [visible.id]
    for service in resp.json()["data"]["services"]:
        assert service["status"] == "active"
        assert service["isVerified"] is True


def test_filters_are_all_applied(client, provider, make_service):
    match = make_service(
        provider,
        category="automotive",
        service_area={"cities": ["Trondheim", "Oslo"]},
        pricing={"type": "fixed", "amount": 300},
        rating_average=4.5,
        rating_count=2,
    )
    make_service(provider, category="automotive", service_area={"cities": ["Bergen"]}, pricing={"type": "fixed", "amount": 300}, rating_average=4.5)
    make_service(provider, category="automotive", service_area={"cities": ["Oslo"]}, pricing={"type": "fixed", "amount": 900}, rating_average=4.5)
    make_service(provider, category="automotive", service_area={"cities": ["Oslo"]}, pricing={"type": "fixed", "amount": 300}, rating_average=2.0)
    make_service(provider, category="healthcare", service_area={"cities": ["Oslo"]}, pricing={"type": "fixed", "amount": 300}, rating_average=4.5)

    resp = client.get(
        "/api/services",
        params={"category": "automotive", "city": "trond", "minPrice": 100, "maxPrice": 500, "rating": 4},
    )

    assert resp.status_code == 200
    assert _ids(resp) == [match.id]


def test_city_filter_is_case_insensitive_substring(client, provider, make_service):
    oslo = make_service(provider, service_area={"cities": ["Oslo"]})
    make_service(provider, service_area={"cities": ["Bergen"]})

    resp = client.get("/api/services", params={"city": "SL"})

    assert _ids(resp) == [oslo.id]


def test_city_filter_treats_wildcards_literally(client, provider, make_service):
    make_service(provider, service_area={"cities": ["Oslo"]})

    resp = client.get("/api/services", params={"city": "%"})

    assert _ids(resp) == []


def test_inverted_price_range_is_empty_not_an_error(client, provider, make_service):
    make_service(provider, pricing={"type": "fixed", "amount": 75})

    resp = client.get("/api/services", params={"minPrice": 100, "maxPrice": 50})

    assert resp.status_code == 200
    assert _ids(resp) == []
    assert resp.json()["data"]["pagination"]["totalPages"] == 0


def test_sort_orders(client, provider, make_service):
    cheap = make_service(provider, pricing={"type": "fixed", "amount": 100}, rating_average=3.0, created_at=datetime(2024, 1, 1))
    mid = make_service(provider, pricing={"type": "fixed", "amount": 200}, rating_average=5.0, created_at=datetime(2024, 3, 1))
    pricey = make_service(provider, pricing={"type": "fixed", "amount": 300}, rating_average=4.0, created_at=datetime(2024, 2, 1))

    def ids_for(sort):
        return _ids(client.get("/api/services", params={"sort": sort}))

    assert ids_for("price_asc") == [cheap.id, mid.id, pricey.id]
    assert ids_for("price_desc") == [pricey.id, mid.id, cheap.id]
    assert ids_for("rating_desc") == [mid.id, pricey.id, cheap.id]
    assert ids_for("newest") == [mid.id, pricey.id, cheap.id]
    assert ids_for("oldest") == [cheap.id, pricey.id, mid.id]
    # default is newest
    assert _ids(client.get("/api/services")) == [mid.id, pricey.id, cheap.id]


def test_invalid_query_values_are_validation_errors(client):
    resp = client.get("/api/services", params={"sort": "random", "limit": 500})

    assert resp.status_code == 400
    fields = {e["field"] for e in resp.json()["errors"]}
    assert fields == {"sort", "limit"}


def test_pagination_metadata_counts_regular_listings_only(client, provider, make_service):
    for i in range(5):
        make_service(provider, created_at=datetime(2024, 1, i + 1))
    featured = make_service(provider, is_featured=True, featured_until=utcnow() + timedelta(days=3))

    first = client.get("/api/services", params={"limit": 2, "page": 1}).json()["data"]
    second = client.get("/api/services", params={"limit": 2, "page": 2}).json()["data"]
    last = client.get("/api/services", params={"limit": 2, "page": 3}).json()["data"]

    assert first["pagination"] == {
        "currentPage": 1,
        "totalPages": 3,
        "totalServices": 6,
        "hasNextPage": True,
        "hasPrevPage": False,
    }
    assert second["pagination"]["hasPrevPage"] is True
    assert last["pagination"]["hasNextPage"] is False

    # featured listing sits on top of every page
    for page in (first, second, last):
        assert page["services"][0]["id"] == featured.id
    assert len(first["services"]) == 3
    assert len(last["services"]) == 2


def test_expired_feature_is_listed_as_regular(client, provider, make_service):
    expired = make_service(provider, is_featured=True, featured_until=utcnow() - timedelta(days=1), created_at=datetime(2024, 1, 1))
    newer = make_service(provider, created_at=datetime(2024, 6, 1))

    resp = client.get("/api/services")

    assert _ids(resp) == [newer.id, expired.id]


def test_featured_are_ordered_by_expiry(client, provider, make_service):
    soon = make_service(provider, is_featured=True, featured_until=utcnow() + timedelta(days=1))
    later = make_service(provider, is_featured=True, featured_until=utcnow() + timedelta(days=10))

    resp = client.get("/api/services")

    assert _ids(resp) == [later.id, soon.id]


def test_listing_bumps_view_counts(client, db, provider, make_service):
    first = make_service(provider)
    second = make_service(provider)

    client.get("/api/services")
    client.get("/api/services")

    db.expire_all()
    assert db.get(Service, first.id).view_count == 2
    assert db.get(Service, second.id).view_count == 2


def test_invalid_token_does_not_block_public_listing(client, provider, make_service):
    make_service(provider)

    resp = client.get("/api/services", headers={"Authorization": "Bearer not-a-jwt"})

    assert resp.status_code == 200
    assert len(resp.json()["data"]["services"]) == 1


class _BrokenSession:
    def __init__(self):
        self.rolled_back = False
        self.closed = False

    def query(self, *args):
        raise RuntimeError("connection reset")

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


def test_view_recording_failures_are_swallowed(caplog):
    session = _BrokenSession()

    record_views(lambda: session, [1, 2])

    assert session.rolled_back and session.closed
    assert "Could not record views" in caplog.text
