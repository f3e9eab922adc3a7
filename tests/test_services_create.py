from marketplace.db.models.service import Service


def _count_services(db):
    db.expire_all()
    return db.query(Service).count()


def test_verified_provider_creates_listing_pending_review(client, db, provider, auth_headers, service_payload):
    service_payload["status"] = "active"
    service_payload["isVerified"] = True
    service_payload["viewCount"] = 999

    resp = client.post("/api/services", json=service_payload, headers=auth_headers(provider))

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Service created successfully and pending review"

    service = body["data"]["service"]
    assert service["status"] == "pending_review"
    assert service["isVerified"] is False
    assert service["viewCount"] == 0
    assert service["providerId"] == provider.id
    assert service["provider"]["businessName"] == "Clean Co"
    assert service["pricing"] == {"type": "hourly", "amount": 450.0, "currency": "NOK", "additionalFees": []}
    assert service["serviceArea"]["cities"] == ["Bergen", "Oslo"]
    assert service["serviceArea"]["maxDistance"] == 30
    assert _count_services(db) == 1


def test_short_title_is_rejected_and_not_persisted(client, db, provider, auth_headers, service_payload):
    service_payload["title"] = "Mow!"

    resp = client.post("/api/services", json=service_payload, headers=auth_headers(provider))

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert [e["field"] for e in body["errors"]] == ["title"]
    assert _count_services(db) == 0


def test_title_is_trimmed_before_length_check(client, provider, auth_headers, service_payload):
    service_payload["title"] = "   Mow    "

    resp = client.post("/api/services", json=service_payload, headers=auth_headers(provider))

    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "title"


def test_every_violated_field_is_reported(client, provider, auth_headers):
    payload = {
        "title": "Bad",
        "description": "too short",
        "category": "space_travel",
        "pricing": {"type": "free", "amount": -1},
        "serviceArea": {"cities": []},
    }

    resp = client.post("/api/services", json=payload, headers=auth_headers(provider))

    assert resp.status_code == 400
    fields = {e["field"] for e in resp.json()["errors"]}
    assert fields == {
        "title",
        "description",
        "category",
        "pricing.type",
        "pricing.amount",
        "serviceArea.cities",
    }


def test_customer_cannot_create(client, db, customer, auth_headers, service_payload):
    resp = client.post("/api/services", json=service_payload, headers=auth_headers(customer))

    assert resp.status_code == 403
    assert resp.json()["success"] is False
    assert _count_services(db) == 0


def test_unverified_provider_cannot_create(client, db, make_user, auth_headers, service_payload):
    unverified = make_user(is_verified=False)

    resp = client.post("/api/services", json=service_payload, headers=auth_headers(unverified))

    assert resp.status_code == 403
    assert "verification" in resp.json()["message"].lower()
    assert _count_services(db) == 0


def test_anonymous_cannot_create(client, service_payload):
    resp = client.post("/api/services", json=service_payload)

    assert resp.status_code == 401
    assert resp.json()["success"] is False


def test_role_is_checked_before_payload(client, customer, auth_headers):
    resp = client.post("/api/services", json={"title": "x"}, headers=auth_headers(customer))

    assert resp.status_code == 403
