BASE = "/api/v1/admin"


def test_admin_routes_require_login(client, seeded):
    assert client.get(f"{BASE}/businesses").status_code == 401


def test_non_admin_is_denied(client, seeded, owner_headers):
    response = client.get(f"{BASE}/businesses", headers=owner_headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "Acceso Denegado"


def test_profile_lookup_failure_denies_admin(client, seeded, admin_headers):
    seeded.table("profiles").fail_with = "permission denied"

    assert client.get(f"{BASE}/businesses", headers=admin_headers).status_code == 403


def test_moderation_table_lists_every_business(client, seeded, admin_headers):
    response = client.get(f"{BASE}/businesses", headers=admin_headers)

    assert response.status_code == 200
    rows = {row["id"]: row for row in response.json()}
    assert set(rows) == {"biz-1", "biz-2", "biz-3"}
    assert rows["biz-3"]["active"] is False
    assert rows["biz-3"]["is_expired"] is True
    assert set(rows["biz-1"]) == {"id", "name", "category", "active", "subscription_expires_at", "is_expired"}


def test_deactivate_hides_business_and_its_promotions(client, seeded, admin_headers):
    response = client.patch(f"{BASE}/businesses/biz-1/active", headers=admin_headers, json={"active": False})

    assert response.status_code == 200
    assert response.json()["active"] is False

    public = client.get("/api/v1/browse/businesses").json()
    assert [b["id"] for b in public] == ["biz-2"]
    promotions = client.get("/api/v1/browse/promotions").json()
    assert [p["id"] for p in promotions] == ["promo-2"]


def test_reactivate_keeps_expiry_untouched(client, seeded, admin_headers):
    response = client.patch(f"{BASE}/businesses/biz-3/active", headers=admin_headers, json={"active": True})

    assert response.status_code == 200
    row = next(r for r in seeded.table("businesses").rows if r["id"] == "biz-3")
    assert row["active"] is True
    assert row["subscription_expires_at"] == "2025-01-01T00:00:00+00:00"


def test_toggle_unknown_business(client, seeded, admin_headers):
    response = client.patch(f"{BASE}/businesses/nope/active", headers=admin_headers, json={"active": True})

    assert response.status_code == 404


def test_price_read_and_update(client, seeded, admin_headers):
    assert client.get(f"{BASE}/price", headers=admin_headers).json()["price"] == 5000

    response = client.put(f"{BASE}/price", headers=admin_headers, json={"price": 6500})

    assert response.status_code == 200
    assert response.json() == {"price": 6500.0, "days": 30}
    assert seeded.table("config").rows[0]["value"] == 6500


def test_negative_price_is_rejected(client, seeded, admin_headers):
    response = client.put(f"{BASE}/price", headers=admin_headers, json={"price": -1})

    assert response.status_code == 422


def test_moderation_table_survives_legacy_rows(client, seeded, admin_headers, make_business):
    seeded.table("businesses").rows.append(
        make_business(id="biz-9", name="N" * 130, description="x" * 2500,
                      subscription_expires_at="2020-05-01T12:34:56.12345+00:00")
    )

    response = client.get(f"{BASE}/businesses", headers=admin_headers)

    assert response.status_code == 200
    rows = {row["id"]: row for row in response.json()}
    assert rows["biz-9"]["is_expired"] is True
