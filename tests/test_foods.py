from tests.conftest import ORDER_PAYLOAD

FOOD_PAYLOAD = {"name": "Bun cha", "description": "Grilled pork", "price": 50000, "category": "noodles"}


def test_create_food_admin_only(client, customer_headers, admin_headers):
    assert client.post("/foods", json=FOOD_PAYLOAD, headers=customer_headers).status_code == 403
    assert client.post("/foods", json=FOOD_PAYLOAD).status_code == 401

    r = client.post("/foods", json=FOOD_PAYLOAD, headers=admin_headers)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["rating"] == 0
    assert body["popular"] is False


def test_create_food_missing_fields_400(client, admin_headers):
    r = client.post("/foods", json={"name": "Only a name"}, headers=admin_headers)
    assert r.status_code == 400


def test_update_food_ignores_rating(client, admin_headers, food):
    r = client.put(f"/foods/{food['id']}", json={"price": 55000, "rating": 5}, headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json()["price"] == 55000
    assert r.json()["rating"] == 0


def test_update_unknown_food_404(client, admin_headers):
    r = client.put("/foods/missing", json={"price": 1}, headers=admin_headers)
    assert r.status_code == 404


def test_get_food_404(client):
    assert client.get("/foods/missing").status_code == 404


def test_popular_foods_sorted_by_rating(client, customer_headers, make_food):
    low = make_food("Low", popular=True)
    high = make_food("High", popular=True)
    make_food("Hidden")

    client.post("/reviews", json={"food_id": low["id"], "rating": 2, "comment": "meh"}, headers=customer_headers)
    client.post("/reviews", json={"food_id": high["id"], "rating": 5, "comment": "wow"}, headers=customer_headers)

    r = client.get("/foods/popular")
    assert r.status_code == 200
    assert [f["name"] for f in r.json()] == ["High", "Low"]

    r = client.get("/foods/popular", params={"limit": 1})
    assert [f["name"] for f in r.json()] == ["High"]

    assert len(client.get("/foods").json()) == 3


def test_dashboard_totals(client, customer_headers, other_headers, admin_headers, food):
    client.post("/orders", json=ORDER_PAYLOAD, headers=customer_headers)
    client.post("/orders", json=ORDER_PAYLOAD, headers=customer_headers)
    client.post("/orders", json={**ORDER_PAYLOAD, "total_amount": 10000}, headers=other_headers)

    assert client.get("/admin/dashboard", headers=customer_headers).status_code == 403

    r = client.get("/admin/dashboard", headers=admin_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["total_orders"] == 3
    assert body["total_sales"] == 190000
    assert body["total_customers"] == 2
    assert body["total_food_items"] == 1
    assert len(body["recent_orders"]) == 3
    assert body["popular_items"] == []


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "db": "ok"}


def test_delete_food_admin_only(client, customer_headers, food):
    assert client.delete(f"/foods/{food['id']}", headers=customer_headers).status_code == 403
    assert client.delete(f"/foods/{food['id']}").status_code == 401
    assert client.get(f"/foods/{food['id']}").status_code == 200


def test_delete_unknown_food_404(client, admin_headers):
    r = client.delete("/foods/missing", headers=admin_headers)
    assert r.status_code == 404
    assert r.json()["detail"] == "Food not found"


def test_delete_food_removes_its_reviews(client, customer_headers, admin_headers, make_food):
    doomed = make_food("Doomed")
    kept = make_food("Kept")
    for food_id in (doomed["id"], doomed["id"], kept["id"]):
        client.post("/reviews", json={"food_id": food_id, "rating": 4, "comment": "ok"}, headers=customer_headers)

    r = client.delete(f"/foods/{doomed['id']}", headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "Food deleted"}

    assert client.get(f"/foods/{doomed['id']}").status_code == 404
    assert client.get(f"/reviews/food/{doomed['id']}").json() == []
    assert len(client.get("/reviews", headers=admin_headers).json()) == 1
    assert client.get(f"/foods/{kept['id']}").json()["rating"] == 4.0
