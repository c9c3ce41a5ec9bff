from storefront.extensions import db
from storefront.services import order_service


def test_validate_valid_credit(client, credit):
    r = client.post("/api/store-credits/validate", json={"code": "credit1000", "order_total": 2500})
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["valid"] is True
    assert data["max_usable"] == 1000
    assert data["discount"] == 1000
    assert data["credit"] == {"code": "CREDIT1000"}


def test_validate_caps_at_order_total(client, app, credit):
    credit.min_order_total = None
    db.session.commit()
    r = client.post("/api/store-credits/validate", json={"code": "CREDIT1000", "subtotal": 600})
    assert r.get_json()["data"]["max_usable"] == 600


def test_validate_below_minimum(client, credit):
    r = client.post("/api/store-credits/validate", json={"code": "CREDIT1000", "order_total": 1500})
    assert r.status_code == 400
    assert r.get_json()["data"]["reason"] == "MIN_TOTAL"


def test_validate_unknown_and_bad_requests(client, credit):
    r = client.post("/api/store-credits/validate", json={"code": "NOPE", "order_total": 1500})
    assert r.status_code == 400
    assert r.get_json()["data"]["reason"] == "NOT_FOUND"
    assert client.post("/api/store-credits/validate", json={"code": "CREDIT1000"}).status_code == 400
    assert client.post("/api/store-credits/validate", json={"order_total": 10}).status_code == 400


def test_create_and_duplicate(client, staff_headers):
    body = {"code": "gift500", "amount": 500, "min_order_total": 1000}
    r = client.post("/api/store-credits", json=body, headers=staff_headers)
    assert r.status_code == 201
    data = r.get_json()["data"]
    assert data["code"] == "GIFT500"
    assert data["enabled"] is True
    assert data["used_at"] is None

    assert client.post("/api/store-credits", json=body, headers=staff_headers).status_code == 409


def test_create_rejects_bad_amount(client, staff_headers):
    for amount in (0, -5, "abc", None):
        r = client.post("/api/store-credits", json={"code": "BAD", "amount": amount}, headers=staff_headers)
        assert r.status_code == 400


def test_create_rejects_code_taken_by_promotion(client, promos, staff_headers):
    r = client.post("/api/store-credits", json={"code": "SAVE10", "amount": 100}, headers=staff_headers)
    assert r.status_code == 409


def test_update_and_delete_unused(client, credit, staff_headers, admin_headers):
    r = client.put("/api/store-credits/CREDIT1000", json={"amount": 1500, "min_order_total": None},
                   headers=staff_headers)
    assert r.status_code == 200
    assert r.get_json()["data"]["amount"] == 1500
    assert r.get_json()["data"]["min_order_total"] is None

    assert client.delete("/api/store-credits/CREDIT1000", headers=admin_headers).status_code == 200
    assert client.get("/api/store-credits/CREDIT1000", headers=staff_headers).status_code == 404


def test_used_credit_is_frozen(client, app, credit, order_payload, staff_headers, admin_headers):
    order_service.place_order(order_payload([("p2", 3)], promo_code="CREDIT1000", promo_discount=1000))

    r = client.get("/api/store-credits/CREDIT1000", headers=staff_headers)
    assert r.get_json()["data"]["used_order_id"].startswith("ord_")

    assert client.put("/api/store-credits/CREDIT1000", json={"amount": 5}, headers=staff_headers).status_code == 409
    assert client.delete("/api/store-credits/CREDIT1000", headers=admin_headers).status_code == 409

    r = client.post("/api/store-credits/validate", json={"code": "CREDIT1000", "order_total": 5000})
    assert r.get_json()["data"]["reason"] == "ALREADY_USED"


def test_list_filters_on_usage(client, app, credit, order_payload, staff_headers):
    client.post("/api/store-credits", json={"code": "SPARE", "amount": 200}, headers=staff_headers)
    order_service.place_order(order_payload([("p2", 3)], promo_code="CREDIT1000", promo_discount=1000))

    unused = client.get("/api/store-credits?used=0", headers=staff_headers).get_json()["data"]["items"]
    used = client.get("/api/store-credits?used=1", headers=staff_headers).get_json()["data"]["items"]
    assert [c["code"] for c in unused] == ["SPARE"]
    assert [c["code"] for c in used] == ["CREDIT1000"]
