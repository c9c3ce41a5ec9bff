from storefront.extensions import db
from storefront.model import Product, StoreCredit


def test_place_order_with_percent_code(client, promos, order_payload, outbox):
    # 2 x 2500 = 5000, SAVE10 -> 500 off, 350 shipping
    payload = order_payload([("p1", 2)], promo_code="SAVE10", promo_discount=500, free_shipping=False)
    r = client.post("/api/orders", json=payload)
    assert r.status_code == 201

    data = r.get_json()["data"]
    assert data["ok"] is True
    order = data["order"]
    assert data["order_id"] == order["id"]
    assert order["subtotal"] == 5000
    assert order["shipping"] == 350
    assert order["promo_discount"] == 500
    assert order["total"] == 4850
    assert order["status"] == "pending"
    assert order["customer"]["ship_to_different"] is None
    assert db.session.get(Product, payload["items"][0]["id"]).stock == 0


def test_place_order_with_free_shipping(client, promos, order_payload):
    payload = order_payload([("p2", 3)], promo_code="FREESHIP", free_shipping=True)
    order = client.post("/api/orders", json=payload).get_json()["data"]["order"]
    assert order["shipping"] == 0
    assert order["free_shipping"] is True
    assert order["total"] == 3000
    assert order["promo_discount"] is None


def test_shipping_from_client_is_used(client, order_payload):
    order = client.post("/api/orders", json=order_payload([("p2", 1)], shipping=500)).get_json()["data"]["order"]
    assert order["total"] == 1500


def test_insufficient_stock(client, order_payload, products):
    r = client.post("/api/orders", json=order_payload([("p1", 3), ("p2", 1)]))
    assert r.status_code == 409
    shortages = r.get_json()["data"]["shortages"]
    assert shortages == [{"id": products["p1"].id, "name": "Power Bank 10000", "requested": 3, "available": 2}]
    assert db.session.get(Product, products["p2"].id).stock == 10


def test_same_product_on_two_lines(client, order_payload, products):
    r = client.post("/api/orders", json=order_payload([("p1", 2), ("p1", 2)]))
    assert r.status_code == 409
    shortages = r.get_json()["data"]["shortages"]
    assert shortages == [{"id": products["p1"].id, "name": "Power Bank 10000", "requested": 4, "available": 2}]
    assert db.session.get(Product, products["p1"].id).stock == 2


def test_promo_order_leaves_store_credit_alone(client, staff_headers, credit, order_payload):
    r = client.post("/api/promos", json={"code": "credit1000", "type": "percent", "value": 10},
                    headers=staff_headers)
    assert r.status_code == 409

    payload = order_payload([("p2", 3)], promo_code="CREDIT1000", promo_kind="promo", promo_discount=300)
    assert client.post("/api/orders", json=payload).status_code == 201
    assert db.session.get(StoreCredit, credit.id).used_at is None


def test_zero_quantity_counts_as_one(client, order_payload, products):
    r = client.post("/api/orders", json=order_payload([("p2", 0)]))
    assert r.status_code == 201
    assert db.session.get(Product, products["p2"].id).stock == 9


def test_validation_errors(client, order_payload):
    assert client.post("/api/orders", json=order_payload([])).status_code == 400

    payload = order_payload()
    del payload["customer"]["email"]
    r = client.post("/api/orders", json=payload)
    assert r.status_code == 400
    assert "email" in r.get_json()["message"]

    assert client.post("/api/orders", json=order_payload(promo_discount="a lot")).status_code == 400


def test_store_credit_order_consumes_credit(client, credit, order_payload):
    payload = order_payload([("p2", 3)], promo_code="CREDIT1000", promo_discount=1000)
    r = client.post("/api/orders", json=payload)
    assert r.status_code == 201
    order = r.get_json()["data"]["order"]
    assert order["promo_kind"] == "store_credit"
    assert order["total"] == 2350

    sc = db.session.get(StoreCredit, credit.id)
    assert sc.used_order_id == order["id"]

    again = client.post("/api/orders", json=payload)
    assert again.status_code == 409


def test_bank_transfer_with_slip_and_different_address(client, order_payload):
    payload = order_payload(
        payment_method="BANK", bank_slip_name="slip.jpg", bank_slip_url="https://cdn.example/slip.jpg",
        ship_different=True, shipping_address={"name": "Kamala Silva", "address": "5 Lake Rd", "city": "Kandy"},
    )
    order = client.post("/api/orders", json=payload).get_json()["data"]["order"]
    assert order["payment_method"] == "BANK"
    assert order["bank_slip_url"] == "https://cdn.example/slip.jpg"
    assert order["customer"]["ship_to_different"]["city"] == "Kandy"


def test_get_order_is_public(client, order_payload):
    order_id = client.post("/api/orders", json=order_payload()).get_json()["data"]["order_id"]
    r = client.get(f"/api/orders/{order_id}")
    assert r.status_code == 200
    assert r.get_json()["data"]["items"][0]["quantity"] == 2
    assert client.get("/api/orders/ord_missing").status_code == 404


def test_back_office_list_and_status(client, order_payload, staff_headers, admin_headers):
    first = client.post("/api/orders", json=order_payload()).get_json()["data"]["order_id"]
    second = client.post("/api/orders", json=order_payload([("p3", 1)])).get_json()["data"]["order_id"]

    assert client.get("/api/orders").status_code == 401

    r = client.put(f"/api/orders/{first}", json={"status": "paid"}, headers=staff_headers)
    assert r.status_code == 200
    assert r.get_json()["data"]["status"] == "paid"
    assert client.put(f"/api/orders/{first}", json={"status": "teleported"}, headers=staff_headers).status_code == 400

    paid = client.get("/api/orders?status=paid", headers=staff_headers).get_json()["data"]
    assert [o["id"] for o in paid["items"]] == [first]

    everything = client.get("/api/orders", headers=staff_headers).get_json()["data"]
    assert everything["total"] == 2
    assert {o["id"] for o in everything["items"]} == {first, second}

    assert client.delete(f"/api/orders/{second}", headers=staff_headers).status_code == 403
    assert client.delete(f"/api/orders/{second}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/orders/{second}").status_code == 404


def test_order_emails_are_sent(client, order_payload, outbox):
    r = client.post("/api/orders", json=order_payload([("p1", 1)]))
    order_id = r.get_json()["data"]["order_id"]

    subjects = [m["Subject"] for m in outbox]
    assert f"Order Confirmation - {order_id}" in subjects
    assert f"New Order - {order_id} - Nimal Perera" in subjects

    customer_mail = next(m for m in outbox if m["To"] == "nimal@example.com")
    html = customer_mail.get_body(preferencelist=("html",)).get_content()
    assert "Power Bank 10000 - 12 Months" in html
    assert "LKR 2,850" in html


def test_mail_failure_does_not_fail_order(client, order_payload, monkeypatch):
    import smtplib
    from storefront.extensions import mailer

    def boom(msg):
        raise smtplib.SMTPException("relay down")

    monkeypatch.setattr(mailer, "send", boom)
    r = client.post("/api/orders", json=order_payload())
    assert r.status_code == 201
