import smtplib


def test_contact_sends_admin_mail_and_reply(client, outbox):
    body = {"name": "Ruwan", "email": "ruwan@example.com", "subject": "Warranty", "message": "My cable stopped working."}
    r = client.post("/api/contact", json=body)
    assert r.status_code == 200

    assert len(outbox) == 2
    admin_mail, reply = outbox
    assert admin_mail["Reply-To"] == "ruwan@example.com"
    assert admin_mail["Subject"] == "[Contact] Warranty - Ruwan"
    assert reply["To"] == "ruwan@example.com"
    assert "My cable stopped working." in reply.get_body(preferencelist=("html",)).get_content()


def test_contact_requires_fields(client, outbox):
    assert client.post("/api/contact", json={"name": "Ruwan", "email": "ruwan@example.com"}).status_code == 400
    assert client.post("/api/contact", json={"name": "R", "email": "nope", "message": "hi"}).status_code == 400
    assert outbox == []


def test_contact_reports_send_failure(client, monkeypatch):
    from storefront.extensions import mailer

    def boom(msg):
        raise smtplib.SMTPServerDisconnected("gone")

    monkeypatch.setattr(mailer, "send", boom)
    r = client.post("/api/contact", json={"name": "R", "email": "r@example.com", "message": "hi"})
    assert r.status_code == 500
