# storefront/contact/routes.py
import re

from flask import current_app, request

from ..extensions import mailer
from ..services.mail_service import OrderNotifier, SMTP_ERRORS
from ..utils.api import ok, err
from . import bp

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@bp.post("")
def send_message():
    data = request.get_json(silent=True) or {}
    payload = {k: str(data.get(k) or "").strip() for k in ("name", "email", "phone", "subject", "message")}

    if not payload["name"] or not payload["email"] or not payload["message"]:
        return err("name, email and message are required")
    if not EMAIL_RE.match(payload["email"]):
        return err("Invalid email address")

    try:
        OrderNotifier(mailer).send_contact_email(payload)
    except SMTP_ERRORS as e:
        current_app.logger.error("[contact] send failed: %s", e)
        return err("Could not send your message. Please try again later.", 500)
    return ok("Message sent", {"ok": True})
