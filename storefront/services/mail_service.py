# storefront/services/mail_service.py
"""SMTP client object and the order/contact notifier built on top of it."""
from __future__ import annotations

import smtplib
import threading
from contextlib import contextmanager
from datetime import timedelta
from email.message import EmailMessage

from flask import current_app, render_template

from ..utils.money import D, round_money

SMTP_ERRORS = (smtplib.SMTPException, OSError)


def format_lkr(v) -> str:
    return f"LKR {round_money(D(v)):,.0f}"


def format_local_time(dt, offset_minutes=330) -> str:
    if not dt:
        return ""
    return (dt + timedelta(minutes=offset_minutes)).strftime("%d %b %Y, %I:%M %p")


class Mailer:
    """SMTP connection holder with an explicit open/close lifecycle.

    ``open()`` tries the configured port first and the alternate one (465 <-> 587) on
    failure. Connections are per thread. With ``MAIL_SUPPRESS_SEND`` messages are kept in
    ``outbox`` instead of being delivered.
    """

    def __init__(self, app=None):
        self.host = None
        self.port = 587
        self.user = None
        self.password = None
        self.timeout = 15
        self.suppress = False
        self.outbox: list[EmailMessage] = []
        self.logger = None
        self._local = threading.local()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.host = app.config.get("SMTP_HOST")
        self.port = int(app.config.get("SMTP_PORT") or 587)
        self.user = app.config.get("SMTP_USER")
        self.password = app.config.get("SMTP_PASSWORD")
        self.timeout = int(app.config.get("SMTP_TIMEOUT") or 15)
        self.suppress = bool(app.config.get("MAIL_SUPPRESS_SEND"))
        self.outbox = []
        self.logger = app.logger
        app.extensions["mailer"] = self
        app.add_template_filter(format_lkr, "lkr")
        app.add_template_filter(
            lambda dt: format_local_time(dt, app.config.get("API_TZ_OFFSET_MINUTES", 330)), "local_time"
        )

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    @property
    def is_open(self) -> bool:
        return getattr(self._local, "conn", None) is not None

    def _connect(self, port: int):
        secure = port == 465
        if secure:
            conn = smtplib.SMTP_SSL(self.host, port, timeout=self.timeout)
        else:
            conn = smtplib.SMTP(self.host, port, timeout=self.timeout)
            conn.starttls()
        if self.user and self.password:
            conn.login(self.user, self.password)
        return conn

    def open(self):
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            return conn
        if not self.enabled:
            raise RuntimeError("SMTP_HOST is not configured")

        self.logger.info("[mail] trying SMTP %s:%s", self.host, self.port)
        try:
            conn = self._connect(self.port)
        except SMTP_ERRORS as e1:
            alt = 587 if self.port == 465 else 465
            self.logger.warning("[mail] primary SMTP failed (%s); trying %s:%s", e1, self.host, alt)
            try:
                conn = self._connect(alt)
            except SMTP_ERRORS as e2:
                self.logger.error("[mail] fallback SMTP also failed: %s", e2)
                raise
        self._local.conn = conn
        return conn

    def close(self):
        conn = getattr(self._local, "conn", None)
        self._local.conn = None
        if conn is None:
            return
        try:
            conn.quit()
        except SMTP_ERRORS as e:
            self.logger.debug("[mail] quit failed: %s", e)

    @contextmanager
    def connection(self):
        opened_here = not self.is_open
        conn = self.open()
        try:
            yield conn
        finally:
            if opened_here:
                self.close()

    def send(self, msg: EmailMessage):
        if self.suppress:
            self.outbox.append(msg)
            return
        if not self.enabled:
            self.logger.info("[mail] SMTP not configured, skipping %r", msg["Subject"])
            return
        with self.connection() as conn:
            conn.send_message(msg)
        self.logger.info("[mail] sent %r to %s", msg["Subject"], msg["To"])


def build_message(sender, to, subject, html, text=None, reply_to=None) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = to
    msg["Subject"] = subject
    if reply_to:
        msg["Reply-To"] = reply_to
    msg.set_content(text or "This message is best viewed in an HTML capable mail client.")
    msg.add_alternative(html, subtype="html")
    return msg


class OrderNotifier:
    """Renders and sends shop emails through a Mailer; each send is independent."""

    def __init__(self, mailer: Mailer):
        self.mailer = mailer

    # ---- helpers -----------------------------------------------------------
    def _cfg(self, key, default=None):
        return current_app.config.get(key, default)

    def from_header(self) -> str:
        user = self._cfg("SMTP_USER") or ""
        mail_from = self._cfg("MAIL_FROM")
        if mail_from and user and user.lower() in mail_from.lower():
            return mail_from
        return f"{self._cfg('SITE_NAME', 'Shop')} <{user}>"

    def warranty_lines(self, order) -> list[str]:
        from ..extensions import db
        from ..model import Product

        ids = [it.id for it in order.items if it.id is not None]
        if not ids:
            return []
        rows = db.session.query(Product.id, Product.warranty).filter(Product.id.in_(ids)).all()
        warranty = {pid: w for pid, w in rows if w}
        return [f"{it.name} - {warranty[it.id]}" for it in order.items if it.id in warranty]

    # ---- orders ------------------------------------------------------------
    def send_order_emails(self, order) -> dict:
        """Send the customer confirmation and the shop notification.

        Returns {"customer": bool, "admin": bool}; failures are logged, not raised.
        """
        site = self._cfg("SITE_NAME", "Shop")
        try:
            lines = self.warranty_lines(order)
        except Exception as e:
            current_app.logger.error("[mail] warranty lookup failed: %s", e)
            lines = []
        ctx = dict(order=order, customer=order.customer, site_name=site, warranty_lines=lines,
                   contact_email=self._cfg("MAIL_TO_CONTACT"))
        sent = {"customer": False, "admin": False}

        try:
            self.mailer.send(build_message(
                self.from_header(), order.customer.email,
                f"Order Confirmation - {order.id}",
                render_template("email/order_customer.html", **ctx),
                text=f"Thanks for your order {order.id}. Total: {format_lkr(order.total)}",
            ))
            sent["customer"] = True
        except Exception as e:
            current_app.logger.error("[mail] customer email failed for %s: %s", order.id, e)

        try:
            self.mailer.send(build_message(
                self.from_header(), self._cfg("MAIL_TO_ORDERS") or self._cfg("SMTP_USER"),
                f"New Order - {order.id} - {order.customer.full_name}",
                render_template("email/order_admin.html", **ctx),
            ))
            sent["admin"] = True
        except Exception as e:
            current_app.logger.error("[mail] admin email failed for %s: %s", order.id, e)
        return sent

    def notify_order_placed(self, order):
        try:
            return self.send_order_emails(order)
        except Exception as e:
            current_app.logger.error("[mail] order notification failed for %s: %s", order.id, e)
            return {"customer": False, "admin": False}

    # ---- contact form ------------------------------------------------------
    def send_contact_email(self, payload: dict):
        """Forward a contact message to the shop and acknowledge it to the sender.

        The shop copy must go out (errors propagate); the acknowledgement is best effort.
        """
        site = self._cfg("SITE_NAME", "Shop")
        ctx = dict(p=payload, site_name=site)
        self.mailer.send(build_message(
            self.from_header(), self._cfg("MAIL_TO_CONTACT") or self._cfg("SMTP_USER"),
            f"[Contact] {payload.get('subject') or 'Message'} - {payload.get('name') or 'Customer'}",
            render_template("email/contact_admin.html", **ctx),
            reply_to=payload.get("email"),
        ))
        try:
            self.mailer.send(build_message(
                self.from_header(), payload["email"],
                f"Thank you for your message - {site} Support",
                render_template("email/contact_reply.html", **ctx),
            ))
        except Exception as e:
            current_app.logger.error("[mail] contact reply failed: %s", e)
