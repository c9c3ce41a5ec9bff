import os
from datetime import timedelta


def _env_bool(name, default=False):
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=1)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=30)

    # Shop
    SITE_NAME = os.getenv("SITE_NAME", "Manny.lk")
    CURRENCY = "LKR"
    SHIPPING_BASE_FEE = float(os.getenv("SHIPPING_BASE_FEE", "350"))
    # Prices and promo discount are taken from the checkout payload unless this is on.
    ORDER_REPRICE_ON_COMMIT = _env_bool("ORDER_REPRICE_ON_COMMIT", False)
    API_TZ_OFFSET_MINUTES = int(os.getenv("API_TZ_OFFSET_MINUTES", "330"))  # Asia/Colombo

    # Mail
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASSWORD = os.getenv("SMTP_PASS")
    SMTP_TIMEOUT = int(os.getenv("SMTP_TIMEOUT", "15"))
    MAIL_FROM = os.getenv("MAIL_FROM")
    MAIL_TO_ORDERS = os.getenv("MAIL_TO_ORDERS")
    MAIL_TO_CONTACT = os.getenv("MAIL_TO_CONTACT", "info@manny.lk")
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", False)

    @staticmethod
    def init_app(app):
        if not os.getenv("DATABASE_URL"):
            os.makedirs(app.instance_path, exist_ok=True)
            app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{os.path.join(app.instance_path, 'app.db')}"
        else:
            app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL")


class TestingConfig(Config):
    TESTING = True
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    SMTP_HOST = "smtp.test.local"
    SMTP_USER = "shop@test.local"
    MAIL_FROM = "Shop <shop@test.local>"
    MAIL_TO_ORDERS = "orders@test.local"
    MAIL_SUPPRESS_SEND = True

    @staticmethod
    def init_app(app):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
