import logging

from flask import Flask, jsonify

from .config import Config
from .extensions import db, jwt, cors, migrate, mailer


def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)

    cfg = config_object or Config
    app.config.from_object(cfg)
    cfg.init_app(app)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": "*"}})
    migrate.init_app(app, db)
    mailer.init_app(app)

    # Register blueprints
    from .auth import bp as auth_bp; app.register_blueprint(auth_bp)
    from .product import bp as product_bp; app.register_blueprint(product_bp)
    from .promo import bp as promo_bp; app.register_blueprint(promo_bp)
    from .store_credit import bp as store_credit_bp; app.register_blueprint(store_credit_bp)
    from .order import bp as order_bp; app.register_blueprint(order_bp)
    from .contact import bp as contact_bp; app.register_blueprint(contact_bp)

    from .errors import register_error_handlers
    register_error_handlers(app)

    from .cli import register_cli
    register_cli(app)

    @app.get("/")
    def health():
        return jsonify(ok=True, msg="API running")

    with app.app_context():
        from . import model  # noqa: F401  (register tables)
        db.create_all()
        app.logger.debug("blueprints: %s", sorted(app.blueprints.keys()))

    return app
