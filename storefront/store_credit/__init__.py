from flask import Blueprint

bp = Blueprint("store_credit", __name__, url_prefix="/api/store-credits")

from . import routes  # noqa: E402,F401
