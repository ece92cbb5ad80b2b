import logging
import sys

from flask import Flask

from postboard.config import Config
from postboard.db import db
from postboard.errors import register_error_handlers
from postboard.extensions.extensions import ma


def configure_logging(level="INFO"):
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(app.config["LOG_LEVEL"])

    db.init_app(app)
    ma.init_app(app)
    register_error_handlers(app)

    with app.app_context():
        import postboard.models  # noqa: F401
        db.create_all()

    return app
