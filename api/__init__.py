import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from models import DBStorage, RevocationStore
from utils.cookies import CookieSettings
from utils.rotation import RotationController
from utils.security import ExpiryPolicy, TokenCodec, TokenSettings

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Cookie Token Auth",
        "version": "1.0.0",
        "description": "Cookie-based access/refresh token authentication with refresh token rotation.",
    },
    "basePath": "/",
    "schemes": ["https", "http"],
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    Configuration is read once here; storage, codec and rotation controller
    are built from it and registered in app.extensions.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Cookies only travel cross-origin to an explicit origin list
    origins = app.config.get("CORS_ORIGINS", "*")
    if origins != "*":
        origins = [origin.strip() for origin in origins.split(",") if origin.strip()]
    CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=origins != "*")

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    storage = DBStorage(
        app.config["DATABASE_URL"],
        timeout=app.config.get("STORE_TIMEOUT_SECONDS"),
        echo=app.config.get("DATABASE_ECHO", False),
    )
    storage.reload()

    controller = RotationController(
        codec=TokenCodec(TokenSettings.from_config(app.config)),
        policy=ExpiryPolicy.from_config(app.config),
        store=RevocationStore(storage),
        cookie_settings=CookieSettings.from_config(app.config),
    )
    app.extensions["storage"] = storage
    app.extensions["rotation_controller"] = controller

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .index import bp as index_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(index_bp)

    from .cli import register_commands
    register_commands(app)

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # This calls scoped_session.remove(), preventing connection leaks
        storage.close()

    return app
