"""Application factory and blueprint registration."""

import importlib
import inspect
import logging
import pkgutil

from flask import Blueprint, Flask, request

from .config import Config
from .utils.logger import init_logging
from .utils.scheduler import init_provision_scheduler


def create_app(config=None) -> Flask:
    """Create and configure the Flask application."""

    app = Flask(__name__, static_folder="static")
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    try:
        init_logging(app)
    except Exception:  # pragma: no cover - only hit during catastrophic logging failure
        logging.basicConfig(level=logging.INFO)
        app.logger.exception("init_logging failed; using basic logging fallback")

    @app.before_request
    def _log_path():
        app.logger.debug("%s %s", request.method, request.path)

    # Basic routes ---------------------------------------------------------
    @app.get("/")
    def root():
        """Serve the scan page."""

        return app.send_static_file("index.html")

    @app.get("/healthz")
    def healthz():
        """Lightweight liveness probe."""

        return "ok", 200

    # Blueprint auto-discovery ---------------------------------------------
    def register_all_blueprints() -> None:
        base_pkg = f"{__name__}.routes"
        try:
            pkg = importlib.import_module(base_pkg)
        except Exception as exc:
            app.logger.warning("Could not import %s: %s", base_pkg, exc)
            return

        for modinfo in pkgutil.iter_modules(pkg.__path__):
            name = f"{base_pkg}.{modinfo.name}"
            try:
                module = importlib.import_module(name)
            except Exception as exc:
                app.logger.warning("Skipping %s (import error): %s", name, exc)
                continue

            blueprints = [
                obj
                for _, obj in inspect.getmembers(module)
                if isinstance(obj, Blueprint)
            ]
            if not blueprints:
                continue

            url_prefix = getattr(module, "URL_PREFIX", None)
            for bp in blueprints:
                prefix = url_prefix or f"/{modinfo.name}"
                try:
                    app.register_blueprint(bp, url_prefix=prefix)
                    app.logger.info("Registered %s at %s", bp.name, prefix)
                except Exception as exc:
                    app.logger.warning("Failed registering %s at %s: %s", bp.name, prefix, exc)

    register_all_blueprints()

    # Provisioning scheduler -----------------------------------------------
    if app.config.get("PROVISION_SCHEDULER") and not app.config.get("SCHEDULER_STARTED", False):
        try:
            init_provision_scheduler(app)
            app.config["SCHEDULER_STARTED"] = True
        except Exception as exc:
            app.logger.exception("Failed to start provisioning scheduler: %s", exc)

    # Minimal error handlers -----------------------------------------------
    @app.errorhandler(404)
    def _handle_404(error):
        return "Not Found", 404

    @app.errorhandler(500)
    def _handle_500(error):
        app.logger.exception("500: %s", error)
        return "Internal Server Error", 500

    return app
