import logging
import os

# transport libraries log every Sheets/lookup request at DEBUG
QUIET_LOGGERS = ("urllib3", "google.auth", "gspread")


def _handlers(app):
    handlers = [logging.StreamHandler()]
    log_dir = app.config.get("LOG_DIR")
    if app.config.get("TESTING") or not log_dir:
        return handlers

    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")
    handlers.insert(0, logging.FileHandler(log_file, encoding="utf-8", delay=True))
    return handlers


def init_logging(app):
    """Configure logging for the logbook service.

    Writes to ``LOG_DIR/app.log`` and stderr; under ``TESTING`` (or with an
    empty ``LOG_DIR``) only stderr is used.
    """
    log_level = app.config.get("LOG_LEVEL", "INFO").upper()
    numeric_level = getattr(logging, log_level, logging.INFO)
    handlers = _handlers(app)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] [%(name)s:%(lineno)d] - %(message)s",
        handlers=handlers,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    # module loggers live under the package name, so this is their parent
    app.logger = logging.getLogger("attendance_logbook")
    app.logger.setLevel(numeric_level)
    app.logger.info(
        "Logging initialized at %s level (%s)",
        log_level,
        "file + stream" if len(handlers) > 1 else "stream only",
    )
