"""Background provisioning of the daily worksheet.

The first scan of a day normally pays for cloning the template.  When
``PROVISION_SCHEDULER`` is enabled a daemon thread wakes shortly after
each logbook midnight and creates the new day's sheet ahead of time.
"""

from __future__ import annotations

import logging
import threading
import time

from .clock import seconds_until_next_day

log = logging.getLogger(__name__)


def provision_today(app) -> bool:
    """Create today's sheet if needed; returns False when provisioning failed."""
    from ..integrations.google_sheets_logbook import get_logbook

    try:
        sheet = get_logbook(app).get_or_create_daily_sheet()
    except Exception:
        app.logger.exception("Scheduled daily sheet provisioning failed")
        return False

    app.logger.info("Daily sheet ready: %s", sheet.title)
    return True


def _scheduler_loop(app):
    offset_hours = app.config.get("UTC_OFFSET_HOURS", 8)
    while True:
        sleep_seconds = seconds_until_next_day(offset_hours=offset_hours)
        app.logger.debug(
            "Next daily sheet provisioning in %.2f hours", sleep_seconds / 3600
        )
        time.sleep(sleep_seconds)
        provision_today(app)


def init_provision_scheduler(app):
    thread = threading.Thread(target=_scheduler_loop, args=(app,), daemon=True)
    thread.start()
    app.logger.info("Provisioning scheduler started (daily).")
    return thread
