# attendance_logbook/routes/logbook.py
from flask import Blueprint, current_app, request

from ..integrations.google_sheets_logbook import get_logbook
from ..integrations.student_info import get_student_info

URL_PREFIX = "/"
bp = Blueprint("logbook", __name__)


def _text(body: str, status: int = 200):
    return body, status, {"Content-Type": "text/plain; charset=utf-8"}


def _student_id_from_request() -> str:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return ""
    student_id = body.get("studentId")
    if student_id is None or isinstance(student_id, (dict, list, bool)):
        return ""
    return str(student_id).strip()


@bp.post("/log")
def log_student():
    app = current_app
    student_id = _student_id_from_request()
    if not student_id:
        app.logger.info("Log request without student id", extra={"remote_addr": request.remote_addr})
        return _text("Student id not found", 400)

    profile = get_student_info(
        student_id,
        base_url=app.config.get("STUDENT_INFO_URL"),
        timeout=app.config.get("STUDENT_INFO_TIMEOUT", 10),
    )
    if profile is None:
        app.logger.info("Student not found: %s", student_id)
        return _text("Student not found", 404)

    try:
        logged_in = get_logbook(app).log_student(student_id, profile)
    except Exception:
        app.logger.exception("Log request failed", extra={"student_id": student_id})
        return _text("Error", 500)

    message = "Logged in" if logged_in else "Logged out"
    app.logger.info("%s: %s", message, student_id)
    return _text(message)
