"""Client for the student-info profile service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

log = logging.getLogger(__name__)

DEFAULT_STUDENT_INFO_URL = "https://student-info.tyronscott.me/api/student"


@dataclass
class StudentProfile:
    email: str
    department: str


def get_student_info(
    student_id: str, base_url: str = DEFAULT_STUDENT_INFO_URL, timeout: float = 10
) -> Optional[StudentProfile]:
    """Resolve a student id to a profile; any failure means "not found"."""
    try:
        response = requests.get(base_url, params={"id": student_id}, timeout=timeout)
        log.debug(
            "Student info response: id=%s status=%s", student_id, response.status_code
        )
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException:
        log.warning("Student lookup failed for %s", student_id, exc_info=True)
        return None
    except ValueError:
        log.warning("Student lookup for %s returned invalid JSON", student_id)
        return None

    if not isinstance(payload, dict) or not payload.get("email_address"):
        log.info("Student %s not found", student_id)
        return None

    return StudentProfile(
        email=str(payload["email_address"]),
        department=str(payload.get("department") or ""),
    )
