import pytest
import requests

from attendance_logbook.integrations import student_info
from attendance_logbook.integrations.student_info import StudentProfile, get_student_info


class FakeResponse:
    def __init__(self, status_code=200, payload=None, json_error=False):
        self.status_code = status_code
        self._payload = payload
        self._json_error = json_error

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._json_error:
            raise ValueError("not json")
        return self._payload


def _patch_get(monkeypatch, result):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append({"url": url, "params": params, "timeout": timeout})
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(student_info.requests, "get", fake_get)
    return calls


def test_profile_is_built_from_lookup_payload(monkeypatch):
    calls = _patch_get(
        monkeypatch, FakeResponse(payload={"email_address": "a@x.com", "department": "CS"})
    )

    profile = get_student_info("123", base_url="https://lookup.test/api/student", timeout=3)

    assert profile == StudentProfile(email="a@x.com", department="CS")
    assert calls == [
        {"url": "https://lookup.test/api/student", "params": {"id": "123"}, "timeout": 3}
    ]


@pytest.mark.parametrize(
    "result",
    [
        requests.ConnectionError("down"),
        requests.Timeout("slow"),
        FakeResponse(status_code=404, payload={"error": "missing"}),
        FakeResponse(status_code=500),
        FakeResponse(json_error=True),
        FakeResponse(payload=["not", "an", "object"]),
        FakeResponse(payload={"department": "CS"}),
    ],
)
def test_any_lookup_failure_means_not_found(monkeypatch, result):
    _patch_get(monkeypatch, result)

    assert get_student_info("123") is None
