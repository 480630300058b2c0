# dietplanner/tests/test_ratelimit.py
# Purpose: client keying behind proxies, the shared AI budget wiring and
# the JSON 429 body.

from dietplanner.ratelimit import AI_ENDPOINTS, client_key
from dietplanner.tests.helpers import auth_headers, startup_payload


def test_client_key_prefers_cloudflare_then_first_forwarded_hop(app):
    headers = {"CF-Connecting-IP": " 203.0.113.7 ", "X-Forwarded-For": "198.51.100.1, 10.0.0.1"}
    with app.test_request_context("/", headers=headers):
        assert client_key() == "203.0.113.7"

    with app.test_request_context("/", headers={"X-Forwarded-For": "198.51.100.1, 10.0.0.1"}):
        assert client_key() == "198.51.100.1"

    with app.test_request_context("/", environ_base={"REMOTE_ADDR": "192.0.2.5"}):
        assert client_key() == "192.0.2.5"


def test_rate_limited_body_uses_error_shape(client):
    for _ in range(10):
        res = client.post("/api/ai/sessions", json=startup_payload(), headers=auth_headers())
        assert res.status_code == 201

    res = client.post(
        "/api/ai/sessions",
        json=startup_payload(),
        headers={**auth_headers(), "X-Request-ID": "req-429"},
    )
    assert res.status_code == 429
    body = res.get_json()
    assert body["error"] == "Too Many Requests"
    assert body["code"] == 429
    assert body["request_id"] == "req-429"
    assert "10 per 1 minute" in body["details"]


def test_ai_endpoints_are_registered(app):
    for endpoint in AI_ENDPOINTS:
        assert endpoint in app.view_functions
