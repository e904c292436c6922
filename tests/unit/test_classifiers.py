# ============================================================================
# tests/unit/test_classifiers.py
# ============================================================================
"""
Tests for the response classifier chains
"""

import json

import pytest

from src.medibill_client.core.classifiers import (
    HTML_INSTEAD_OF_JSON_MESSAGE,
    INVALID_FORMAT_MESSAGE,
    TUNNEL_BLOCKED_MESSAGE,
    JsonErrorClassifier,
    PlainTextErrorClassifier,
    RawResponse,
    ResponseNormalizer,
    build_failure_chain,
    extract_error_message,
    is_tunnel_interstitial,
    looks_like_html,
)
from src.medibill_client.core.outcome import ErrorKind, Failure, Success


NGROK_PAGE = """<!DOCTYPE html>
<html class="h-full" lang="en-US" dir="ltr">
  <head><title>ngrok</title></head>
  <body>
    <p>You are about to visit this site, served for free through ngrok.com.</p>
    <p>To remove this page, set and send an ngrok-skip-browser-warning request header.</p>
  </body>
</html>"""

LOCALTUNNEL_PAGE = """<html><body>
<p>Friendly Reminder: this website is served via localtunnel (loca.lt).</p>
<p>Set the Bypass-Tunnel-Reminder header to skip this page.</p>
</body></html>"""

NGINX_PAGE = """<!DOCTYPE html>
<html><head><title>Welcome to nginx!</title></head>
<body><h1>Welcome to nginx!</h1></body></html>"""


@pytest.fixture
def normalizer():
    return ResponseNormalizer()


def failure(status, text, reason="", content_type="application/json"):
    return RawResponse(status=status, reason=reason, content_type=content_type, text=text)


class TestSignatures:

    def test_html_detection_is_case_insensitive(self):
        assert looks_like_html("<!DOCTYPE html><html></html>")
        assert looks_like_html("<!doctype HTML>")
        assert looks_like_html("  <html><body>oops</body></html>")
        assert not looks_like_html('{"html": "<b>"}')

    def test_tunnel_detection(self):
        assert is_tunnel_interstitial(NGROK_PAGE)
        assert is_tunnel_interstitial(LOCALTUNNEL_PAGE)
        assert not is_tunnel_interstitial(NGINX_PAGE)
        assert not is_tunnel_interstitial("served through ngrok.com")

    def test_extract_error_message_order(self):
        assert extract_error_message({"msg": "a", "error": "b"}) == "a"
        assert extract_error_message({"error": "b", "message": "c"}) == "b"
        assert extract_error_message({"message": "c", "detail": "d"}) == "c"
        assert extract_error_message({"detail": "d"}) == "d"

    def test_extract_error_message_skips_empty_values(self):
        assert extract_error_message({"msg": "", "error": "real error"}) == "real error"

    def test_extract_error_message_serializes_structured_detail(self):
        detail = [{"loc": ["body", "email"], "msg": "field required"}]
        assert extract_error_message({"detail": detail}) == json.dumps(detail)

    def test_extract_error_message_non_dict(self):
        assert extract_error_message(["a", "b"]) is None
        assert extract_error_message("plain") is None


class TestFailureChain:

    @pytest.mark.parametrize("field", ["msg", "error", "message", "detail"])
    @pytest.mark.parametrize("status", [400, 401, 404, 409, 422, 500, 503])
    def test_json_message_field_is_extracted_exactly(self, normalizer, field, status):
        message = "Username already exists: \"asha\" (try another)"
        raw = failure(status, json.dumps({field: message}))

        outcome = normalizer.normalize(raw)

        assert isinstance(outcome, Failure)
        assert outcome.message == message
        assert outcome.status == status

    def test_json_without_known_fields_uses_generic_message(self, normalizer):
        raw = failure(400, json.dumps({"code": 17}), reason="Bad Request")
        outcome = normalizer.normalize(raw)
        assert outcome.message == "Error 400: Bad Request"

    def test_json_without_known_fields_does_not_fall_back_to_text(self, normalizer):
        raw = failure(400, "[1, 2]", reason="Bad Request")
        assert normalizer.normalize(raw).message == "Error 400: Bad Request"

    def test_short_plain_text_is_used(self, normalizer):
        raw = failure(500, "Internal Server Error: db down", content_type="text/plain")
        outcome = normalizer.normalize(raw)
        assert outcome.message == "Internal Server Error: db down"
        assert outcome.kind == ErrorKind.SERVER_ERROR

    def test_long_plain_text_falls_back_to_status(self, normalizer):
        raw = failure(500, "x" * 250, reason="Internal Server Error", content_type="text/plain")
        assert normalizer.normalize(raw).message == "Error 500: Internal Server Error"

    def test_html_error_page_falls_back_to_status(self, normalizer):
        raw = failure(502, NGINX_PAGE, reason="Bad Gateway", content_type="text/html")
        outcome = normalizer.normalize(raw)
        assert outcome.kind == ErrorKind.SERVER_ERROR
        assert outcome.message == "Error 502: Bad Gateway"

    def test_short_html_is_not_shown_verbatim(self, normalizer):
        raw = failure(500, "<html>boom</html>", reason="Internal Server Error", content_type="text/html")
        assert normalizer.normalize(raw).message == "Error 500: Internal Server Error"

    def test_empty_body_uses_status(self, normalizer):
        raw = failure(404, "", reason="Not Found", content_type="")
        outcome = normalizer.normalize(raw)
        assert outcome.kind == ErrorKind.NOT_FOUND
        assert outcome.message == "Error 404: Not Found"

    def test_missing_reason(self, normalizer):
        raw = failure(599, "", reason="", content_type="")
        assert normalizer.normalize(raw).message == "Error 599"

    def test_custom_text_limit(self):
        normalizer = ResponseNormalizer(failure_chain=build_failure_chain(error_text_max_length=10))
        raw = failure(400, "too long for ten", reason="Bad Request", content_type="text/plain")
        assert normalizer.normalize(raw).message == "Error 400: Bad Request"

    @pytest.mark.parametrize("status,kind", [
        (401, ErrorKind.AUTH_REJECTED),
        (404, ErrorKind.NOT_FOUND),
        (500, ErrorKind.SERVER_ERROR),
        (503, ErrorKind.SERVER_ERROR),
        (400, ErrorKind.REQUEST_REJECTED),
        (403, ErrorKind.REQUEST_REJECTED),
        (422, ErrorKind.REQUEST_REJECTED),
    ])
    def test_status_to_kind(self, normalizer, status, kind):
        outcome = normalizer.normalize(failure(status, json.dumps({"msg": "x"})))
        assert outcome.kind == kind

    def test_configurable_auth_rejected_statuses(self):
        normalizer = ResponseNormalizer(failure_chain=build_failure_chain(auth_rejected_statuses=(401, 422)))
        outcome = normalizer.normalize(failure(422, json.dumps({"msg": "Not enough segments"})))
        assert outcome.kind == ErrorKind.AUTH_REJECTED
        assert outcome.message == "Not enough segments"

    def test_single_classifiers_report_not_matched(self):
        raw = failure(500, NGINX_PAGE, content_type="text/html")
        assert JsonErrorClassifier().classify(raw) is None
        assert PlainTextErrorClassifier().classify(raw) is None


class TestTunnelDetection:

    @pytest.mark.parametrize("status", [200, 201, 204, 400, 401, 404, 500, 502, 504])
    @pytest.mark.parametrize("page", [NGROK_PAGE, LOCALTUNNEL_PAGE])
    def test_interstitial_is_tunnel_blocked_for_any_status(self, normalizer, status, page):
        raw = RawResponse(status=status, reason="", content_type="text/html", text=page)

        outcome = normalizer.normalize(raw)

        assert isinstance(outcome, Failure)
        assert outcome.kind == ErrorKind.TUNNEL_BLOCKED
        assert outcome.message == TUNNEL_BLOCKED_MESSAGE

    def test_short_tunnel_text_is_not_shown_verbatim(self, normalizer):
        raw = RawResponse(status=502, content_type="text/plain", text="ERR_NGROK_3200 tunnel offline")
        assert normalizer.normalize(raw).kind == ErrorKind.TUNNEL_BLOCKED

    def test_error_text_mentioning_ngrok_is_shown_verbatim(self, normalizer):
        text = "Upload failed: ngrok upstream closed the connection"
        raw = RawResponse(status=500, content_type="text/plain", text=text)

        outcome = normalizer.normalize(raw)

        assert outcome.kind == ErrorKind.SERVER_ERROR
        assert outcome.message == text


class TestSuccessChain:

    def test_declared_json(self, normalizer):
        raw = RawResponse(200, "OK", "application/json; charset=utf-8", '{"profile": {"user_id": 1}}')
        outcome = normalizer.normalize(raw)
        assert isinstance(outcome, Success)
        assert outcome.body == {"profile": {"user_id": 1}}

    def test_vendor_json_content_type(self, normalizer):
        raw = RawResponse(200, "OK", "application/problem+json", '{"a": 1}')
        assert normalizer.normalize(raw).body == {"a": 1}

    def test_undeclared_json_is_accepted(self, normalizer):
        raw = RawResponse(200, "OK", "text/plain", '{"access_token": "t", "username": "asha"}')
        outcome = normalizer.normalize(raw)
        assert outcome.ok
        assert outcome.body["access_token"] == "t"

    def test_json_array_body(self, normalizer):
        raw = RawResponse(200, "OK", "application/json", "[1, 2, 3]")
        assert normalizer.normalize(raw).body == [1, 2, 3]

    def test_no_content(self, normalizer):
        outcome = normalizer.normalize(RawResponse(204, "No Content", "", ""))
        assert outcome.ok
        assert outcome.body == {}

    def test_empty_body_with_json_header(self, normalizer):
        outcome = normalizer.normalize(RawResponse(200, "OK", "application/json", ""))
        assert outcome.ok
        assert outcome.body == {}

    @pytest.mark.parametrize("content_type", ["text/html", "application/json", "", "text/plain"])
    @pytest.mark.parametrize("body", [
        NGINX_PAGE,
        "<!doctype html><title>Dashboard</title>",
        "<html><body>Login</body></html>",
    ])
    def test_html_is_never_success(self, normalizer, content_type, body):
        outcome = normalizer.normalize(RawResponse(200, "OK", content_type, body))

        assert isinstance(outcome, Failure)
        assert outcome.kind == ErrorKind.MALFORMED_RESPONSE
        assert outcome.message == HTML_INSTEAD_OF_JSON_MESSAGE

    def test_other_non_json_is_malformed(self, normalizer):
        outcome = normalizer.normalize(RawResponse(200, "OK", "text/plain", "hello"))
        assert outcome.kind == ErrorKind.MALFORMED_RESPONSE
        assert outcome.message == INVALID_FORMAT_MESSAGE

    def test_declared_json_that_does_not_parse(self, normalizer):
        outcome = normalizer.normalize(RawResponse(200, "OK", "application/json", "{broken"))
        assert outcome.kind == ErrorKind.MALFORMED_RESPONSE
