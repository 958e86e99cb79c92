"""Flask integration: per-request collector -> CSP header."""

from __future__ import annotations

from flask import render_template_string

from inline_csp import create_app, install_inline_csp
from inline_csp.config import TestingConfig
from inline_csp.security.hashing import hash_source

PAGE = """
<html><head>
{{ csp_tag('script', {'src': 'https://cdn.example.com/lib.js'}) }}
{{ csp_tag('style', {}, '@font-face{src:url(https://fonts.example.com/f.woff)}') }}
</head><body>
<button {{ csp_event('onclick', 'doThing()') }}>Go</button>
{{ csp_tag('img', {'src': 'https://img.example.com/a.png', 'alt': 'a'}) }}
</body></html>
"""

FONT_CSS = "@font-face{src:url(https://fonts.example.com/f.woff)}"


def _add_page(app, template=PAGE, rule="/page"):
    @app.get(rule, endpoint=rule.strip("/").replace("/", "_"))
    def _page():
        return render_template_string(template)


def test_header_built_from_rendered_fragments(app, client):
    _add_page(app)

    resp = client.get("/page")

    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert '<script src="https://cdn.example.com/lib.js" />' in body
    assert 'onclick="doThing()"' in body

    csp = resp.headers["Content-Security-Policy"]
    directives = dict(d.split(" ", 1) for d in csp.split("; "))
    assert directives["script-src"] == "https://cdn.example.com 'unsafe-inline'"
    assert directives["style-src"] == f"https://fonts.example.com {hash_source(FONT_CSS)}"
    assert directives["img-src"] == "https://img.example.com"


def test_unsafe_hashes_mode(tmp_path):
    app = create_app(
        TestingConfig,
        CSP_USE_UNSAFE_HASHES=True,
        MAINTENANCE_FLAG_PATH=str(tmp_path / ".maintenance.flag"),
    )
    _add_page(app, "<a {{ csp_event('onclick', 'doThing()') }}>x</a>")

    csp = app.test_client().get("/page").headers["Content-Security-Policy"]

    assert csp == f"script-src 'unsafe-hashes' {hash_source('doThing()')}"


def test_no_dynamic_sources_no_header(app, client):
    _add_page(app, "<p>plain</p>")

    resp = client.get("/page")

    assert "Content-Security-Policy" not in resp.headers
    assert "Content-Security-Policy-Report-Only" not in resp.headers


def test_collector_is_per_request(app, client):
    _add_page(app, "{{ csp_tag('img', {'src': 'https://one.example.com/a.png'}) }}", "/one")
    _add_page(app, "{{ csp_tag('img', {'src': 'https://two.example.com/a.png'}) }}", "/two")

    client.get("/one")
    csp = client.get("/two").headers["Content-Security-Policy"]

    assert csp == "img-src https://two.example.com"


def test_report_only(app, client):
    app.config.update(CSP_REPORT_ONLY=True, CSP_REPORT_URI="/csp-report")
    _add_page(app, "{{ csp_tag('img', {'src': 'https://img.example.com/a.png'}) }}")

    resp = client.get("/page")

    assert "Content-Security-Policy" not in resp.headers
    assert resp.headers["Content-Security-Policy-Report-Only"] == "img-src https://img.example.com; report-uri /csp-report"


def test_disabled(app, client):
    app.config["CSP_ENABLED"] = False
    _add_page(app, "{{ csp_tag('img', {'src': 'https://img.example.com/a.png'}) }}")

    assert "Content-Security-Policy" not in client.get("/page").headers


def test_upstream_header_wins(app, client):
    @app.get("/upstream")
    def _upstream():
        html = render_template_string("{{ csp_tag('img', {'src': 'https://img.example.com/a.png'}) }}")
        return html, 200, {"Content-Security-Policy": "default-src 'self'"}

    assert client.get("/upstream").headers["Content-Security-Policy"] == "default-src 'self'"


def test_unknown_tag_in_template_is_500(app, client):
    _add_page(app, "{{ csp_tag('marquee', {}, 'x') }}")

    resp = client.get("/page")

    assert resp.status_code == 500
    assert "Content-Security-Policy" not in resp.headers


def test_unknown_tag_json_error(app, client):
    _add_page(app, "{{ csp_tag('img', {}) }}", "/api/fragment")

    resp = client.get("/api/fragment")

    assert resp.status_code == 500
    payload = resp.get_json()
    assert payload["ok"] is False
    assert payload["error"]["request_id"] == resp.headers["X-Request-ID"]


def test_request_id_echoed(client):
    resp = client.get("/healthz", headers={"X-Request-ID": "abc123"})
    assert resp.headers["X-Request-ID"] == "abc123"
    assert resp.get_json()["request_id"] == "abc123"


def test_install_is_idempotent(app):
    before = len(app.after_request_funcs[None])
    install_inline_csp(app)
    assert len(app.after_request_funcs[None]) == before


def test_maintenance_gate(app, client):
    _add_page(app, "<p>hi</p>")
    maintenance = app.extensions["inline_csp_maintenance"]

    maintenance.set(True)
    try:
        resp = client.get("/page")
        assert resp.status_code == 503

        json_resp = client.get("/page", headers={"Accept": "application/json"})
        assert json_resp.status_code == 503
        assert json_resp.get_json()["error"]["code"] == 503

        health = client.get("/healthz")
        assert health.status_code == 200
        assert health.get_json()["status"] == "maintenance"
    finally:
        maintenance.set(False)

    assert client.get("/page").status_code == 200
