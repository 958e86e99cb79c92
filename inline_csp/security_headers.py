# inline_csp/security_headers.py
# Flask wiring for render-time CSP allow-lists.
#
# Request lifecycle:
# - before_request: fresh DynamicCollector + InlineUtil on g (one per request, never shared)
# - templates call csp_tag(...) / csp_event(...) which register sources as they render
# - after_request: collector is consumed once and rendered into the CSP header
# - teardown_request: collector dropped from g

from __future__ import annotations

import logging
from typing import Mapping, Optional

from flask import Flask, current_app, g
from markupsafe import Markup

from inline_csp.security.collector import DynamicCollector
from inline_csp.security.csp import build_csp, header_name
from inline_csp.security.inline_util import InlineUtil

log = logging.getLogger(__name__)


def _new_inline_util(app: Flask) -> InlineUtil:
    collector = DynamicCollector()
    return InlineUtil(collector, use_unsafe_hashes=bool(app.config.get("CSP_USE_UNSAFE_HASHES", False)))


def get_inline_util() -> InlineUtil:
    """
    InlineUtil bound to the current request.
    Created lazily so templates rendered outside a before_request hook still work.
    """
    util = getattr(g, "csp_inline_util", None)
    if util is None:
        util = _new_inline_util(current_app._get_current_object())  # type: ignore[attr-defined]
        g.csp_inline_util = util
    return util


def csp_tag(tag_name: str, attributes: Optional[Mapping[str, str]] = None, content: Optional[str] = None) -> Markup:
    # Templates: {{ csp_tag('script', {'src': cdn_url}) }}
    return Markup(get_inline_util().render_tag(tag_name, attributes or {}, content))


def csp_event(event_name: str, javascript: str) -> Markup:
    # Templates: <button {{ csp_event('onclick', 'doThing()') }}>
    return Markup(get_inline_util().render_event_listener(event_name, javascript))


def apply_dynamic_csp(app: Flask, resp):
    util: Optional[InlineUtil] = getattr(g, "csp_inline_util", None)
    if util is None or util.dynamic_collector.consumed:
        return resp

    policies = util.dynamic_collector.collect()
    if not app.config.get("CSP_ENABLED", True):
        return resp

    value = build_csp(policies, report_uri=str(app.config.get("CSP_REPORT_URI") or ""))
    if not value:
        return resp

    hdr = header_name(bool(app.config.get("CSP_REPORT_ONLY", False)))
    # Respect an upstream CSP if one was set elsewhere (authoritative wins upstream).
    if hdr in resp.headers:
        log.debug("%s already set upstream; dropping %d dynamic directive(s)", hdr, len(policies))
        return resp

    resp.headers[hdr] = value
    return resp


def install_inline_csp(app: Flask) -> None:
    """
    Canonical installer. Safe to call multiple times (idempotent).
    """
    if app.extensions.get("inline_csp_installed") is True:
        return
    app.extensions["inline_csp_installed"] = True

    app.jinja_env.globals.setdefault("csp_tag", csp_tag)
    app.jinja_env.globals.setdefault("csp_event", csp_event)

    @app.before_request
    def _bootstrap_collector():
        g.csp_inline_util = _new_inline_util(app)

    @app.after_request
    def _apply(resp):
        return apply_dynamic_csp(app, resp)

    @app.teardown_request
    def _discard_collector(_exc):
        g.pop("csp_inline_util", None)
