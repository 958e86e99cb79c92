# inline_csp/security/inline_util.py
# Template-facing helper: renders inline tags / event handlers and registers
# the CSP sources they need with the current render's DynamicCollector.

from __future__ import annotations

from typing import Mapping, Optional

from inline_csp.exceptions import NothingToAllowlist
from inline_csp.security.collector import DynamicCollector
from inline_csp.security.fetch_policy import FetchPolicy
from inline_csp.security.hashing import generate_hash_value
from inline_csp.security.hosts import extract_remote_hosts
from inline_csp.security.tag_meta import lookup


def render(tag_name: str, attributes: Mapping[str, str], content: Optional[str]) -> str:
    # Values go out verbatim: escaping is the caller's job.
    html = "<" + tag_name
    for name, value in attributes.items():
        html += f' {name}="{value}"'
    if content:
        return f"{html}>{content}</{tag_name}>"
    return html + " />"


class InlineUtil:
    """
    Allowlists dynamic sources specific to the page being rendered.

    - render_tag: <script>, <style>, <img>, <iframe>, ... with remote hosts
      and/or a content hash added to the tag's directive
    - render_event_listener: inline on* handlers, either by hash +
      'unsafe-hashes' (CSP 3) or by falling back to 'unsafe-inline'
    """

    def __init__(self, dynamic_collector: DynamicCollector, use_unsafe_hashes: bool = False):
        self.dynamic_collector = dynamic_collector
        self.use_unsafe_hashes = use_unsafe_hashes

    def render_tag(
        self,
        tag_name: str,
        attributes: Optional[Mapping[str, str]] = None,
        content: Optional[str] = None,
    ) -> str:
        attributes = attributes or {}
        meta = lookup(tag_name)
        remotes = extract_remote_hosts(tag_name, attributes, content)
        if not remotes and not content:
            raise NothingToAllowlist(tag_name)

        policies: list[FetchPolicy] = []
        if remotes:
            policies.append(FetchPolicy(directive_id=meta.directive_id, hosts=remotes))
        if content and meta.supports_hash:
            policies.append(
                FetchPolicy(directive_id=meta.directive_id, hashes=generate_hash_value(content))
            )
        # both or neither
        self.dynamic_collector.add_all(policies)

        return render(tag_name, attributes, content)

    def render_event_listener(self, event_name: str, javascript: str) -> str:
        if self.use_unsafe_hashes:
            policy = FetchPolicy(
                directive_id="script-src",
                hashes=generate_hash_value(javascript),
                unsafe_hashes_allowed=True,
            )
        else:
            policy = FetchPolicy(directive_id="script-src", inline_allowed=True)
        self.dynamic_collector.add(policy)

        return f'{event_name}="{javascript}"'
