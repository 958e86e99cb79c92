# inline_csp/security/hosts.py
# Remote origin extraction for dynamic allow-lists.
#
# Rules:
# - only absolute http/https URLs contribute an origin (scheme://host[:port])
# - relative URLs, javascript:, data:, junk -> no origin (never an error)
# - <style> content is scanned for @font-face url(...) references only

from __future__ import annotations

import re
from typing import Iterable, Mapping, Optional
from urllib.parse import urlsplit

from inline_csp.security.tag_meta import lookup

REMOTE_SCHEMES = frozenset({"http", "https"})

_FONT_FACE_RE = re.compile(r"@font-face\s*?\{([^}]*)[^}]*?\}", re.IGNORECASE | re.MULTILINE)
_FONT_URL_RE = re.compile(r"""url\(\s*['"]?(https?:[^'")\s]+)""", re.IGNORECASE)
# hostname() is already lowercased and unbracketed
_DNS_HOST_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?(?:\.[a-z0-9](?:[a-z0-9-]*[a-z0-9])?)*$")
_IPV6_HOST_RE = re.compile(r"^[0-9a-f:.]+$")


def _dedupe(xs: Iterable[Optional[str]]) -> tuple[str, ...]:
    seen: set[str] = set()
    out: list[str] = []
    for x in xs:
        if x and x not in seen:
            seen.add(x)
            out.append(x)
    return tuple(out)


def extract_host(url: str) -> Optional[str]:
    """
    Origin of a URL, or None when it does not point to a remote host.

    >>> extract_host("https://cdn.example.com/a.js")
    'https://cdn.example.com'
    """
    try:
        parts = urlsplit((url or "").strip())
        scheme = parts.scheme.lower()
        if scheme not in REMOTE_SCHEMES:
            return None
        # .port raises ValueError on garbage like "host:abc"
        port = parts.port
    except ValueError:
        return None

    host = (parts.hostname or "").strip()
    if ":" in host:
        if not _IPV6_HOST_RE.match(host):
            return None
        host = f"[{host}]"
    elif not _DNS_HOST_RE.match(host):
        # ; , quotes or whitespace would leak into the header as extra tokens
        return None
    return f"{scheme}://{host}:{port}" if port is not None else f"{scheme}://{host}"


def extract_remote_fonts(style_content: str) -> tuple[str, ...]:
    urls: list[str] = []
    for block in _FONT_FACE_RE.findall(style_content or ""):
        urls.extend(_FONT_URL_RE.findall(block))
    return _dedupe(extract_host(u) for u in urls)


def extract_remote_hosts(
    tag_name: str,
    attributes: Mapping[str, str],
    content: Optional[str] = None,
) -> tuple[str, ...]:
    """
    Distinct remote origins a tag references, in first-seen order.
    Attribute origins come first, then @font-face origins for <style>.
    """
    meta = lookup(tag_name)
    found: list[Optional[str]] = []
    for attr in meta.remote_attributes:
        value = attributes.get(attr)
        if value:
            found.append(extract_host(str(value)))
    if tag_name == "style" and content:
        found.extend(extract_remote_fonts(content))
    return _dedupe(found)
