# inline_csp/security/tag_meta.py
# Static tag -> directive table. Built once at import, never mutated.

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from inline_csp.exceptions import UnknownTag


@dataclass(frozen=True)
class TagMeta:
    directive_id: str
    remote_attributes: tuple[str, ...] = ()
    supports_hash: bool = False


TAG_META: Mapping[str, TagMeta] = MappingProxyType(
    {
        "script": TagMeta("script-src", ("src",), supports_hash=True),
        "style": TagMeta("style-src", (), supports_hash=True),
        "img": TagMeta("img-src", ("src",)),
        "audio": TagMeta("media-src", ("src",)),
        "video": TagMeta("media-src", ("src",)),
        "track": TagMeta("media-src", ("src",)),
        "source": TagMeta("media-src", ("src",)),
        "object": TagMeta("object-src", ("data", "archive")),
        "embed": TagMeta("object-src", ("src",)),
        "applet": TagMeta("object-src", ("code", "archive")),
        "link": TagMeta("style-src", ("href",)),
        "form": TagMeta("form-action", ("action",)),
        "iframe": TagMeta("frame-src", ("src",)),
        "frame": TagMeta("frame-src", ("src",)),
    }
)


def lookup(tag_name: str) -> TagMeta:
    try:
        return TAG_META[tag_name]
    except KeyError:
        raise UnknownTag(tag_name) from None
