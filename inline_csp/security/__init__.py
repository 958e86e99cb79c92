# inline_csp/security/__init__.py
from __future__ import annotations

from .collector import DynamicCollector, merge_policies
from .csp import build_csp, header_name, render_directive
from .fetch_policy import DIRECTIVES, FetchPolicy
from .hashing import generate_hash_value, hash_source
from .hosts import extract_host, extract_remote_fonts, extract_remote_hosts
from .inline_util import InlineUtil
from .tag_meta import TAG_META, TagMeta, lookup

__all__ = [
    "DIRECTIVES",
    "DynamicCollector",
    "FetchPolicy",
    "InlineUtil",
    "TAG_META",
    "TagMeta",
    "build_csp",
    "extract_host",
    "extract_remote_fonts",
    "extract_remote_hosts",
    "generate_hash_value",
    "hash_source",
    "header_name",
    "lookup",
    "merge_policies",
    "render_directive",
]
