# inline_csp/security/hashing.py
from __future__ import annotations

import base64
import hashlib

HASH_ALGORITHM = "sha256"


def generate_hash_value(content: str) -> dict[str, str]:
    """
    Digest inline content for a CSP hash-source.
    Returns {base64(sha256(content)): "sha256"}, ready for FetchPolicy(hashes=...).
    """
    digest = hashlib.sha256(content.encode("utf-8")).digest()
    return {base64.b64encode(digest).decode("ascii"): HASH_ALGORITHM}


def hash_source(content: str) -> str:
    # 'sha256-<b64>' as it appears inside a header
    (value, algo), = generate_hash_value(content).items()
    return f"'{algo}-{value}'"
