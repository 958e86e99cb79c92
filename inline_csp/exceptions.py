# inline_csp/exceptions.py
# Error kinds raised while building dynamic CSP allow-lists.
#
# - Caller mistakes (bad tag, nothing to allowlist, bad directive) are ValueErrors
# - HashAlgorithmConflict is an internal-consistency failure: never catch it to "recover"
# - URL parse failures are NOT errors; they degrade to "no origin"

from __future__ import annotations


class InlineCspError(Exception):
    """Base class for every error raised by inline_csp."""


class UnknownTag(InlineCspError, ValueError):
    def __init__(self, tag_name: str):
        self.tag_name = tag_name
        super().__init__(f"Unknown source type - {tag_name}")


class NothingToAllowlist(InlineCspError, ValueError):
    def __init__(self, tag_name: str):
        self.tag_name = tag_name
        super().__init__(
            f"Either remote URL or hashable content is required to allowlist <{tag_name}>"
        )


class UnknownDirective(InlineCspError, ValueError):
    def __init__(self, directive_id: str):
        self.directive_id = directive_id
        super().__init__(f"Unknown CSP directive - {directive_id}")


class ContradictoryPolicy(InlineCspError, ValueError):
    """A single policy both blocks everything and grants permissions."""

    def __init__(self, directive_id: str):
        self.directive_id = directive_id
        super().__init__(
            f"{directive_id}: 'none' cannot be combined with other sources in one policy"
        )


class InvalidSource(InlineCspError, ValueError):
    """A source expression carrying characters that would split or extend the directive."""

    def __init__(self, directive_id: str, source: str):
        self.directive_id = directive_id
        self.source = source
        super().__init__(f"{directive_id}: invalid source expression {source!r}")


class HashAlgorithmConflict(InlineCspError):
    def __init__(self, directive_id: str, digest: str, existing: str, incoming: str):
        self.directive_id = directive_id
        self.digest = digest
        self.existing = existing
        self.incoming = incoming
        super().__init__(
            f"{directive_id}: digest {digest} already registered as {existing}, got {incoming}"
        )


class CollectorConsumed(InlineCspError, RuntimeError):
    def __init__(self) -> None:
        super().__init__("Dynamic CSP collector was already consumed for this render")


__all__ = [
    "InlineCspError",
    "UnknownTag",
    "NothingToAllowlist",
    "UnknownDirective",
    "ContradictoryPolicy",
    "InvalidSource",
    "HashAlgorithmConflict",
    "CollectorConsumed",
]
