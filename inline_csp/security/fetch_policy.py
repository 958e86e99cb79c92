# inline_csp/security/fetch_policy.py
# One directive's partial (additive) allow-list.

from __future__ import annotations

from dataclasses import KW_ONLY, dataclass, field, fields
from types import MappingProxyType
from typing import Iterable, Mapping

from inline_csp.exceptions import ContradictoryPolicy, InvalidSource, UnknownDirective

DIRECTIVES = frozenset(
    {
        "default-src",
        "child-src",
        "connect-src",
        "font-src",
        "frame-src",
        "img-src",
        "manifest-src",
        "media-src",
        "object-src",
        "prefetch-src",
        "script-src",
        "script-src-elem",
        "script-src-attr",
        "style-src",
        "style-src-elem",
        "style-src-attr",
        "worker-src",
        "base-uri",
        "form-action",
        "frame-ancestors",
    }
)


# separators and quotes end a source expression early
_UNSAFE_SOURCE_CHARS = frozenset(";,'\"")


def _dedupe(xs: Iterable[str]) -> tuple[str, ...]:
    if isinstance(xs, str):
        xs = (xs,)
    seen: set[str] = set()
    out: list[str] = []
    for x in xs:
        sx = str(x).strip()
        if sx and sx not in seen:
            seen.add(sx)
            out.append(sx)
    return tuple(out)


@dataclass(frozen=True)
class FetchPolicy:
    """
    Additive permissions for a single CSP directive.

    The effective directive value is the union of every FetchPolicy submitted
    for it during one render (see DynamicCollector). Collections are stored as
    order-preserving tuples; hashes map digest -> algorithm and are read-only.
    """

    directive_id: str
    _: KW_ONLY
    block_all: bool = False
    hosts: tuple[str, ...] = ()
    schemes: tuple[str, ...] = ()
    self_allowed: bool = False
    inline_allowed: bool = False
    eval_allowed: bool = False
    nonces: tuple[str, ...] = ()
    hashes: Mapping[str, str] = field(default_factory=dict)
    unsafe_hashes_allowed: bool = False
    strict_dynamic_allowed: bool = False

    def __post_init__(self) -> None:
        if self.directive_id not in DIRECTIVES:
            raise UnknownDirective(self.directive_id)

        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "hosts", _dedupe(self.hosts))
        object.__setattr__(self, "schemes", _dedupe(self.schemes))
        object.__setattr__(self, "nonces", _dedupe(self.nonces))
        object.__setattr__(self, "hashes", MappingProxyType(dict(self.hashes)))

        for source in (*self.hosts, *self.schemes, *self.nonces, *self.hashes, *self.hashes.values()):
            if any(c.isspace() or c in _UNSAFE_SOURCE_CHARS for c in source):
                raise InvalidSource(self.directive_id, source)

        if self.block_all and self.is_permissive():
            raise ContradictoryPolicy(self.directive_id)

    def __hash__(self) -> int:
        # hashes compare as a dict, so hash them order-insensitively
        return hash(
            tuple(
                tuple(sorted(value.items())) if isinstance(value, Mapping) else value
                for value in (getattr(self, f.name) for f in fields(self))
            )
        )

    def is_permissive(self) -> bool:
        return bool(
            self.hosts
            or self.schemes
            or self.nonces
            or self.hashes
            or self.self_allowed
            or self.inline_allowed
            or self.eval_allowed
            or self.unsafe_hashes_allowed
            or self.strict_dynamic_allowed
        )

    def tokens(self) -> list[str]:
        """Source expressions in header order. Empty list means "omit directive"."""
        out: list[str] = []
        if self.block_all:
            out.append("'none'")
        if self.self_allowed:
            out.append("'self'")
        out.extend(self.hosts)
        out.extend(self.schemes)
        if self.inline_allowed:
            out.append("'unsafe-inline'")
        if self.eval_allowed:
            out.append("'unsafe-eval'")
        if self.strict_dynamic_allowed:
            out.append("'strict-dynamic'")
        if self.unsafe_hashes_allowed:
            out.append("'unsafe-hashes'")
        out.extend(f"'nonce-{n}'" for n in self.nonces)
        out.extend(f"'{algo}-{digest}'" for digest, algo in self.hashes.items())
        return out
