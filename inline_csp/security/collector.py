# inline_csp/security/collector.py
# Per-render accumulator for dynamic CSP additions.
#
# Merge contract (per directive):
# - union of hosts / schemes / nonces / hashes (same digest must keep its algorithm)
# - OR of every boolean flag
# - block_all survives only if *every* submission blocked
# A block meeting a non-block submission is a caller bug: logged, never raised.

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from inline_csp.exceptions import CollectorConsumed, HashAlgorithmConflict
from inline_csp.security.fetch_policy import FetchPolicy

log = logging.getLogger(__name__)


def merge_policies(current: Optional[FetchPolicy], incoming: FetchPolicy) -> FetchPolicy:
    if current is None:
        return incoming
    if current.directive_id != incoming.directive_id:
        raise ValueError(
            f"Cannot merge {incoming.directive_id} into {current.directive_id}"
        )

    hashes = dict(current.hashes)
    for digest, algo in incoming.hashes.items():
        known = hashes.get(digest)
        if known is not None and known != algo:
            raise HashAlgorithmConflict(current.directive_id, digest, known, algo)
        hashes[digest] = algo

    return FetchPolicy(
        directive_id=current.directive_id,
        block_all=current.block_all and incoming.block_all,
        hosts=current.hosts + incoming.hosts,
        schemes=current.schemes + incoming.schemes,
        self_allowed=current.self_allowed or incoming.self_allowed,
        inline_allowed=current.inline_allowed or incoming.inline_allowed,
        eval_allowed=current.eval_allowed or incoming.eval_allowed,
        nonces=current.nonces + incoming.nonces,
        hashes=hashes,
        unsafe_hashes_allowed=current.unsafe_hashes_allowed or incoming.unsafe_hashes_allowed,
        strict_dynamic_allowed=current.strict_dynamic_allowed or incoming.strict_dynamic_allowed,
    )


class DynamicCollector:
    """
    Collects FetchPolicy values submitted while one page renders.

    Lifecycle: created empty per request, filled by InlineUtil, consumed once
    by collect() when the response header is built. Not thread-safe and not
    meant to be shared between requests.
    """

    def __init__(self) -> None:
        self._policies: dict[str, FetchPolicy] = {}
        self._consumed = False

    def __len__(self) -> int:
        return len(self._policies)

    def __contains__(self, directive_id: object) -> bool:
        return directive_id in self._policies

    @property
    def consumed(self) -> bool:
        return self._consumed

    def add(self, policy: FetchPolicy) -> None:
        self.add_all((policy,))

    def add_all(self, policies: Iterable[FetchPolicy]) -> None:
        """
        Merge several policies all-or-nothing.
        If any merge fails the collector keeps its previous state.
        """
        if self._consumed:
            raise CollectorConsumed()

        staged = dict(self._policies)
        overlaps: list[str] = []
        for policy in policies:
            current = staged.get(policy.directive_id)
            if (
                current is not None
                and current.block_all != policy.block_all
                and (current.is_permissive() or policy.is_permissive())
            ):
                overlaps.append(policy.directive_id)
            staged[policy.directive_id] = merge_policies(current, policy)

        self._policies = staged
        for directive_id in overlaps:
            log.warning(
                "CSP %s: 'none' submission overridden by a permissive submission in the same render",
                directive_id,
            )

    def policies(self) -> Mapping[str, FetchPolicy]:
        """Read-only view of the merged policies (does not consume)."""
        if self._consumed:
            raise CollectorConsumed()
        return MappingProxyType(self._policies)

    def collect(self) -> list[FetchPolicy]:
        """Hand the merged policies to the header layer. Allowed exactly once."""
        if self._consumed:
            raise CollectorConsumed()
        self._consumed = True
        out = list(self._policies.values())
        self._policies = {}
        return out
