"""DynamicCollector merge semantics."""

from __future__ import annotations

import logging

import pytest

from inline_csp.exceptions import CollectorConsumed, HashAlgorithmConflict
from inline_csp.security.collector import DynamicCollector, merge_policies
from inline_csp.security.fetch_policy import FetchPolicy

A = "https://a.example.com"
B = "https://b.example.com"


def test_starts_empty(collector):
    assert len(collector) == 0
    assert dict(collector.policies()) == {}


def test_hosts_union(collector):
    collector.add(FetchPolicy(directive_id="img-src", hosts=(A,)))
    collector.add(FetchPolicy(directive_id="img-src", hosts=(B,)))

    merged = collector.policies()["img-src"]
    assert set(merged.hosts) == {A, B}
    assert len(merged.hosts) == 2


def test_directives_kept_apart(collector):
    collector.add(FetchPolicy(directive_id="img-src", hosts=(A,)))
    collector.add(FetchPolicy(directive_id="media-src", hosts=(B,)))

    assert collector.policies()["img-src"].hosts == (A,)
    assert collector.policies()["media-src"].hosts == (B,)
    assert "frame-src" not in collector


def test_schemes_nonces_hashes_union(collector):
    collector.add(FetchPolicy(directive_id="script-src", schemes=("data:",), nonces=("n1",), hashes={"h1": "sha256"}))
    collector.add(FetchPolicy(directive_id="script-src", schemes=("blob:", "data:"), nonces=("n2",), hashes={"h2": "sha256"}))

    merged = collector.policies()["script-src"]
    assert merged.schemes == ("data:", "blob:")
    assert merged.nonces == ("n1", "n2")
    assert dict(merged.hashes) == {"h1": "sha256", "h2": "sha256"}


def test_same_hash_twice_is_fine(collector):
    collector.add(FetchPolicy(directive_id="script-src", hashes={"h1": "sha256"}))
    collector.add(FetchPolicy(directive_id="script-src", hashes={"h1": "sha256"}))
    assert dict(collector.policies()["script-src"].hashes) == {"h1": "sha256"}


def test_flags_are_ored(collector):
    collector.add(FetchPolicy(directive_id="script-src", inline_allowed=True))
    collector.add(FetchPolicy(directive_id="script-src", unsafe_hashes_allowed=True, hashes={"h": "sha256"}))
    collector.add(FetchPolicy(directive_id="script-src", self_allowed=True))

    merged = collector.policies()["script-src"]
    assert merged.inline_allowed and merged.unsafe_hashes_allowed and merged.self_allowed
    assert not merged.eval_allowed
    assert not merged.strict_dynamic_allowed


def test_block_all_kept_when_every_submission_blocks(collector):
    collector.add(FetchPolicy(directive_id="object-src", block_all=True))
    collector.add(FetchPolicy(directive_id="object-src", block_all=True))
    assert collector.policies()["object-src"].block_all is True


def test_permissive_submission_overrides_block_and_warns(collector, caplog):
    with caplog.at_level(logging.WARNING, logger="inline_csp.security.collector"):
        collector.add(FetchPolicy(directive_id="object-src", block_all=True))
        collector.add(FetchPolicy(directive_id="object-src", hosts=(A,)))

    merged = collector.policies()["object-src"]
    assert merged.block_all is False
    assert merged.hosts == (A,)
    assert any("object-src" in r.getMessage() for r in caplog.records)


def test_block_after_permissive_also_warns(collector, caplog):
    with caplog.at_level(logging.WARNING, logger="inline_csp.security.collector"):
        collector.add(FetchPolicy(directive_id="frame-src", hosts=(A,)))
        collector.add(FetchPolicy(directive_id="frame-src", block_all=True))

    assert collector.policies()["frame-src"].block_all is False
    assert len(caplog.records) == 1


def test_hash_algorithm_conflict_raises_and_keeps_state(collector):
    collector.add(FetchPolicy(directive_id="script-src", hashes={"abc": "sha256"}))

    with pytest.raises(HashAlgorithmConflict) as exc_info:
        collector.add(FetchPolicy(directive_id="script-src", hashes={"abc": "sha384"}, hosts=(A,)))

    assert exc_info.value.existing == "sha256"
    assert exc_info.value.incoming == "sha384"
    merged = collector.policies()["script-src"]
    assert dict(merged.hashes) == {"abc": "sha256"}
    assert merged.hosts == ()


def test_add_all_is_all_or_nothing(collector):
    collector.add(FetchPolicy(directive_id="script-src", hashes={"abc": "sha256"}))

    with pytest.raises(HashAlgorithmConflict):
        collector.add_all(
            [
                FetchPolicy(directive_id="img-src", hosts=(B,)),
                FetchPolicy(directive_id="script-src", hashes={"abc": "sha512"}),
            ]
        )

    assert "img-src" not in collector
    assert len(collector) == 1


def test_merge_policies_rejects_mixed_directives():
    with pytest.raises(ValueError):
        merge_policies(FetchPolicy(directive_id="img-src"), FetchPolicy(directive_id="media-src"))


def test_collect_consumes_once(collector):
    collector.add(FetchPolicy(directive_id="img-src", hosts=(A,)))

    collected = collector.collect()
    assert [p.directive_id for p in collected] == ["img-src"]
    assert collector.consumed

    with pytest.raises(CollectorConsumed):
        collector.collect()
    with pytest.raises(CollectorConsumed):
        collector.add(FetchPolicy(directive_id="img-src", hosts=(B,)))
    with pytest.raises(CollectorConsumed):
        collector.policies()


def test_collectors_are_independent():
    first, second = DynamicCollector(), DynamicCollector()
    first.add(FetchPolicy(directive_id="img-src", hosts=(A,)))
    assert "img-src" not in second


def test_block_next_to_empty_submission_does_not_warn(collector, caplog):
    with caplog.at_level(logging.WARNING, logger="inline_csp.security.collector"):
        collector.add(FetchPolicy(directive_id="object-src", block_all=True))
        collector.add(FetchPolicy(directive_id="object-src"))

    assert collector.policies()["object-src"].block_all is False
    assert caplog.records == []
