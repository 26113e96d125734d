"""Tests for identity-key de-duplication and direct precedence."""

from __future__ import annotations

from impact_engine.analysis.dedup import dedupe, reconcile, without_keys
from impact_engine.models.lineage import ImpactRecord


def _rec(name: str, connection_id: int = 1, asset_name: str | None = None, **extra: object) -> ImpactRecord:
    return ImpactRecord(name=name, connection_id=connection_id, asset_name=asset_name or name, **extra)


def _key(record: ImpactRecord) -> tuple[object, object, object]:
    return record.identity_key


class TestDedupe:
    def test_first_occurrence_wins(self):
        records = [_rec("A", depth=1), _rec("B"), _rec("A", depth=2)]
        unique = dedupe(records, _key)
        assert [r.name for r in unique] == ["A", "B"]
        assert unique[0].depth == 1

    def test_idempotent(self):
        records = [_rec("A"), _rec("A"), _rec("B"), _rec("A", connection_id=2)]
        once = dedupe(records, _key)
        assert dedupe(once, _key) == once

    def test_key_includes_connection_and_asset(self):
        records = [_rec("A"), _rec("A", connection_id=2), _rec("A", asset_name="other")]
        assert len(dedupe(records, _key)) == 3


class TestReconcile:
    def test_direct_takes_precedence(self):
        direct, indirect = reconcile([_rec("A")], [_rec("A"), _rec("B")], _key)
        assert [r.name for r in direct] == ["A"]
        assert [r.name for r in indirect] == ["B"]

    def test_disjoint_and_unique(self):
        direct, indirect = reconcile(
            [_rec("A"), _rec("B"), _rec("A")],
            [_rec("B"), _rec("C"), _rec("C"), _rec("D")],
            _key,
        )
        direct_keys = [r.identity_key for r in direct]
        indirect_keys = [r.identity_key for r in indirect]
        assert len(direct_keys) == len(set(direct_keys))
        assert len(indirect_keys) == len(set(indirect_keys))
        assert not set(direct_keys) & set(indirect_keys)
        assert [r.name for r in indirect] == ["C", "D"]

    def test_without_keys(self):
        kept = without_keys([_rec("A"), _rec("B")], [_rec("B")], _key)
        assert [r.name for r in kept] == ["A"]
