"""Unit tests for rule packs and the rule library."""

from __future__ import annotations

import json

import pytest

from warhost.domain.rules import parse_rule_payload
from warhost.errors import RuleValidationError
from warhost.repository.rule_store import RuleLibrary, load_rule_pack, load_rule_pack_file


def _rule(rule_id: str) -> dict:
    return {
        "id": rule_id,
        "name": rule_id.title(),
        "scope": "unit",
        "kind": "passive",
        "then": [{"t": "do", "fx": [{"t": "modHit", "add": 1}]}],
    }


def _pack(*rule_ids: str, version: str = "1", faction: str | None = "orks") -> str:
    return json.dumps({"version": version, "faction": faction, "rules": [_rule(rule_id) for rule_id in rule_ids]})


def test_load_rule_pack():
    pack = load_rule_pack(_pack("waaagh", "mob-rule"))
    assert pack.faction == "orks"
    assert [rule.id for rule in pack.rules] == ["waaagh", "mob-rule"]


@pytest.mark.parametrize(
    "data",
    [
        _pack("dup", "dup"),
        json.dumps({"format_version": 99, "rules": []}),
        json.dumps({"rules": [{"id": "broken"}]}),
        json.dumps({"rules": [], "extra": True}),
        "not json",
    ],
)
def test_invalid_packs(data):
    with pytest.raises(RuleValidationError):
        load_rule_pack(data)


class TestRuleLibrary:
    """Loading and indexing packs from disk."""

    def test_from_directory(self, tmp_path):
        (tmp_path / "b-orks.json").write_text(_pack("waaagh"))
        (tmp_path / "a-core.json").write_text(_pack("heroic", faction=None))
        (tmp_path / "notes.txt").write_text("ignored")
        library = RuleLibrary.from_directory(tmp_path)
        assert len(library) == 2
        assert [rule.id for rule in library] == ["heroic", "waaagh"]
        assert "waaagh" in library
        assert "missing" not in library

    def test_version_mismatch(self, tmp_path):
        (tmp_path / "orks.json").write_text(_pack("waaagh", version="2"))
        with pytest.raises(RuleValidationError, match="expected 1"):
            RuleLibrary.from_directory(tmp_path, expected_version="1")

    def test_duplicate_across_packs(self):
        with pytest.raises(RuleValidationError, match="more than one pack"):
            RuleLibrary([load_rule_pack(_pack("waaagh")), load_rule_pack(_pack("waaagh"))])

    def test_get_unknown(self):
        with pytest.raises(KeyError):
            RuleLibrary().get("nope")

    def test_links_round_trip(self):
        library = RuleLibrary([load_rule_pack(_pack("waaagh", "mob-rule"))])
        single = library.link("waaagh")
        bundle = library.link("waaagh", "mob-rule", name="Orky")
        assert single.name == "Waaagh"
        assert parse_rule_payload(single.rule_object) == [library.get("waaagh")]
        assert bundle.name == "Orky"
        assert [rule.id for rule in parse_rule_payload(bundle.rule_object)] == ["waaagh", "mob-rule"]
        with pytest.raises(ValueError):
            library.link()


def test_load_rule_pack_file(tmp_path):
    path = tmp_path / "orks.json"
    path.write_text(_pack("waaagh"))
    assert load_rule_pack_file(path).rules[0].id == "waaagh"
