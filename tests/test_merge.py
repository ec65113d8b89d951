from __future__ import annotations

import pytest

from auditplan.merge import MISSING, deep_clone, deep_equal, merge
from auditplan.models import ConfigError, MergeTypeError


def test_array_merge_is_ordered_union() -> None:
    assert merge([1, 2], [2, 3]) == [1, 2, 3]


def test_array_merge_dedupes_by_value() -> None:
    base = [{"path": "a", "options": {}}, "b"]
    extension = [{"path": "a", "options": {}}, {"path": "c"}]
    assert merge(base, extension) == [
        {"path": "a", "options": {}},
        "b",
        {"path": "c"},
    ]


def test_array_merge_keeps_bools_distinct_from_ints() -> None:
    assert merge([1, 0], [True, False]) == [1, 0, True, False]


def test_merge_with_own_clone_is_identity() -> None:
    tree = {
        "passes": [{"passName": "defaultPass", "gatherers": ["a", {"path": "b"}]}],
        "categories": {"perf": {"title": "Perf", "auditRefs": [{"id": "x", "weight": 1}]}},
        "extends": True,
    }
    assert merge(tree, deep_clone(tree)) == tree


def test_overwrite_arrays_replaces_lists() -> None:
    assert merge({"a": [1, 2]}, {"a": [3]}, True) == {"a": [3]}


def test_settings_key_overwrites_arrays() -> None:
    base = {"settings": {"onlyAudits": ["a"]}, "audits": ["a"]}
    extension = {"settings": {"onlyAudits": ["b"]}, "audits": ["b"]}
    assert merge(base, extension) == {
        "settings": {"onlyAudits": ["b"]},
        "audits": ["a", "b"],
    }


def test_absent_sides() -> None:
    assert merge(None, {"a": 1}) == {"a": 1}
    assert merge({"a": 1}) == {"a": 1}
    assert merge({"a": 1}, MISSING) == {"a": 1}
    assert merge({"a": None}, {"a": {"b": 1}}) == {"a": {"b": 1}}


def test_scalar_extension_wins() -> None:
    assert merge({"a": 1, "b": 2}, {"a": "x"}) == {"a": "x", "b": 2}
    assert merge({"a": {"b": 1}}, {"a": False}) == {"a": False}


def test_nested_mappings_merge_recursively() -> None:
    base = {"settings": {"throttling": {"rttMs": 150, "cpuSlowdownMultiplier": 4}}}
    merged = merge(base, {"settings": {"throttling": {"rttMs": 40}}})
    assert merged == {"settings": {"throttling": {"rttMs": 40, "cpuSlowdownMultiplier": 4}}}


def test_merge_does_not_mutate_inputs() -> None:
    base = {"a": {"b": [1]}, "c": 1}
    extension = {"a": {"b": [2], "d": 3}}
    base_before = deep_clone(base)
    extension_before = deep_clone(extension)
    merge(base, extension)
    assert base == base_before
    assert extension == extension_before


@pytest.mark.parametrize(
    ("base", "extension", "message"),
    [
        ({"a": 1}, [1], "Expected list but got mapping"),
        ("x", [1], "Expected list but got str"),
        ([1], {"a": 1}, "Expected mapping but got list"),
        (3, {"a": 1}, "Expected mapping but got int"),
    ],
)
def test_type_mismatch_raises(base, extension, message: str) -> None:
    with pytest.raises(MergeTypeError, match=message):
        merge(base, extension)


def test_type_mismatch_is_a_config_error() -> None:
    with pytest.raises(ConfigError):
        merge({"passes": {"defaultPass": {}}}, {"passes": [{"passName": "x"}]})
    with pytest.raises(TypeError):
        merge({"passes": {"defaultPass": {}}}, {"passes": [{"passName": "x"}]})


def test_deep_clone_shares_plugin_objects() -> None:
    class _Plugin:
        pass

    instance = _Plugin()
    tree = {"gatherers": [{"instance": instance}, _Plugin]}
    cloned = deep_clone(tree)
    assert cloned == tree
    assert cloned["gatherers"] is not tree["gatherers"]
    assert cloned["gatherers"][0] is not tree["gatherers"][0]
    assert cloned["gatherers"][0]["instance"] is instance
    assert cloned["gatherers"][1] is _Plugin


def test_deep_equal() -> None:
    assert deep_equal({"a": [1, {"b": 2}]}, {"a": [1, {"b": 2}]})
    assert not deep_equal({"a": 1}, {"a": 1, "b": 2})
    assert not deep_equal([1], [True])
    assert not deep_equal([1], {"0": 1})
