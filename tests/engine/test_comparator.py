"""Tests for the value comparator."""

import json
import pytest
from planlens.config.models import AnalysisLimits
from planlens.contracts.changes import PropertyAction, SENSITIVE_PLACEHOLDER, UNKNOWN_PLACEHOLDER
from planlens.engine.comparator import (
    ValueComparator,
    parse_replace_path,
    normalize_replace_paths,
    matches_replace_path,
)
from planlens.engine.values import DEPTH_MARKER, MAX_STORED_DEPTH, TRUNCATION_SUFFIX, estimate_size
from planlens.utils.errors import ShapeMismatchError


@pytest.fixture
def comparator():
    """Comparator with default limits."""
    return ValueComparator()


def run_compare(comparator, before, after, before_sensitive=None, after_sensitive=None, after_unknown=None, replace_paths=None):
    changes = []
    comparator.compare([], before, after, before_sensitive, after_sensitive, after_unknown, replace_paths, changes)
    return changes


class TestScenarios:
    """Reference scenarios for the differ."""

    def test_added_key(self, comparator):
        """Test a new key is reported as an add."""
        changes = run_compare(comparator, {"a": 1}, {"a": 1, "b": 2})

        assert len(changes) == 1
        assert changes[0].path == ["b"]
        assert changes[0].action == PropertyAction.ADD
        assert changes[0].after == 2
        assert changes[0].before is None

    def test_sensitive_modify_is_masked(self, comparator):
        """Test a sensitive modification is masked on both sides."""
        changes = run_compare(comparator, {"secret": "x"}, {"secret": "y"}, after_sensitive={"secret": True})

        assert len(changes) == 1
        change = changes[0]
        assert change.path == ["secret"]
        assert change.action == PropertyAction.MODIFY
        assert change.sensitive is True
        assert change.before == SENSITIVE_PLACEHOLDER
        assert change.after == SENSITIVE_PLACEHOLDER

    def test_unknown_is_not_removal(self, comparator):
        """Test an unknown planned value is reported as unknown, not removed."""
        changes = run_compare(comparator, {}, {"id": None}, after_unknown={"id": True})

        assert len(changes) == 1
        assert changes[0].path == ["id"]
        assert changes[0].action == PropertyAction.UNKNOWN
        assert changes[0].after == UNKNOWN_PLACEHOLDER
        assert changes[0].is_unknown is True

    def test_array_tail_removed(self, comparator):
        """Test a shorter array reports its tail as removed."""
        changes = run_compare(comparator, [1, 2, 3], [1, 2])

        assert len(changes) == 1
        assert changes[0].path == [2]
        assert changes[0].path_string == "[2]"
        assert changes[0].action == PropertyAction.REMOVE
        assert changes[0].before == 3


class TestObjects:
    """Test object recursion."""

    def test_removed_key(self, comparator):
        """Test a missing key is reported as a removal."""
        changes = run_compare(comparator, {"a": 1, "b": 2}, {"a": 1})
        assert [(c.path, c.action) for c in changes] == [(["b"], "remove")]

    def test_identical_values_emit_nothing(self, comparator):
        """Test equal trees produce no changes."""
        assert run_compare(comparator, {"a": {"b": [1, 2]}}, {"a": {"b": [1, 2]}}) == []

    def test_nested_modify(self, comparator):
        """Test nested modifications carry the full path."""
        changes = run_compare(comparator, {"tags": {"Name": "old"}}, {"tags": {"Name": "new"}})

        assert len(changes) == 1
        assert changes[0].path_string == "tags.Name"
        assert changes[0].name == "Name"
        assert changes[0].before == "old"
        assert changes[0].after == "new"

    def test_numeric_representation_ignored(self, comparator):
        """Test 1 and 1.0 compare equal."""
        assert run_compare(comparator, {"port": 1}, {"port": 1.0}) == []

    def test_bool_to_number_is_a_change(self, comparator):
        """Test a bool never equals a number."""
        changes = run_compare(comparator, {"flag": True}, {"flag": 1})
        assert len(changes) == 1
        assert changes[0].action == PropertyAction.MODIFY

    def test_kind_mismatch_single_modify(self, comparator):
        """Test a kind change is one modify without recursion."""
        changes = run_compare(comparator, {"rules": {"a": 1, "b": 2}}, {"rules": [1, 2]})

        assert len(changes) == 1
        assert changes[0].path == ["rules"]
        assert changes[0].action == PropertyAction.MODIFY
        assert changes[0].before == {"a": 1, "b": 2}
        assert changes[0].after == [1, 2]

    def test_unknown_key_missing_from_after(self, comparator):
        """Test unknown keys absent from the planned state are reported."""
        changes = run_compare(comparator, {"ami": "a"}, {"ami": "a"}, after_unknown={"arn": True})

        assert len(changes) == 1
        assert changes[0].path == ["arn"]
        assert changes[0].action == PropertyAction.UNKNOWN

    def test_unknown_subtree_is_opaque(self, comparator):
        """Test an unknown subtree is one change."""
        changes = run_compare(
            comparator,
            {"network": {"ip": "10.0.0.1", "mask": 24}},
            {"network": None},
            after_unknown={"network": True},
        )

        assert len(changes) == 1
        assert changes[0].path == ["network"]
        assert changes[0].action == PropertyAction.UNKNOWN

    def test_null_after_without_unknown_is_removal(self, comparator):
        """Test a null planned value without an unknown mark is a removal."""
        changes = run_compare(comparator, {"id": "i-123"}, {"id": None}, after_unknown={"id": False})
        assert [c.action for c in changes] == ["remove"]


class TestArrays:
    """Test positional array comparison."""

    def test_array_tail_added(self, comparator):
        """Test a longer array reports its tail as added."""
        changes = run_compare(comparator, [1], [1, 2, 3])
        assert [(c.path, c.action) for c in changes] == [([1], "add"), ([2], "add")]

    def test_reorder_is_positional(self, comparator):
        """Test arrays are compared by position."""
        changes = run_compare(comparator, ["a", "b"], ["b", "a"])
        assert [c.path for c in changes] == [[0], [1]]
        assert all(c.action == PropertyAction.MODIFY for c in changes)

    def test_nested_array_paths(self, comparator):
        """Test paths through nested arrays."""
        changes = run_compare(
            comparator,
            {"ingress": [{"cidr_blocks": ["10.0.0.0/8"]}]},
            {"ingress": [{"cidr_blocks": ["0.0.0.0/0"]}]},
        )
        assert len(changes) == 1
        assert changes[0].path_string == "ingress[0].cidr_blocks[0]"
        assert changes[0].name == "cidr_blocks"


class TestCreateAndDelete:
    """Test null against container expansion."""

    def test_create_expands_to_leaves(self, comparator):
        """Test a created resource reports every leaf as added."""
        changes = run_compare(
            comparator,
            None,
            {"ami": "ami-1", "id": None, "tags": {"env": "prod"}},
            after_unknown={"id": True},
        )

        by_path = {c.path_string: c for c in changes}
        assert by_path["ami"].action == PropertyAction.ADD
        assert by_path["id"].action == PropertyAction.UNKNOWN
        assert by_path["tags.env"].action == PropertyAction.ADD

    def test_delete_expands_to_leaves(self, comparator):
        """Test a deleted resource reports every leaf as removed."""
        changes = run_compare(comparator, {"bucket": "logs", "versioning": [{"enabled": True}]}, None)

        assert sorted(c.path_string for c in changes) == ["bucket", "versioning[0].enabled"]
        assert all(c.action == PropertyAction.REMOVE for c in changes)

    def test_empty_container_reported_once(self, comparator):
        """Test an empty container is reported as one change."""
        changes = run_compare(comparator, {"tags": None}, {"tags": {}})

        assert len(changes) == 1
        assert changes[0].path == ["tags"]
        assert changes[0].action == PropertyAction.ADD

    def test_sensitive_leaf_masked_on_create(self, comparator):
        """Test sensitive leaves stay masked when a resource is created."""
        changes = run_compare(comparator, None, {"password": "p4ss", "user": "admin"}, after_sensitive={"password": True})

        by_path = {c.path_string: c for c in changes}
        assert by_path["password"].sensitive is True
        assert by_path["password"].after == SENSITIVE_PLACEHOLDER
        assert by_path["user"].after == "admin"


class TestSensitivity:
    """Test masking rules."""

    def test_sensitive_subtree_not_expanded(self, comparator):
        """Test a sensitive subtree is one masked change."""
        changes = run_compare(
            comparator,
            {"config": {"a": 1, "b": 2}},
            {"config": {"a": 3, "b": 4}},
            before_sensitive={"config": True},
        )

        assert len(changes) == 1
        assert changes[0].path == ["config"]
        assert changes[0].sensitive is True

    def test_unchanged_sensitive_value_not_emitted(self, comparator):
        """Test an unchanged sensitive value produces nothing."""
        assert run_compare(comparator, {"password": "x"}, {"password": "x"}, after_sensitive={"password": True}) == []

    def test_sensitive_and_unknown(self, comparator):
        """Test sensitivity wins over unknown."""
        changes = run_compare(
            comparator,
            {"token": "abc"},
            {"token": None},
            after_sensitive={"token": True},
            after_unknown={"token": True},
        )

        assert len(changes) == 1
        assert changes[0].action == PropertyAction.UNKNOWN
        assert changes[0].sensitive is True
        assert changes[0].is_unknown is True
        assert changes[0].before == SENSITIVE_PLACEHOLDER
        assert changes[0].after == SENSITIVE_PLACEHOLDER

    def test_original_values_never_in_result(self, comparator):
        """Test sensitive values never appear in any record."""
        changes = run_compare(
            comparator,
            {"db": {"password": "old-secret"}},
            {"db": {"password": "new-secret"}},
            after_sensitive={"db": {"password": True}},
        )

        dumped = str([c.model_dump() for c in changes])
        assert "old-secret" not in dumped
        assert "new-secret" not in dumped

    def test_kind_mismatch_with_nested_mark_is_masked(self, comparator):
        """Test a kind change over marked children is masked."""
        changes = run_compare(
            comparator,
            {"auth": {"key": "abc"}},
            {"auth": ["abc"]},
            before_sensitive={"auth": {"key": True}},
        )

        assert len(changes) == 1
        assert changes[0].sensitive is True
        assert changes[0].before == SENSITIVE_PLACEHOLDER

    def test_mark_shape_mismatch_raises(self, comparator):
        """Test marks that contradict the value shape raise ShapeMismatchError."""
        with pytest.raises(ShapeMismatchError):
            run_compare(comparator, {"tags": {"a": "1"}}, {"tags": {"a": "2"}}, after_sensitive={"tags": [True]})


class TestReplacePaths:
    """Test replacement attribution."""

    def test_parse_replace_path(self):
        """Test replace path entries become path components."""
        assert parse_replace_path(["network_interface", 0.0, "subnet_id"]) == ("network_interface", 0, "subnet_id")
        assert parse_replace_path("tags.Name") == ("tags", "Name")

    def test_normalize_drops_empty_paths(self):
        """Test empty replace paths are dropped."""
        assert normalize_replace_paths([[], ["ami"], ""]) == (("ami",),)

    def test_prefix_match_both_directions(self):
        """Test replace paths match ancestors and descendants on whole components."""
        replace_paths = (("network_interface",), ("root_block_device", "0", "size"))
        assert matches_replace_path(["network_interface", 0, "subnet_id"], replace_paths)
        assert matches_replace_path(["root_block_device"], replace_paths)
        assert not matches_replace_path(["network"], replace_paths)
        assert not matches_replace_path(["root_block_device", 1, "size"], replace_paths)

    def test_change_annotated(self, comparator):
        """Test changes under a replace path trigger replacement."""
        changes = run_compare(
            comparator,
            {"ami": "ami-1", "instance_type": "t3.micro"},
            {"ami": "ami-2", "instance_type": "t3.large"},
            replace_paths=[["ami"]],
        )

        by_path = {c.path_string: c for c in changes}
        assert by_path["ami"].triggers_replacement is True
        assert by_path["instance_type"].triggers_replacement is False
        assert by_path["ami"].action == PropertyAction.MODIFY


class TestLimits:
    """Test truncation and depth limits."""

    def test_large_value_truncated_with_true_size(self):
        """Test large values are cut but keep their true size."""
        comparator = ValueComparator(AnalysisLimits(max_value_size_bytes=16))
        changes = run_compare(comparator, {"user_data": "a" * 50}, {"user_data": "b" * 50})

        assert len(changes) == 1
        assert changes[0].truncated is True
        assert changes[0].size_bytes == 100
        assert changes[0].before == "a" * 16 + TRUNCATION_SUFFIX

    def test_depth_limit_reports_subtree(self):
        """Test subtrees past max_depth are reported as one change."""
        comparator = ValueComparator(AnalysisLimits(max_depth=2))
        before = {"a": {"b": {"c": {"d": 1}}}}
        after = {"a": {"b": {"c": {"d": 2}}}}

        changes = run_compare(comparator, before, after)

        assert len(changes) == 1
        assert changes[0].path == ["a", "b"]
        assert changes[0].action == PropertyAction.MODIFY

    def test_subtree_at_depth_cap_stored_bounded(self):
        """Test a subtree reported at the depth cap keeps only its top levels."""
        comparator = ValueComparator(AnalysisLimits(max_depth=2))
        before = {"a": {"b": {"c": {"d": 1}}}}
        after = {"a": {"b": {"c": {"d": 2}}}}

        change = run_compare(comparator, before, after)[0]

        assert change.before == {"c": DEPTH_MARKER}
        assert change.after == {"c": DEPTH_MARKER}
        assert change.truncated is True

    def test_deep_kind_mismatch_serializes(self, comparator):
        """Test a deep object replacing a scalar is stored bounded."""
        deep = 1
        for _ in range(300):
            deep = {"k": deep}

        changes = run_compare(comparator, {"a": 1}, {"a": deep})

        assert len(changes) == 1
        change = changes[0]
        assert change.truncated is True
        assert change.size_bytes == 8 + estimate_size(deep)
        stored_depth = 0
        value = change.after
        while isinstance(value, dict):
            value = value["k"]
            stored_depth += 1
        assert value == DEPTH_MARKER
        assert stored_depth <= MAX_STORED_DEPTH
        json.dumps(change.model_dump(mode="json"))

    def test_deep_chain_eventually_truncated_by_size(self):
        """Test long chains of one-key objects count towards the size limit."""
        comparator = ValueComparator(AnalysisLimits(max_value_size_bytes=64))
        deep = 1
        for _ in range(30):
            deep = {"k": deep}

        change = run_compare(comparator, {"a": 1}, {"a": deep})[0]

        assert change.truncated is True
        assert isinstance(change.after, str)
        assert change.after.endswith(TRUNCATION_SUFFIX)

    def test_deep_document_does_not_overflow(self, comparator):
        """Test very deep documents do not exhaust the interpreter stack."""
        before = after = None
        for _ in range(2000):
            before = {"n": before}
            after = {"n": after}
        after = {"n": after, "x": 1}

        changes = run_compare(ValueComparator(AnalysisLimits(max_depth=10000)), before, after)
        assert [c.path for c in changes] == [["x"]]

    def test_deterministic(self, comparator):
        """Test the same input always gives the same records."""
        before = {"b": [1, {"z": 1, "a": 2}], "a": "x"}
        after = {"b": [2, {"z": 3}], "a": "y", "c": True}

        first = [c.model_dump() for c in run_compare(comparator, before, after)]
        second = [c.model_dump() for c in run_compare(comparator, before, after)]
        assert first == second
