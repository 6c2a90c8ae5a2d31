"""Tests for operator resolution, LIKE patterns and evaluation."""

import re

import pytest

from indexed_tables.operators import evaluate, like_pattern, resolve_operator
from indexed_tables.types import Operator, OperatorKind, QueryOptions
from indexed_tables.utils import clamp_count, get_path, is_number, to_key_list


def op(kind, flags=0):
    return Operator(kind, flags)


class TestResolveOperator:
    """Tests for operator name resolution."""

    @pytest.mark.parametrize(
        "name,kind",
        [
            ("==", OperatorKind.EQ),
            ("===", OperatorKind.STRICT_EQ),
            ("!=", OperatorKind.NE),
            ("!==", OperatorKind.STRICT_NE),
            (">", OperatorKind.GT),
            (">=", OperatorKind.GTE),
            ("<", OperatorKind.LT),
            ("<=", OperatorKind.LTE),
            ("isectEmpty", OperatorKind.ISECT_EMPTY),
            ("isectNotEmpty", OperatorKind.ISECT_NOT_EMPTY),
            ("in", OperatorKind.IN),
            ("notIn", OperatorKind.NOT_IN),
            ("contains", OperatorKind.CONTAINS),
            ("notContains", OperatorKind.NOT_CONTAINS),
        ],
    )
    def test_plain_operators(self, name, kind):
        """Test every non-pattern operator name."""
        assert resolve_operator(name) == Operator(kind)

    def test_like_flags(self):
        """Test like/notLike with and without flag suffixes."""
        assert resolve_operator("like") == Operator(OperatorKind.LIKE, 0)
        assert resolve_operator("likei") == Operator(OperatorKind.LIKE, re.IGNORECASE)
        assert resolve_operator("notLikeim") == Operator(
            OperatorKind.NOT_LIKE, re.IGNORECASE | re.MULTILINE
        )
        assert resolve_operator("likeg") == Operator(OperatorKind.LIKE, 0)

    def test_unresolvable(self):
        """Test names that resolve to nothing."""
        assert resolve_operator("bogus") is None
        assert resolve_operator("likez") is None
        assert resolve_operator("likeii") is None
        assert resolve_operator("") is None

    def test_no_operator_is_no_constraint(self):
        """Test that evaluating without an operator yields None."""
        assert evaluate(1, None, 1) is None


class TestLike:
    """Tests for SQL LIKE patterns."""

    def test_percent_and_underscore(self):
        """Test % as any run and _ as exactly one character."""
        like = op(OperatorKind.LIKE)
        assert evaluate("abcde", like, "a%c_e") is True
        assert evaluate("abcdde", like, "a%c_e") is False
        assert evaluate("ace", like, "a%c_e") is False
        assert evaluate("acxe", like, "a%c_e") is True

    def test_metacharacters_escaped(self):
        """Test that regex metacharacters match literally."""
        pattern = like_pattern("a.b(c)*")
        assert pattern.fullmatch("a.b(c)*")
        assert not pattern.fullmatch("axb(c)")

    def test_whole_value_must_match(self):
        """Test that a pattern is anchored at both ends."""
        like = op(OperatorKind.LIKE)
        assert evaluate("xabc", like, "abc") is False
        assert evaluate("abc\n", like, "abc") is False

    def test_case_insensitive_flag(self):
        """Test the i flag."""
        assert evaluate("ABCDE", op(OperatorKind.LIKE, re.IGNORECASE), "a%e") is True
        assert evaluate("ABCDE", op(OperatorKind.LIKE), "a%e") is False

    def test_multiline_flag_matches_per_line(self):
        """Test that the m flag anchors at line boundaries."""
        likem = resolve_operator("likem")
        assert evaluate("first\nsecond", likem, "sec%") is True
        assert evaluate("first\nsecond", likem, "fir_t") is True
        assert evaluate("first\nsecond", likem, "irst") is False
        assert evaluate("first\nsecond", op(OperatorKind.LIKE), "sec%") is False
        assert evaluate("first\nsecond", resolve_operator("notLikem"), "sec%") is False

    def test_dotall_flag(self):
        """Test that the s flag lets % span newlines."""
        assert evaluate("first\nsecond", resolve_operator("likes"), "first%") is True
        assert evaluate("first\nsecond", op(OperatorKind.LIKE), "first%") is False

    def test_non_string_values(self):
        """Test that numbers are matched by their text and None never matches."""
        like = op(OperatorKind.LIKE)
        assert evaluate(1234, like, "12%") is True
        assert evaluate(None, like, "%") is False

    @pytest.mark.parametrize("value", ["abcde", "abcdde", "", None, 12, "A_C_E"])
    def test_not_like_is_complement(self, value):
        """Test that notLike is exactly the negation of like."""
        like = evaluate(value, op(OperatorKind.LIKE), "a%c_e")
        not_like = evaluate(value, op(OperatorKind.NOT_LIKE), "a%c_e")
        assert not_like is (not like)

    def test_precompiled_pattern(self):
        """Test that a supplied compiled pattern is used."""
        pattern = like_pattern("x%")
        assert evaluate("xyz", op(OperatorKind.LIKE), "ignored", pattern) is True


class TestComparisons:
    """Tests for equality and ordering operators."""

    def test_loose_equality(self):
        """Test that numeric strings equal numbers under '=='."""
        assert evaluate("18", op(OperatorKind.EQ), 18) is True
        assert evaluate(18, op(OperatorKind.EQ), "18.0") is True
        assert evaluate("abc", op(OperatorKind.EQ), 18) is False
        assert evaluate(None, op(OperatorKind.EQ), None) is True
        assert evaluate("18", op(OperatorKind.NE), 18) is False

    def test_strict_equality(self):
        """Test that '===' also requires the same kind of value."""
        assert evaluate("18", op(OperatorKind.STRICT_EQ), 18) is False
        assert evaluate(1, op(OperatorKind.STRICT_EQ), 1.0) is True
        assert evaluate(True, op(OperatorKind.STRICT_EQ), 1) is False
        assert evaluate("18", op(OperatorKind.STRICT_NE), 18) is True

    def test_ordering(self):
        """Test >, >=, < and <=."""
        assert evaluate(5, op(OperatorKind.GT), 4) is True
        assert evaluate(5, op(OperatorKind.GTE), 5) is True
        assert evaluate(5, op(OperatorKind.LT), 5) is False
        assert evaluate(5, op(OperatorKind.LTE), 5) is True
        assert evaluate("b", op(OperatorKind.GT), "a") is True

    def test_ordering_incomparable(self):
        """Test that comparing None or mixed types is false, not an error."""
        assert evaluate(None, op(OperatorKind.GT), 5) is False
        assert evaluate(None, op(OperatorKind.LTE), 5) is False
        assert evaluate("x", op(OperatorKind.LT), 5) is False


class TestCollectionOperators:
    """Tests for intersection, membership and containment."""

    def test_intersection(self):
        """Test isectEmpty and isectNotEmpty."""
        assert evaluate(["a", "b"], op(OperatorKind.ISECT_NOT_EMPTY), ["b", "c"]) is True
        assert evaluate(["a", "b"], op(OperatorKind.ISECT_EMPTY), ["b", "c"]) is False
        assert evaluate(["a"], op(OperatorKind.ISECT_EMPTY), ["z"]) is True

    def test_intersection_with_missing_values(self):
        """Test that None counts as an empty list."""
        assert evaluate(None, op(OperatorKind.ISECT_EMPTY), ["a"]) is True
        assert evaluate(["a"], op(OperatorKind.ISECT_NOT_EMPTY), None) is False

    def test_in(self):
        """Test in and notIn."""
        assert evaluate("a", op(OperatorKind.IN), ["a", "b"]) is True
        assert evaluate("z", op(OperatorKind.IN), ["a", "b"]) is False
        assert evaluate("z", op(OperatorKind.NOT_IN), ["a", "b"]) is True
        assert evaluate("ell", op(OperatorKind.IN), "hello") is True

    def test_in_without_list(self):
        """Test membership against a missing predicate list."""
        assert evaluate("a", op(OperatorKind.IN), None) is False
        assert evaluate("a", op(OperatorKind.NOT_IN), None) is True

    def test_contains(self):
        """Test contains and notContains on lists and strings."""
        assert evaluate(["x", "y"], op(OperatorKind.CONTAINS), "y") is True
        assert evaluate("hello", op(OperatorKind.CONTAINS), "ell") is True
        assert evaluate("hello", op(OperatorKind.NOT_CONTAINS), "z") is True

    def test_contains_missing_value(self):
        """Test containment on a missing record value."""
        assert evaluate(None, op(OperatorKind.CONTAINS), "y") is False
        assert evaluate(None, op(OperatorKind.NOT_CONTAINS), "y") is True


class TestUtils:
    """Tests for the shared helpers."""

    def test_get_path(self):
        """Test nested, indexed and missing path segments."""
        record = {"a": {"b": {"c": 1}}, "items": [{"name": "x"}]}
        assert get_path(record, "a.b.c") == 1
        assert get_path(record, "items.0.name") == "x"
        assert get_path(record, "a.x.c") is None
        assert get_path(record, "items.5.name") is None
        assert get_path(record, "") is None
        assert get_path(None, "a") is None

    def test_get_path_attributes(self):
        """Test that non-mapping records are read by attribute."""

        class Point:
            def __init__(self):
                self.x = 3

        assert get_path(Point(), "x") == 3
        assert get_path(Point(), "y") is None

    def test_is_number(self):
        """Test which values count as numbers."""
        assert is_number(1)
        assert is_number(1.5)
        assert not is_number(True)
        assert not is_number("1")
        assert not is_number(None)

    def test_to_key_list(self):
        """Test key coercion."""
        assert to_key_list(None) == []
        assert to_key_list(5) == [5]
        assert to_key_list((1, 2)) == [1, 2]
        assert to_key_list("ab") == ["ab"]

    def test_clamp_count(self):
        """Test clamping skip/limit counts."""
        assert clamp_count(2, 5) == 2
        assert clamp_count(10, 5) == 5
        assert clamp_count(-10, 5) == -5
        assert clamp_count(float("nan"), 5) == 0
        assert clamp_count(float("-inf"), 5) == -5

    def test_query_options(self):
        """Test option normalization from mappings and keywords."""
        opts = QueryOptions.from_mapping({"index": "age", "leftInclusive": False}, right_inclusive=True)
        assert opts.index == "age"
        assert opts.left_inclusive is False
        assert opts.right_inclusive is True
        defaults = QueryOptions.from_mapping()
        assert defaults.index is None
        assert defaults.left_inclusive is True
        assert defaults.right_inclusive is False
        assert QueryOptions.from_mapping({"custom": 1}).extra == {"custom": 1}
