"""ConditionEvaluator unit tests.

Tests each operator independently, strict-equality edge cases, missing
answers, and the fail_open handling of malformed conditions.
"""

import pytest

from formflow.evaluator import ConditionEvaluator, strict_equals
from formflow.models.condition import Condition


@pytest.fixture
def evaluator():
    return ConditionEvaluator()


def _cond(operator, value, field="q"):
    return Condition(source_field_id=field, operator=operator, value=value)


# =====================================================================
# strict_equals
# =====================================================================


class TestStrictEquals:
    """Comparison without bool/int or str/number coercion."""

    @pytest.mark.parametrize(
        "a, b, expected",
        [
            (True, True, True),
            (False, False, True),
            (True, 1, False),
            (0, False, False),
            ("1", 1, False),
            (1, 1.0, True),
            ("Yes", "Yes", True),
            ("yes", "Yes", False),
            (["a"], ["a"], True),
        ],
    )
    def test_pairs(self, a, b, expected):
        """Booleans only equal booleans; strings only equal strings."""
        assert strict_equals(a, b) is expected, f"strict_equals({a!r}, {b!r})"


# =====================================================================
# Operators
# =====================================================================


class TestOperators:
    """Each operator against a present answer."""

    def test_equals_true(self, evaluator):
        """Identical values match."""
        assert evaluator.evaluate(_cond("equals", True), {"q": True})

    def test_equals_is_strict(self, evaluator):
        """The string 'true' does not equal the boolean True."""
        assert not evaluator.evaluate(_cond("equals", True), {"q": "true"})

    def test_not_equals(self, evaluator):
        """not_equals is the negation of equals."""
        assert evaluator.evaluate(_cond("not_equals", "No"), {"q": "Yes"})
        assert not evaluator.evaluate(_cond("not_equals", "Yes"), {"q": "Yes"})

    def test_in(self, evaluator):
        """in matches when the answer is one of the listed values."""
        cond = _cond("in", ["Parent", "Guardian"])
        assert evaluator.evaluate(cond, {"q": "Guardian"})
        assert not evaluator.evaluate(cond, {"q": "Relative"})

    def test_in_is_strict(self, evaluator):
        """Membership uses strict equality too."""
        assert not evaluator.evaluate(_cond("in", [1, 2]), {"q": True})

    def test_not_in(self, evaluator):
        """not_in is the negation of in."""
        cond = _cond("not_in", ["a", "b"])
        assert evaluator.evaluate(cond, {"q": "c"})
        assert not evaluator.evaluate(cond, {"q": "a"})


# =====================================================================
# Missing answers
# =====================================================================


class TestMissingAnswer:
    """An absent (or None) answer equals nothing."""

    @pytest.mark.parametrize(
        "operator, value, expected",
        [
            ("equals", True, False),
            ("not_equals", True, True),
            ("in", ["a"], False),
            ("not_in", ["a"], True),
        ],
    )
    def test_absent(self, evaluator, operator, value, expected):
        """No answer recorded for the source field."""
        result = evaluator.evaluate(_cond(operator, value), {})
        assert result is expected, f"{operator} on missing answer gave {result}"

    def test_none_counts_as_missing(self, evaluator):
        """A recorded None behaves like no answer."""
        assert not evaluator.evaluate(_cond("equals", None), {"q": None})
        assert evaluator.evaluate(_cond("not_equals", "x"), {"q": None})


# =====================================================================
# Malformed conditions
# =====================================================================


class TestMalformed:
    """Malformed conditions never raise; fail_open decides the result."""

    def test_in_with_scalar_value_is_false(self, evaluator):
        """in against a non-list never matches, regardless of fail_open."""
        cond = _cond("in", "abc")
        assert evaluator.evaluate(cond, {"q": "a"}, fail_open=True) is False
        assert evaluator.evaluate(cond, {"q": "a"}, fail_open=False) is False

    def test_not_in_with_scalar_value_uses_fail_open(self, evaluator):
        """not_in against a non-list returns fail_open."""
        cond = _cond("not_in", "abc")
        assert evaluator.evaluate(cond, {"q": "z"}, fail_open=True) is True
        assert evaluator.evaluate(cond, {"q": "z"}, fail_open=False) is False

    def test_unknown_operator_uses_fail_open(self, evaluator):
        """An operator outside the closed set falls back to fail_open."""
        cond = Condition.model_construct(source_field_id="q", operator="gt", value=3)
        assert evaluator.evaluate(cond, {"q": 5}, fail_open=True) is True
        assert evaluator.evaluate(cond, {"q": 5}, fail_open=False) is False

    def test_wire_alias(self):
        """On the wire the source field is called field_id."""
        cond = Condition.model_validate({"field_id": "q", "operator": "equals", "value": 1})
        assert cond.source_field_id == "q"
