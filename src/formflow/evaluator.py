"""ConditionEvaluator: evaluates structured conditions against answers.

Used for field visibility and for the rules of conditional navigation.

Operator semantics (``answer`` is ``answers[source_field_id]``):

  - equals:     answer strictly equals value
  - not_equals: negation of equals
  - in:         answer is an element of the list value
  - not_in:     negation of in

Strict equality means booleans only equal booleans (``True != 1``) and
strings never equal numbers.

A missing answer is "not equal to anything": equals/in give False,
not_equals/not_in give True.

The evaluator never raises.  A malformed condition (non-list value for
in/not_in, unknown operator, comparison failure) is logged and resolved
with ``fail_open``: visibility passes True (field stays visible),
navigation passes False (rule never matches, default branch is taken).
``in`` against a malformed list is always False.
"""

from __future__ import annotations

import logging
from typing import Any

from formflow.models.condition import Condition, LIST_OPERATORS

logger = logging.getLogger(__name__)

# Sentinel distinguishing "no answer recorded" from a recorded None
_MISSING = object()


def strict_equals(a: Any, b: Any) -> bool:
    """Equality without bool/int coercion."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, str) != isinstance(b, str):
        return False
    return a == b


class ConditionEvaluator:
    """Evaluates conditions against the current answer set."""

    def evaluate(
        self,
        condition: Condition,
        answers: dict[str, Any],
        *,
        fail_open: bool = True,
    ) -> bool:
        """Return whether ``condition`` holds for ``answers``.

        Args:
            condition: the condition to evaluate
            answers: accumulated answers keyed by field_id
            fail_open: result for malformed not_in / unknown-operator
                conditions (True for visibility, False for navigation)

        Returns:
            True if the condition holds.
        """
        try:
            return self._evaluate(condition, answers, fail_open)
        except Exception:
            logger.warning(
                "Condition on '%s' (%s) failed to evaluate; treating as %s",
                getattr(condition, "source_field_id", "?"),
                getattr(condition, "operator", "?"),
                fail_open,
                exc_info=True,
            )
            return fail_open

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _evaluate(self, condition: Condition, answers: dict[str, Any], fail_open: bool) -> bool:
        op = condition.operator
        value = condition.value
        answer = answers.get(condition.source_field_id, _MISSING)
        if answer is None:
            answer = _MISSING

        if op in LIST_OPERATORS and not isinstance(value, (list, tuple)):
            logger.warning(
                "Condition on '%s' uses '%s' with non-list value %r",
                condition.source_field_id, op, value,
            )
            return False if op == "in" else fail_open

        if op == "equals":
            return answer is not _MISSING and strict_equals(answer, value)

        if op == "not_equals":
            return answer is _MISSING or not strict_equals(answer, value)

        if op == "in":
            return answer is not _MISSING and self._contains(value, answer)

        if op == "not_in":
            return answer is _MISSING or not self._contains(value, answer)

        logger.warning("Unknown condition operator: %s", op)
        return fail_open

    @staticmethod
    def _contains(values: list[Any], answer: Any) -> bool:
        return any(strict_equals(answer, v) for v in values)
