"""NavigationResolver: computes the successor of a step.

Given a step and the current answers, returns the next step id, or
``None`` to signal end of form:

  - terminate step: always None (dead end)
  - direct: ``next_step_id`` unconditionally (schema validation already
    guarantees it exists; the resolver does not re-check)
  - conditional: first rule whose condition holds, else
    ``default_next_step_id``, else None
  - submit: None
  - computed: result of the registered function when it is a non-empty
    string, else ``default_next_step_id``, else None

Conditional rules are matched with the shared ConditionEvaluator using
strict equality unless the rule names another operator.  Malformed rules
never match (``fail_open=False``).
"""

from __future__ import annotations

import logging
from typing import Any

from formflow.computed import NavigationFunction, navigation_functions
from formflow.errors import SchemaError
from formflow.evaluator import ConditionEvaluator
from formflow.models.condition import Condition
from formflow.models.navigation import (
    ComputedNavigation,
    ConditionalNavigation,
    DirectNavigation,
    SubmitNavigation,
)
from formflow.models.schema import FormSchema, FormStep

logger = logging.getLogger(__name__)


class NavigationResolver:
    """Resolves step transitions.

    Args:
        evaluator: condition evaluator used for conditional rules
        functions: computed-navigation functions by name; defaults to the
            registry in :mod:`formflow.computed` at the time of each call
    """

    def __init__(
        self,
        evaluator: ConditionEvaluator | None = None,
        functions: dict[str, NavigationFunction] | None = None,
    ) -> None:
        self._evaluator = evaluator or ConditionEvaluator()
        self._functions = functions

    def resolve_next(self, step: FormStep, answers: dict[str, Any]) -> str | None:
        """Return the next step id for ``step``, or None at end of form."""
        if step.type == "terminate":
            return None

        nav = step.navigation
        if isinstance(nav, DirectNavigation):
            return nav.next_step_id
        if isinstance(nav, ConditionalNavigation):
            return self._resolve_conditional(nav, answers)
        if isinstance(nav, SubmitNavigation):
            return None
        if isinstance(nav, ComputedNavigation):
            return self._resolve_computed(step, nav, answers)

        raise SchemaError(
            f"Step '{step.step_id}' has unsupported navigation: {type(nav).__name__}"
        )

    def check_functions(self, schema: FormSchema) -> None:
        """Ensure every computed navigation names a known function.

        Raises:
            SchemaError: listing the unknown function names
        """
        known = self._available_functions()
        missing = sorted({
            step.navigation.function
            for step in schema.steps
            if isinstance(step.navigation, ComputedNavigation)
            and step.navigation.function not in known
        })
        if missing:
            raise SchemaError(f"Unknown navigation function(s): {missing}")

    # ------------------------------------------------------------------
    # Variant resolvers
    # ------------------------------------------------------------------

    def _resolve_conditional(
        self, nav: ConditionalNavigation, answers: dict[str, Any]
    ) -> str | None:
        for rule in nav.rules:
            condition = Condition(
                source_field_id=nav.source_field_id,
                operator=rule.operator or "equals",
                value=rule.value,
            )
            if self._evaluator.evaluate(condition, answers, fail_open=False):
                return rule.next_step_id
        return nav.default_next_step_id

    def _resolve_computed(
        self, step: FormStep, nav: ComputedNavigation, answers: dict[str, Any]
    ) -> str | None:
        fn = self._available_functions().get(nav.function)
        if fn is None:
            logger.warning(
                "Step '%s': unknown navigation function '%s', using default",
                step.step_id, nav.function,
            )
            return nav.default_next_step_id

        try:
            result = fn(dict(answers), dict(nav.params))
        except Exception:
            logger.warning(
                "Step '%s': navigation function '%s' raised, using default",
                step.step_id, nav.function,
                exc_info=True,
            )
            return nav.default_next_step_id

        if isinstance(result, str) and result:
            return result
        return nav.default_next_step_id

    def _available_functions(self) -> dict[str, NavigationFunction]:
        if self._functions is not None:
            return self._functions
        return navigation_functions()
