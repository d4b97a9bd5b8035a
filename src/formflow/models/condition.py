"""Condition model: structured visibility / branching predicate.

A condition compares one prior answer (``source_field_id``) against a
literal value.  It is used in two places:

  - ``FormField.condition``: the field is shown only when it holds
  - ``ConditionalRule``: a branch of a conditional navigation is taken
    when it holds

Conditions are plain data; they are evaluated by
:class:`formflow.evaluator.ConditionEvaluator`.  On the wire the source
field is named ``field_id``.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# Closed operator set.  ``in`` / ``not_in`` expect a list value.
ConditionOperator = Literal["equals", "not_equals", "in", "not_in"]

LIST_OPERATORS: frozenset[str] = frozenset({"in", "not_in"})


class Condition(BaseModel):
    """Compare ``answers[source_field_id]`` against ``value``."""

    model_config = ConfigDict(populate_by_name=True)

    source_field_id: str = Field(alias="field_id")
    operator: ConditionOperator
    # str / bool / number for equals & not_equals, list for in & not_in
    value: Any = None
