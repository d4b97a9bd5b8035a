"""Navigation models: how a step picks its successor.

Four variants, discriminated by ``type``:
  - DirectNavigation: always go to ``next_step_id``
  - ConditionalNavigation: branch on one answer; first matching rule wins,
    then ``default_next_step_id``, then end of form
  - SubmitNavigation: end of form, triggers backend submission
  - ComputedNavigation: call a registered navigation function with the
    whole answer set (e.g. age computed from a birth date)

The discriminated ``Navigation`` union lets Pydantic parse the wire dict
straight into the right class.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from .condition import ConditionOperator


class DirectNavigation(BaseModel):
    """Unconditional transition to ``next_step_id``."""

    type: Literal["direct"] = "direct"
    next_step_id: str

    def target_step_ids(self) -> list[str]:
        return [self.next_step_id]


class ConditionalRule(BaseModel):
    """One branch of a conditional navigation.

    ``operator`` is omitted on the wire for the common strict-equality case.
    """

    # Dropped from the wire when null, so it needs a default to parse back
    value: Any = None
    next_step_id: str
    operator: Optional[ConditionOperator] = None


class ConditionalNavigation(BaseModel):
    """Branch on ``answers[source_field_id]``."""

    type: Literal["conditional"] = "conditional"
    source_field_id: str
    rules: list[ConditionalRule] = []
    default_next_step_id: Optional[str] = None

    def target_step_ids(self) -> list[str]:
        targets = [r.next_step_id for r in self.rules]
        if self.default_next_step_id is not None:
            targets.append(self.default_next_step_id)
        return targets


class SubmitNavigation(BaseModel):
    """Terminal transition: the form ends and is submitted."""

    type: Literal["submit"] = "submit"

    def target_step_ids(self) -> list[str]:
        return []


class ComputedNavigation(BaseModel):
    """Successor computed by a named function over the full answer set.

    Every ``params`` key ending in ``_step_id`` is treated as a step
    reference and validated with the rest of the schema graph.
    """

    type: Literal["computed"] = "computed"
    function: str
    params: dict[str, Any] = {}
    default_next_step_id: Optional[str] = None

    def target_step_ids(self) -> list[str]:
        targets = [
            v for k, v in self.params.items()
            if k.endswith("_step_id") and isinstance(v, str)
        ]
        if self.default_next_step_id is not None:
            targets.append(self.default_next_step_id)
        return targets


# Discriminated union: Pydantic picks the right type based on the "type" field.
Navigation = Annotated[
    Union[DirectNavigation, ConditionalNavigation, SubmitNavigation, ComputedNavigation],
    Field(discriminator="type"),
]
