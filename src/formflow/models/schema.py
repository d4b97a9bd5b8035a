"""Form schema models: a questionnaire as a directed graph of steps.

A ``FormSchema`` is an ordered list of ``FormStep`` nodes plus the id of
the start step.  Each step holds zero or more fields and one navigation
rule that picks the next step.

Step types:
  - normal: collects answers, then follows its navigation
  - terminate: dead end (e.g. consent declined); shows ``text``
  - summary: pre-submit review; shows ``text``, navigation defaults to submit

Graph invariants are checked when the schema is built:
  - step_id is unique within the schema, field_id within its step
  - start_step_id and every navigation target exist
  - a normal step always carries a navigation

Steps that cannot be reached from the start step are logged, not rejected.

Use :func:`parse_schema` to build a schema from wire data; it converts
Pydantic validation failures into :class:`~formflow.errors.SchemaError`.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Literal, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError
from pydantic import field_validator, model_validator

from formflow.errors import SchemaError

from .field import BaseField, FormField
from .navigation import Navigation, SubmitNavigation

logger = logging.getLogger(__name__)

StepType = Literal["normal", "terminate", "summary"]

# Answer keys recording "continued past a step"; field ids may not use it
CONTINUE_MARKER_PREFIX = "_continued."


def continue_marker(step_id: str) -> str:
    return f"{CONTINUE_MARKER_PREFIX}{step_id}"


class FormStep(BaseModel):
    """One node of the questionnaire graph."""

    step_id: str
    title: str
    type: StepType = "normal"
    # Shown instead of ``title`` for terminate / summary steps
    text: Optional[str] = None
    fields: list[FormField] = []
    navigation: Optional[Navigation] = None

    @model_validator(mode="after")
    def _chk(self):
        seen: set[str] = set()
        for f in self.fields:
            if f.field_id.startswith(CONTINUE_MARKER_PREFIX):
                raise ValueError(
                    f"field_id '{f.field_id}' uses the reserved prefix '{CONTINUE_MARKER_PREFIX}'"
                )
            if f.field_id in seen:
                raise ValueError(
                    f"Duplicate field_id '{f.field_id}' in step '{self.step_id}'"
                )
            seen.add(f.field_id)

        if self.navigation is None:
            if self.type == "normal":
                raise ValueError(f"Normal step '{self.step_id}' has no navigation")
            # terminate / summary steps end the form by default
            self.navigation = SubmitNavigation()
        return self

    @property
    def display_text(self) -> str:
        """Headline shown for the step (``text`` for terminal steps)."""
        if self.type in ("terminate", "summary") and self.text:
            return self.text
        return self.title

    @property
    def input_fields(self) -> list[BaseField]:
        """Fields that collect a value (everything except info)."""
        return [f for f in self.fields if f.collects_value]

    def get_field(self, field_id: str) -> BaseField | None:
        for f in self.fields:
            if f.field_id == field_id:
                return f
        return None


class FormSchema(BaseModel):
    """A complete questionnaire.

    ``steps`` preserves declaration order; lookups go through an index
    built at validation time.
    """

    name: str
    version: str
    start_step_id: str
    steps: list[FormStep]

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, v: Any) -> Any:
        # YAML turns ``version: 1.0`` into a float
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @model_validator(mode="after")
    def _chk_graph(self):
        step_ids: set[str] = set()
        for step in self.steps:
            if step.step_id in step_ids:
                raise ValueError(f"Duplicate step_id '{step.step_id}'")
            step_ids.add(step.step_id)

        if self.start_step_id not in step_ids:
            raise ValueError(
                f"start_step_id '{self.start_step_id}' does not exist in steps"
            )

        for step in self.steps:
            for target in step.navigation.target_step_ids():
                if target not in step_ids:
                    raise ValueError(
                        f"Step '{step.step_id}' navigates to unknown step '{target}'"
                    )

        reachable = self.reachable_step_ids()
        unreachable = [s for s in self._ordered_ids() if s not in reachable]
        if unreachable:
            logger.warning(
                "Schema %s v%s: steps unreachable from '%s': %s",
                self.name, self.version, self.start_step_id, unreachable,
            )
        return self

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def step_ids(self) -> list[str]:
        return self._ordered_ids()

    def _ordered_ids(self) -> list[str]:
        return [s.step_id for s in self.steps]

    def has_step(self, step_id: str) -> bool:
        return any(s.step_id == step_id for s in self.steps)

    def get_step(self, step_id: str) -> FormStep:
        """Return the step with ``step_id``.

        Raises:
            KeyError: if the step does not exist
        """
        for step in self.steps:
            if step.step_id == step_id:
                return step
        raise KeyError(f"Step not found: {step_id}")

    def find_field(self, field_id: str) -> BaseField | None:
        """Return the first field with ``field_id`` in any step, or None."""
        for step in self.steps:
            f = step.get_field(field_id)
            if f is not None:
                return f
        return None

    def reachable_step_ids(self) -> set[str]:
        """Breadth-first walk over every possible navigation target."""
        seen = {self.start_step_id}
        queue = deque([self.start_step_id])
        by_id = {s.step_id: s for s in self.steps}
        while queue:
            step = by_id.get(queue.popleft())
            if step is None or step.type == "terminate":
                continue
            for target in step.navigation.target_step_ids():
                if target not in seen:
                    seen.add(target)
                    queue.append(target)
        return seen

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    def to_wire(self) -> dict[str, Any]:
        """Dump to the JSON wire shape (aliases applied, nulls dropped)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def parse_schema(data: dict[str, Any]) -> FormSchema:
    """Build a :class:`FormSchema` from wire data.

    Raises:
        SchemaError: if the data is malformed or the graph is inconsistent
    """
    if not isinstance(data, dict):
        raise SchemaError(f"Schema must be a mapping, got {type(data).__name__}")
    try:
        return FormSchema.model_validate(data)
    except PydanticValidationError as exc:
        raise SchemaError(f"Invalid form schema: {exc}") from exc
