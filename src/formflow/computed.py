"""Registry of named navigation functions for ``ComputedNavigation``.

A schema cannot carry code, so a computed navigation names a function
registered here and passes it ``params``.  Each function receives the
full answer set and the params dict and returns the next step id, or
``None`` when it cannot decide (the resolver then falls back to
``default_next_step_id`` / end of form).

Register additional functions with the decorator::

    @register_navigation_function("by_region")
    def by_region(answers, params):
        return params["north_step_id"] if answers.get("region") == "north" else None
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Optional

from dateutil.relativedelta import relativedelta

from formflow.validation import parse_date

logger = logging.getLogger(__name__)

NavigationFunction = Callable[[dict[str, Any], dict[str, Any]], Optional[str]]

_REGISTRY: dict[str, NavigationFunction] = {}


def register_navigation_function(name: str) -> Callable[[NavigationFunction], NavigationFunction]:
    """Decorator registering ``fn`` under ``name``."""

    def decorator(fn: NavigationFunction) -> NavigationFunction:
        if name in _REGISTRY and _REGISTRY[name] is not fn:
            logger.warning("Navigation function '%s' re-registered", name)
        _REGISTRY[name] = fn
        return fn

    return decorator


def get_navigation_function(name: str) -> NavigationFunction | None:
    return _REGISTRY.get(name)


def navigation_functions() -> dict[str, NavigationFunction]:
    """Copy of the current registry."""
    return dict(_REGISTRY)


# ----------------------------------------------------------------------
# Built-ins
# ----------------------------------------------------------------------

def age_in_years(birth: date, today: date) -> int:
    """Completed years between ``birth`` and ``today``."""
    return relativedelta(today, birth).years


@register_navigation_function("age_threshold")
def age_threshold(answers: dict[str, Any], params: dict[str, Any]) -> str | None:
    """Route on the age computed from a birth-date answer.

    Params:
        source_field_id: field holding the birth date
        threshold: age in years separating the two branches
        below_step_id: step for ages strictly below the threshold
        at_or_above_step_id: step for ages at or above the threshold
        reference_date: optional ISO date used instead of today

    Returns None when the birth date is missing or unparsable.
    """
    birth = parse_date(answers.get(params.get("source_field_id", "")))
    if birth is None:
        return None

    today = parse_date(params.get("reference_date")) or date.today()
    age = age_in_years(birth, today)
    threshold = int(params.get("threshold", 0))

    if age < threshold:
        return params.get("below_step_id")
    return params.get("at_or_above_step_id")
