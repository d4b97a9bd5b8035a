"""Concrete persistence adapters for the formflow SDK."""

from formflow.adapters.http import HttpPersistenceAdapter
from formflow.adapters.memory import InMemoryPersistenceAdapter

__all__ = ["HttpPersistenceAdapter", "InMemoryPersistenceAdapter"]
