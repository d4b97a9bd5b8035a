from unittest.mock import AsyncMock

import pytest

from helpers.repository import MockRepository
from helpers.schemas import (
    consent_schema,
    linear_schema,
    load_sample_form,
    visibility_schema,
)


@pytest.fixture(scope="session")
def sample_form():
    """The shipped wheelchair application form, parsed once."""
    return load_sample_form()


@pytest.fixture
def linear():
    return linear_schema(4)


@pytest.fixture
def consent():
    return consent_schema()


@pytest.fixture
def visibility():
    return visibility_schema()


@pytest.fixture
def mock_repo():
    """Fresh MockRepository for each test."""
    return MockRepository()


@pytest.fixture
def mock_db():
    """AsyncMock standing in for AsyncSession: flush/commit are no-ops."""
    return AsyncMock()
