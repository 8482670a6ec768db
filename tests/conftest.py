"""Shared test configuration and fixtures."""

import pytest

from modelcitizen import ModelFactory
from modelcitizen.testing import create_model_factory
from sample_blueprints import ALL_BLUEPRINTS


@pytest.fixture
def factory() -> ModelFactory:
    """ModelFactory with every sample blueprint registered."""
    return create_model_factory(*ALL_BLUEPRINTS)
