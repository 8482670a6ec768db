"""Shared test utilities, fixtures, and factories."""

from modelcitizen.testing.factories import (
    make_blueprint,
    make_default_field,
    make_mapped_field,
    make_mapped_list_field,
    make_mapped_set_field,
)
from modelcitizen.testing.fixtures import create_mock_template, create_model_factory

__all__ = [
    "create_mock_template",
    "create_model_factory",
    "make_blueprint",
    "make_default_field",
    "make_mapped_field",
    "make_mapped_list_field",
    "make_mapped_set_field",
]
