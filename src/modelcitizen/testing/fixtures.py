"""Helpers for test suites that build fixtures with a ModelFactory."""

from typing import Any, Iterable
from unittest.mock import MagicMock

from modelcitizen.constants import DEFAULT_BLUEPRINT_NAME
from modelcitizen.factory import ModelFactory
from modelcitizen.policy import Policy


def create_model_factory(
    *blueprints: Any,
    policies: Iterable[Policy | tuple[Policy, str]] = (),
    **factory_kwargs: Any,
) -> ModelFactory:
    """Create a ModelFactory with blueprints and policies registered.

    Args:
        *blueprints: Anything ``register_blueprint`` accepts, or an
            ``(blueprint, alias)`` tuple to register under another alias.
        policies: Policies for the default alias, or ``(policy, alias)`` tuples.
        **factory_kwargs: Passed to ModelFactory (e.g. max_depth).

    Returns:
        The populated factory.
    """
    factory = ModelFactory(**factory_kwargs)
    for item in blueprints:
        if isinstance(item, tuple):
            factory.register_blueprint(*item)
        else:
            factory.register_blueprint(item)
    for item in policies:
        if isinstance(item, tuple):
            factory.add_policy(*item)
        else:
            factory.add_policy(item, DEFAULT_BLUEPRINT_NAME)
    return factory


def create_mock_template(model: Any = None) -> MagicMock:
    """Create a mock BlueprintTemplate.

    ``construct`` returns ``model`` (a fresh MagicMock when None), ``get``
    returns None and ``set`` returns the model it was given.

    Args:
        model: Instance returned by construct().

    Returns:
        MagicMock with the BlueprintTemplate interface.
    """
    mock = MagicMock()
    mock.construct.return_value = model if model is not None else MagicMock()
    mock.get.return_value = None
    mock.set.side_effect = lambda instance, name, value: instance
    return mock
