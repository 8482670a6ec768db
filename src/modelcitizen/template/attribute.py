"""Attribute-access template for plain classes and dataclasses."""

import dataclasses
import inspect
from typing import Any

from modelcitizen.exceptions import TemplateError


def _declares(cls: type, name: str) -> bool:
    """Check whether ``name`` is annotated anywhere in the class hierarchy."""
    return any(name in inspect.get_annotations(klass) for klass in cls.__mro__)


class AttributeTemplate:
    """Template using ``getattr``/``setattr`` on ordinary Python objects.

    Models must be constructible without arguments. Frozen dataclasses are
    written with ``dataclasses.replace`` and a new instance is returned.
    """

    def construct(self, target: type) -> Any:
        try:
            return target()
        except Exception as exc:
            raise TemplateError(
                f"Cannot construct {target.__name__} without arguments: {exc}"
            ) from exc

    def get(self, model: Any, name: str) -> Any:
        try:
            return getattr(model, name)
        except AttributeError as exc:
            if _declares(type(model), name):
                return None
            raise TemplateError(
                f"{type(model).__name__} has no field '{name}'"
            ) from exc

    def set(self, model: Any, name: str, value: Any) -> Any:
        cls = type(model)
        if not hasattr(model, name) and not _declares(cls, name):
            raise TemplateError(f"{cls.__name__} has no field '{name}'")

        if dataclasses.is_dataclass(model) and cls.__dataclass_params__.frozen:
            try:
                return dataclasses.replace(model, **{name: value})
            except (TypeError, ValueError) as exc:
                raise TemplateError(
                    f"Cannot replace '{name}' on frozen {cls.__name__}: {exc}"
                ) from exc

        try:
            setattr(model, name, value)
        except (AttributeError, TypeError) as exc:
            raise TemplateError(f"Cannot set '{name}' on {cls.__name__}: {exc}") from exc
        return model
