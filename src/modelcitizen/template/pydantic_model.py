"""Template for pydantic v2 models."""

from typing import Any

from pydantic import BaseModel, ValidationError

from modelcitizen.exceptions import TemplateError


class PydanticTemplate:
    """Template over ``pydantic.BaseModel`` subclasses.

    Models are constructed with ``model_construct()`` so required fields
    may start unset; reading an unset field returns None. Frozen models
    are written with ``model_copy(update=...)``.
    """

    def construct(self, target: type) -> Any:
        try:
            if issubclass(target, BaseModel):
                return target.model_construct()
            return target()
        except Exception as exc:
            raise TemplateError(f"Cannot construct {target.__name__}: {exc}") from exc

    def _check_field(self, model: Any, name: str) -> type[BaseModel]:
        cls = type(model)
        if not isinstance(model, BaseModel):
            raise TemplateError(f"{cls.__name__} is not a pydantic model")
        if name not in cls.model_fields:
            raise TemplateError(f"{cls.__name__} has no field '{name}'")
        return cls

    def get(self, model: Any, name: str) -> Any:
        self._check_field(model, name)
        return getattr(model, name, None)

    def set(self, model: Any, name: str, value: Any) -> Any:
        cls = self._check_field(model, name)
        try:
            if cls.model_config.get("frozen"):
                return model.model_copy(update={name: value})
            setattr(model, name, value)
        except (ValidationError, AttributeError, TypeError, ValueError) as exc:
            raise TemplateError(f"Cannot set '{name}' on {cls.__name__}: {exc}") from exc
        return model
