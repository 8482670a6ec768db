"""Blueprint definitions and the builder used to assemble them.

A blueprint describes how to build one model type under one alias: an
ordered tuple of field rules, an optional constructor that replaces the
template's default construction, and hooks run after the fields are set.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from modelcitizen.callbacks import FieldCallback
from modelcitizen.constants import DEFAULT_BLUEPRINT_NAME
from modelcitizen.exceptions import RegisterBlueprintError
from modelcitizen.fields import (
    DefaultField,
    FieldRule,
    MappedField,
    MappedListField,
    MappedSetField,
)
from modelcitizen.template.base import BlueprintTemplate


def _type_name(target: Any) -> str:
    return getattr(target, "__qualname__", repr(target))


class Blueprint(BaseModel):
    """How to build one model type under one alias.

    Attributes:
        target: The model type produced.
        alias: Name distinguishing blueprints for the same type.
        rules: Field rules applied in order on every build.
        constructor: Zero-argument callable returning a new model, used
            instead of the template's construct.
        after_create: Hooks receiving the built model. A hook may return a
            replacement model; returning None keeps the current one.
        template: Template used for the model; chosen from ``target`` if None.
        source: The declarative object this blueprint was derived from.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    target: type
    alias: str = DEFAULT_BLUEPRINT_NAME
    rules: tuple[FieldRule, ...] = ()
    constructor: Optional[Callable[[], Any]] = None
    after_create: tuple[Callable[[Any], Any], ...] = ()
    template: Any = None
    source: Any = None

    @field_validator("template")
    @classmethod
    def _check_template(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, BlueprintTemplate):
            raise ValueError(
                f"template must implement construct/get/set, got {type(value).__name__}"
            )
        return value

    @model_validator(mode="after")
    def _check_unique_names(self) -> Blueprint:
        seen: set[str] = set()
        for rule in self.rules:
            if rule.name in seen:
                raise ValueError(f"Duplicate field rule '{rule.name}'")
            seen.add(rule.name)
        return self

    @classmethod
    def builder(
        cls, target: type, alias: str = DEFAULT_BLUEPRINT_NAME
    ) -> BlueprintBuilder:
        """Start building a blueprint for ``target``."""
        return BlueprintBuilder(target, alias)

    def get_rule(self, name: str) -> FieldRule | None:
        """Return the rule for a field name, if any."""
        for rule in self.rules:
            if rule.name == name:
                return rule
        return None


class BlueprintBuilder:
    """Chainable builder for a Blueprint.

    Declaring a field name twice replaces the earlier rule in place, so a
    builder fed base declarations first and derived ones second keeps the
    base order with derived values.

    Args:
        target: The model type the blueprint builds.
        alias: Alias the blueprint registers under by default.
    """

    def __init__(self, target: type, alias: str = DEFAULT_BLUEPRINT_NAME) -> None:
        self._target = target
        self._alias = alias
        self._rules: dict[str, FieldRule] = {}
        self._constructor: Callable[[], Any] | None = None
        self._after_create: list[Callable[[Any], Any]] = []
        self._template: BlueprintTemplate | None = None
        self._source: Any = None

    def _add(self, rule_cls: type, **kwargs: Any) -> BlueprintBuilder:
        try:
            rule = rule_cls(**kwargs)
        except ValidationError as exc:
            raise RegisterBlueprintError(
                f"Invalid field '{kwargs.get('name')}' in blueprint for "
                f"{_type_name(self._target)}: {exc}"
            ) from exc
        self._rules[rule.name] = rule
        return self

    def default(
        self,
        name: str,
        value: Any = None,
        force: bool = False,
        target: type | None = None,
    ) -> BlueprintBuilder:
        """Assign a literal, or a FieldCallback evaluated at build time.

        Args:
            name: Model field name.
            value: Literal value.
            force: Apply the literal even when the reference has a value.
            target: Field value type for policy lookup; inferred from value.
        """
        if target is None:
            if value is None or isinstance(value, FieldCallback):
                target = object
            else:
                target = type(value)
        return self._add(DefaultField, name=name, value=value, force=force, target=target)

    def mapped(self, name: str, target: type, nullable: bool = False) -> BlueprintBuilder:
        """Hold one nested model of ``target``; build it if the reference has none."""
        return self._add(MappedField, name=name, target=target, nullable=nullable)

    def mapped_list(
        self,
        name: str,
        target: type,
        size: int | None = None,
        aliases: list[str] | tuple[str, ...] | None = None,
        target_list: type = list,
        ignore_empty: bool = True,
        force: bool = False,
    ) -> BlueprintBuilder:
        """Hold a list of nested ``target`` models.

        Args:
            name: Model field name.
            target: Element model type.
            size: Number of elements to build. Defaults to ``len(aliases)``.
            aliases: Blueprint alias per position. Defaults to the default alias.
            target_list: Concrete list type written to the field.
            ignore_empty: Keep an empty reference list empty.
            force: Always build ``size`` fresh elements.
        """
        kwargs: dict[str, Any] = {
            "name": name,
            "target": target,
            "target_list": target_list,
            "ignore_empty": ignore_empty,
            "force": force,
        }
        if size is not None:
            kwargs["size"] = size
        if aliases is not None:
            kwargs["aliases"] = tuple(aliases)
        return self._add(MappedListField, **kwargs)

    def mapped_set(
        self,
        name: str,
        target: type,
        size: int = 0,
        target_set: type = set,
        ignore_empty: bool = True,
        force: bool = False,
    ) -> BlueprintBuilder:
        """Hold a set of nested ``target`` models built under the default alias."""
        return self._add(
            MappedSetField,
            name=name,
            target=target,
            size=size,
            target_set=target_set,
            ignore_empty=ignore_empty,
            force=force,
        )

    def constructor(self, fn: Callable[[], Any]) -> BlueprintBuilder:
        """Use ``fn()`` instead of the template to create each new model."""
        if not callable(fn):
            raise RegisterBlueprintError(
                f"Constructor for {_type_name(self._target)} is not callable: {fn!r}"
            )
        self._constructor = fn
        return self

    def after_create(self, fn: Callable[[Any], Any]) -> BlueprintBuilder:
        """Append a hook run on each built model."""
        if not callable(fn):
            raise RegisterBlueprintError(
                f"after_create hook for {_type_name(self._target)} is not callable: {fn!r}"
            )
        self._after_create.append(fn)
        return self

    def template(self, template: BlueprintTemplate) -> BlueprintBuilder:
        """Override the template chosen for the target type."""
        self._template = template
        return self

    def source(self, source: Any) -> BlueprintBuilder:
        """Record the object the blueprint was derived from."""
        self._source = source
        return self

    def build(self) -> Blueprint:
        """Assemble the Blueprint.

        Raises:
            RegisterBlueprintError: If the accumulated definition is invalid.
        """
        try:
            return Blueprint(
                target=self._target,
                alias=self._alias,
                rules=tuple(self._rules.values()),
                constructor=self._constructor,
                after_create=tuple(self._after_create),
                template=self._template,
                source=self._source,
            )
        except ValidationError as exc:
            raise RegisterBlueprintError(
                f"Invalid blueprint for {_type_name(self._target)}: {exc}"
            ) from exc
