"""Erectors bind a registered blueprint to its template for repeated builds.

An Erector is created once per registered (alias, type) and holds only
immutable data. Everything that varies per build (the reference model,
the commands emitted by policies, recursion depth) lives on a
``BuildRequest`` created fresh for every build.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from modelcitizen.blueprint import Blueprint
from modelcitizen.constants import AFTER_CREATE
from modelcitizen.exceptions import TemplateError
from modelcitizen.fields import FieldRule
from modelcitizen.template.base import BlueprintTemplate
from modelcitizen.template.registry import template_for


class Command(Enum):
    """Per-field overrides emitted by policies."""

    SKIP_INJECTION = "skip_injection"  # leave the field untouched
    SKIP_REFERENCE_INJECTION = "skip_reference_injection"  # ignore the reference value
    SKIP_BLUEPRINT_INJECTION = "skip_blueprint_injection"  # ignore the blueprint value


_EMPTY: frozenset[Command] = frozenset()


def _rule_name(rule: FieldRule | str) -> str:
    return rule if isinstance(rule, str) else rule.name


@dataclass(frozen=True)
class BuildRequest:
    """State of one in-progress build.

    Attributes:
        erector: The erector being built from.
        reference: Model whose values take precedence over blueprint
            literals. The freshly constructed model when none was given.
        with_policies: Whether policies run for this build.
        depth: Nesting depth; zero for a caller's build.
        commands: Commands per field name, accumulated from policies.
    """

    erector: Erector
    reference: Any
    with_policies: bool = True
    depth: int = 0
    commands: Mapping[str, frozenset[Command]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def commands_for(self, rule: FieldRule | str) -> frozenset[Command]:
        """Return the commands active for a field."""
        return self.commands.get(_rule_name(rule), _EMPTY)

    def has_command(self, rule: FieldRule | str, command: Command) -> bool:
        return command in self.commands_for(rule)

    def with_commands(
        self, rule: FieldRule | str, commands: Iterable[Command]
    ) -> BuildRequest:
        """Return a copy with ``commands`` added to a field's command set."""
        commands = frozenset(commands)
        if not commands:
            return self
        name = _rule_name(rule)
        merged = dict(self.commands)
        merged[name] = merged.get(name, _EMPTY) | commands
        return dataclasses.replace(self, commands=MappingProxyType(merged))


class Erector:
    """Resolved build context for one registered blueprint.

    Args:
        blueprint: The blueprint to build from.
        alias: Alias the erector is registered under. Defaults to the
            blueprint's alias.
        template: Template for the target type. Defaults to the blueprint's
            own template, then to one chosen for the target type.
    """

    def __init__(
        self,
        blueprint: Blueprint,
        alias: str | None = None,
        template: BlueprintTemplate | None = None,
    ) -> None:
        self.blueprint = blueprint
        self.alias = alias or blueprint.alias
        self.template = template or blueprint.template or template_for(blueprint.target)
        self._callbacks: dict[str, tuple[Callable[[Any], Any], ...]] = {
            AFTER_CREATE: blueprint.after_create,
        }

    @property
    def target(self) -> type:
        return self.blueprint.target

    @property
    def rules(self) -> tuple[FieldRule, ...]:
        return self.blueprint.rules

    @property
    def constructor(self) -> Callable[[], Any] | None:
        return self.blueprint.constructor

    def get_field_rule(self, name: str) -> FieldRule | None:
        """Return the rule for a field name, if any."""
        return self.blueprint.get_rule(name)

    def callbacks(self, name: str = AFTER_CREATE) -> tuple[Callable[[Any], Any], ...]:
        """Return the hooks registered under ``name``."""
        return self._callbacks.get(name, ())

    def new_instance(self) -> Any:
        """Create an unpopulated model.

        Returns:
            The constructor's result when the blueprint has one, else the
            template's construction of the target type.

        Raises:
            TemplateError: If construction fails.
        """
        if self.constructor is None:
            try:
                return self.template.construct(self.target)
            except TemplateError:
                raise
            except Exception as exc:
                raise TemplateError(
                    f"Template {type(self.template).__name__} cannot construct "
                    f"{self.target.__qualname__}: {exc}"
                ) from exc
        try:
            return self.constructor()
        except Exception as exc:
            raise TemplateError(
                f"Constructor for {self.target.__qualname__} failed: {exc}"
            ) from exc

    def __repr__(self) -> str:
        return (
            f"Erector(alias={self.alias!r}, "
            f"target={self.target.__qualname__}, rules={len(self.rules)})"
        )
