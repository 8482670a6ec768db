"""Policies that inspect a build in progress and emit per-field commands.

Field policies are keyed by a field rule's value type and run once per
matching rule. Blueprint policies are keyed by a model type and run once
per build of that type, before any field is resolved.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from modelcitizen.constants import DEFAULT_BLUEPRINT_NAME
from modelcitizen.erector import Command, Erector
from modelcitizen.exceptions import PolicyError
from modelcitizen.fields import FieldRule, MappedField

if TYPE_CHECKING:
    from modelcitizen.factory import ModelFactory


class Policy(ABC):
    """Base for policies attached to a registered blueprint.

    Args:
        target: The type the policy is scoped to. A blueprint for
            ``target`` must be registered before the policy is added.
    """

    def __init__(self, target: type) -> None:
        self.target = target

    def __repr__(self) -> str:
        return f"{type(self).__name__}(target={self.target.__qualname__})"


class FieldPolicy(Policy):
    """Policy run for every field rule whose value type is ``target``."""

    @abstractmethod
    def process(
        self,
        factory: ModelFactory,
        erector: Erector,
        field_rule: FieldRule,
        model: Any,
    ) -> Command | None:
        """Decide a command for one field.

        Args:
            factory: The factory running the build.
            erector: Erector of the model being built.
            field_rule: The rule about to be resolved.
            model: The model being built.

        Returns:
            A command to add to the field, or None.

        Raises:
            PolicyError: If the policy cannot decide.
        """


class BlueprintPolicy(Policy):
    """Policy run once per build of a ``target`` model."""

    @abstractmethod
    def process(
        self, factory: ModelFactory, erector: Erector, model: Any
    ) -> Mapping[FieldRule | str, Iterable[Command]]:
        """Decide commands for any of the model's fields.

        Args:
            factory: The factory running the build.
            erector: Erector of the model being built.
            model: The freshly constructed model.

        Returns:
            Commands per field rule (or field name), merged into the build.

        Raises:
            PolicyError: If the policy cannot decide.
        """


class MappedSingletonPolicy(FieldPolicy):
    """Share one ``target`` model across every mapped field of that type.

    The shared model is built on first use and written directly into each
    matching field, which is then skipped by normal resolution.

    Two limits follow from writing outside normal resolution. The shared
    model is built as a separate top-level ``create_model`` call, so its
    nesting depth is counted from zero rather than from the field that
    first needs it. The owning model must be written in place; a template
    that returns a new instance from ``set`` (frozen models) fails the
    build with a PolicyError.

    Args:
        target: Model type to share.
        alias: Blueprint alias used to build the shared model.
    """

    def __init__(self, target: type, alias: str = DEFAULT_BLUEPRINT_NAME) -> None:
        super().__init__(target)
        self.alias = alias
        self._singleton: Any = None

    @property
    def singleton(self) -> Any:
        return self._singleton

    def process(
        self,
        factory: ModelFactory,
        erector: Erector,
        field_rule: FieldRule,
        model: Any,
    ) -> Command | None:
        if not isinstance(field_rule, MappedField):
            return None
        if self._singleton is None:
            self._singleton = factory.create_model(self.target, self.alias)
        if erector.template.set(model, field_rule.name, self._singleton) is not model:
            raise PolicyError(
                f"{self!r} cannot share into {type(model).__qualname__}: "
                f"its template does not write '{field_rule.name}' in place"
            )
        return Command.SKIP_INJECTION


class SkipReferenceFieldPolicy(FieldPolicy):
    """Always apply the blueprint value to one named field.

    Args:
        field: Name of the field whose reference value is ignored.
        target: Value type of that field.
    """

    def __init__(self, field: str, target: type) -> None:
        super().__init__(target)
        self.field = field

    def process(
        self,
        factory: ModelFactory,
        erector: Erector,
        field_rule: FieldRule,
        model: Any,
    ) -> Command | None:
        if field_rule.name == self.field:
            return Command.SKIP_REFERENCE_INJECTION
        return None


class SkipFieldsPolicy(BlueprintPolicy):
    """Emit one command for a fixed set of fields on every ``target`` build.

    Args:
        target: Model type the policy applies to.
        fields: Field names to command. Names without a rule are ignored.
        command: Command emitted for each field.
    """

    def __init__(
        self,
        target: type,
        fields: Iterable[str],
        command: Command = Command.SKIP_INJECTION,
    ) -> None:
        super().__init__(target)
        self.fields = tuple(fields)
        self.command = command

    def process(
        self, factory: ModelFactory, erector: Erector, model: Any
    ) -> Mapping[FieldRule | str, Iterable[Command]]:
        return {
            name: {self.command}
            for name in self.fields
            if erector.get_field_rule(name) is not None
        }
