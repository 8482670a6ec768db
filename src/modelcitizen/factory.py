"""ModelFactory: blueprint registry and recursive model construction.

Blueprints are registered once, then ``create_model`` builds fully
populated models from them. A build constructs an empty model, lets
policies emit per-field commands, resolves every field rule in order
(recursing into the factory for nested models) and finally runs the
blueprint's after-create hooks.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Mapping, TypeVar

from modelcitizen.blueprint import Blueprint
from modelcitizen.callbacks import FieldCallback
from modelcitizen.constants import AFTER_CREATE, DEFAULT_BLUEPRINT_NAME, DEFAULT_MAX_DEPTH
from modelcitizen.declarative import to_blueprint
from modelcitizen.erector import BuildRequest, Command, Erector
from modelcitizen.exceptions import (
    BlueprintNotFoundError,
    CreateModelError,
    PolicyError,
    TemplateError,
)
from modelcitizen.fields import (
    DefaultField,
    FieldRule,
    MappedField,
    MappedListField,
    MappedSetField,
)
from modelcitizen.loader import import_string, scan_package
from modelcitizen.policy import BlueprintPolicy, FieldPolicy, Policy

if TYPE_CHECKING:
    from modelcitizen.config import FactoryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RULE_TYPES = (DefaultField, MappedField, MappedListField, MappedSetField)


def _check_command(policy: Policy, command: Any) -> Command | None:
    """Validate a field policy's result."""
    if command is not None and not isinstance(command, Command):
        raise PolicyError(
            f"Policy {policy!r} returned {command!r}; expected a Command or None"
        )
    return command


def _check_field_commands(
    policy: Policy, result: Any
) -> list[tuple[FieldRule | str, frozenset[Command]]]:
    """Validate a blueprint policy's result and flatten it to (field, commands) pairs.

    Raises:
        PolicyError: If the result is not a mapping of field rule or field
            name to an iterable of Commands.
    """
    if result is None:
        return []
    if not isinstance(result, Mapping):
        raise PolicyError(
            f"Policy {policy!r} returned {type(result).__name__}; "
            f"expected a mapping of field to commands"
        )

    checked = []
    for key, commands in result.items():
        if not isinstance(key, (str, *_RULE_TYPES)):
            raise PolicyError(
                f"Policy {policy!r} keyed commands by {key!r}; "
                f"expected a field rule or field name"
            )
        if isinstance(commands, (str, Command)) or not isinstance(commands, Iterable):
            raise PolicyError(
                f"Policy {policy!r} returned {commands!r} for {key!r}; "
                f"expected an iterable of Commands"
            )
        commands = list(commands)
        invalid = [command for command in commands if not isinstance(command, Command)]
        if invalid:
            raise PolicyError(
                f"Policy {policy!r} returned non-Command values for {key!r}: {invalid!r}"
            )
        checked.append((key, frozenset(commands)))
    return checked


class ModelFactory:
    """Registry of blueprints and policies that builds models from them.

    Registration is expected to finish before builds start; the registries
    are not locked. Builds keep their state on a per-call BuildRequest, so
    erectors can be shared between concurrent builds.

    Args:
        max_depth: Maximum nesting of nested model builds. Exceeding it
            fails the build instead of recursing forever when blueprints
            map each other.
    """

    DEFAULT_BLUEPRINT_NAME = DEFAULT_BLUEPRINT_NAME

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        self.max_depth = max_depth
        self._blueprints: list[Blueprint] = []
        self._erectors: dict[tuple[str, type], Erector] = {}
        self._field_policies: dict[type, list[FieldPolicy]] = {}
        self._blueprint_policies: dict[type, list[BlueprintPolicy]] = {}

    @classmethod
    def from_config(cls, config: FactoryConfig) -> ModelFactory:
        """Create a factory and register the blueprints a config names.

        Packages are scanned first, then the listed blueprints are
        registered, so a listed blueprint replaces a scanned one.
        """
        factory = cls(max_depth=config.max_depth)
        for package in config.packages:
            factory.register_blueprints_by_package(package)
        factory.register_blueprints(config.blueprints)
        return factory

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_blueprint(self, blueprint: Any, alias: str | None = None) -> Erector:
        """Register a blueprint under an alias.

        Args:
            blueprint: A Blueprint, a class decorated with ``@blueprint``,
                an instance of such a class, or the qualified name of any
                of these.
            alias: Alias to register under. Defaults to the blueprint's own.

        Returns:
            The Erector now stored for (alias, target). An existing entry
            for the same key is replaced.

        Raises:
            RegisterBlueprintError: If the blueprint cannot be loaded or is
                malformed. The registries are left unchanged.
        """
        if isinstance(blueprint, str):
            blueprint = import_string(blueprint)
        if not isinstance(blueprint, Blueprint):
            blueprint = to_blueprint(blueprint)

        alias = alias or blueprint.alias
        erector = Erector(blueprint, alias=alias)
        key = (alias, blueprint.target)

        if key in self._erectors:
            logger.info(
                "Replacing blueprint for key (%s, %s)", alias, blueprint.target.__qualname__
            )
        else:
            logger.info(
                "Registering blueprint for key (%s, %s) with %d rules",
                alias,
                blueprint.target.__qualname__,
                len(blueprint.rules),
            )

        self._blueprints.append(blueprint)
        self._erectors[key] = erector
        return erector

    def register_blueprints(self, blueprints: Iterable[Any]) -> list[Erector]:
        """Register several blueprints, each under its own alias."""
        return [self.register_blueprint(blueprint) for blueprint in blueprints]

    def register_blueprints_by_package(self, package: str) -> list[Erector]:
        """Register every blueprint found in a package and its subpackages.

        Args:
            package: Dotted name of an importable package.

        Raises:
            RegisterBlueprintError: If the package or a module in it fails
                to import.
        """
        found = scan_package(package)
        logger.info("Scanned %s and found %d blueprints", package, len(found))
        return self.register_blueprints(found)

    def add_policy(self, policy: Policy, alias: str = DEFAULT_BLUEPRINT_NAME) -> None:
        """Attach a policy to the blueprint registered for (alias, policy.target).

        Raises:
            PolicyError: If no such blueprint exists, or the policy is neither
                a FieldPolicy nor a BlueprintPolicy. Nothing is registered.
        """
        if isinstance(policy, BlueprintPolicy):
            kind = "BlueprintPolicy"
            registry: dict[type, list[Any]] = self._blueprint_policies
        elif isinstance(policy, FieldPolicy):
            kind = "FieldPolicy"
            registry = self._field_policies
        else:
            raise PolicyError(f"Unsupported policy type: {type(policy).__name__}")

        if (alias, policy.target) not in self._erectors:
            raise PolicyError(
                f"Blueprint does not exist for {kind} target: "
                f"{policy.target.__qualname__} with alias {alias}"
            )

        registry.setdefault(policy.target, []).append(policy)
        logger.info(
            "Setting %r for key (%s, %s)", policy, alias, policy.target.__qualname__
        )

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def blueprints(self) -> tuple[Blueprint, ...]:
        """Every registered blueprint, in registration order."""
        return tuple(self._blueprints)

    @property
    def erectors(self) -> Mapping[tuple[str, type], Erector]:
        """Read-only view of (alias, target) to Erector."""
        return MappingProxyType(self._erectors)

    @property
    def field_policies(self) -> Mapping[type, tuple[FieldPolicy, ...]]:
        return MappingProxyType(
            {target: tuple(policies) for target, policies in self._field_policies.items()}
        )

    @property
    def blueprint_policies(self) -> Mapping[type, tuple[BlueprintPolicy, ...]]:
        return MappingProxyType(
            {
                target: tuple(policies)
                for target, policies in self._blueprint_policies.items()
            }
        )

    def get_erector(self, target: type, alias: str = DEFAULT_BLUEPRINT_NAME) -> Erector:
        """Return the Erector for (alias, target).

        Raises:
            BlueprintNotFoundError: If none is registered.
        """
        erector = self._erectors.get((alias, target))
        if erector is None:
            raise BlueprintNotFoundError(alias, target)
        return erector

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def create_model(
        self,
        model: type[T] | T,
        alias: str = DEFAULT_BLUEPRINT_NAME,
        with_policies: bool = True,
    ) -> T:
        """Build a model from its registered blueprint.

        Args:
            model: A model type to build from scratch, or an existing model
                used as the reference. Values already set on the reference
                win over blueprint literals unless the literal is forced.
            alias: Alias of the blueprint to use.
            with_policies: Whether registered policies run for this build.

        Returns:
            A new, fully populated model.

        Raises:
            CreateModelError: If any step of the build fails. The original
                error is chained as ``__cause__``.
        """
        return self._create(model, alias, with_policies, depth=0)

    def build(
        self, erector: Erector, reference: Any = None, with_policies: bool = True
    ) -> Any:
        """Build a model from an Erector directly, bypassing the registry lookup."""
        return self._build(erector, reference, with_policies, depth=0)

    def _create(self, model: Any, alias: str, with_policies: bool, depth: int) -> Any:
        if isinstance(model, type):
            target, reference = model, None
        else:
            target, reference = type(model), model

        try:
            erector = self.get_erector(target, alias)
        except BlueprintNotFoundError as exc:
            raise CreateModelError(str(exc)) from exc

        return self._build(erector, reference, with_policies, depth)

    def _build(
        self, erector: Erector, reference: Any, with_policies: bool, depth: int
    ) -> Any:
        name = erector.target.__qualname__
        if depth > self.max_depth:
            raise CreateModelError(
                f"Maximum model depth {self.max_depth} exceeded building {name} "
                f"with alias '{erector.alias}'; check for blueprints that map each other"
            )

        try:
            model = erector.new_instance()
        except TemplateError as exc:
            raise CreateModelError(f"Failed to create {name}: {exc}") from exc

        logger.debug("Created %s from %r based on %r", name, erector, reference)

        request = BuildRequest(
            erector=erector,
            reference=model if reference is None else reference,
            with_policies=with_policies,
            depth=depth,
        )

        if with_policies:
            request = self._apply_blueprint_policies(request, model)

        for rule in erector.rules:
            if with_policies:
                request = self._apply_field_policies(request, rule, model)

            commands = request.commands_for(rule)
            if commands:
                logger.debug(
                    "  %s.%s commands: %s",
                    name,
                    rule.name,
                    sorted(command.value for command in commands),
                )

            try:
                model = self._resolve_field(request, rule, model)
            except CreateModelError:
                raise
            except Exception as exc:
                raise CreateModelError(
                    f"Failed to resolve field '{rule.name}' of {name}: {exc}"
                ) from exc

        return self._run_after_create(erector, model)

    def _run_policy(self, policy: Policy, *args: Any) -> Any:
        logger.debug("    processing %r", policy)
        try:
            result = self._process_policy(policy, *args)
            if isinstance(policy, BlueprintPolicy):
                return _check_field_commands(policy, result)
            return _check_command(policy, result)
        except PolicyError as exc:
            raise CreateModelError(str(exc)) from exc

    def _process_policy(self, policy: Policy, *args: Any) -> Any:
        try:
            return policy.process(self, *args)
        except (CreateModelError, PolicyError):
            raise
        except Exception as exc:
            raise PolicyError(f"Policy {policy!r} failed: {exc}") from exc

    def _apply_blueprint_policies(self, request: BuildRequest, model: Any) -> BuildRequest:
        erector = request.erector
        policies = self._blueprint_policies.get(erector.target, [])
        if policies:
            logger.debug("  Running blueprint policies for %s", erector.target.__qualname__)

        for policy in policies:
            for rule, commands in self._run_policy(policy, erector, model):
                request = request.with_commands(rule, commands)
        return request

    def _apply_field_policies(
        self, request: BuildRequest, rule: FieldRule, model: Any
    ) -> BuildRequest:
        policies = self._field_policies.get(rule.target, [])
        if policies:
            logger.debug("  Running field policies for %s", rule.name)

        for policy in policies:
            command = self._run_policy(policy, request.erector, rule, model)
            if command is not None:
                request = request.with_commands(rule, [command])
        return request

    def _resolve_field(self, request: BuildRequest, rule: FieldRule, model: Any) -> Any:
        """Resolve one field rule and return the model carrying its value."""
        if request.has_command(rule, Command.SKIP_INJECTION):
            return model

        if isinstance(rule, DefaultField):
            return self._resolve_default(request, rule, model)
        if isinstance(rule, MappedField):
            return self._resolve_mapped(request, rule, model)
        if isinstance(rule, MappedListField):
            return self._resolve_list(request, rule, model)
        if isinstance(rule, MappedSetField):
            return self._resolve_set(request, rule, model)
        raise TypeError(f"Unknown field rule: {type(rule).__name__}")

    def _resolve_default(self, request: BuildRequest, rule: DefaultField, model: Any) -> Any:
        template = request.erector.template

        value = None
        if not request.has_command(rule, Command.SKIP_REFERENCE_INJECTION):
            value = template.get(request.reference, rule.name)

        if not request.has_command(rule, Command.SKIP_BLUEPRINT_INJECTION) and (
            value is None or rule.force
        ):
            value = rule.value

        if isinstance(value, FieldCallback):
            value = value.get(request.reference)

        return template.set(model, rule.name, value)

    def _resolve_mapped(self, request: BuildRequest, rule: MappedField, model: Any) -> Any:
        template = request.erector.template

        value = None
        if not request.has_command(rule, Command.SKIP_REFERENCE_INJECTION):
            value = template.get(request.reference, rule.name)

        if (
            not request.has_command(rule, Command.SKIP_BLUEPRINT_INJECTION)
            and value is None
            and not rule.nullable
        ):
            value = self._create(
                rule.target, DEFAULT_BLUEPRINT_NAME, True, request.depth + 1
            )

        return template.set(model, rule.name, value)

    def _needs_fresh(self, existing: Any, force: bool, ignore_empty: bool) -> bool:
        # Build fresh elements for a missing, forced, or non-ignored empty collection
        return existing is None or force or (len(existing) == 0 and not ignore_empty)

    def _resolve_list(self, request: BuildRequest, rule: MappedListField, model: Any) -> Any:
        template = request.erector.template
        value = template.construct(rule.target_list)
        existing = template.get(request.reference, rule.name)

        if not request.has_command(rule, Command.SKIP_BLUEPRINT_INJECTION):
            depth = request.depth + 1
            if self._needs_fresh(existing, rule.force, rule.ignore_empty):
                for alias in rule.aliases:
                    value.append(self._create(rule.target, alias, True, depth))
            else:
                for index, element in enumerate(existing):
                    alias = (
                        rule.aliases[index]
                        if index < len(rule.aliases)
                        else DEFAULT_BLUEPRINT_NAME
                    )
                    value.append(self._create(element, alias, True, depth))

        return template.set(model, rule.name, value)

    def _resolve_set(self, request: BuildRequest, rule: MappedSetField, model: Any) -> Any:
        template = request.erector.template
        value = template.construct(rule.target_set)
        existing = template.get(request.reference, rule.name)

        if not request.has_command(rule, Command.SKIP_BLUEPRINT_INJECTION):
            depth = request.depth + 1
            if self._needs_fresh(existing, rule.force, rule.ignore_empty):
                for _ in range(rule.size):
                    value.add(self._create(rule.target, DEFAULT_BLUEPRINT_NAME, True, depth))
            else:
                for element in existing:
                    value.add(self._create(element, DEFAULT_BLUEPRINT_NAME, True, depth))

        return template.set(model, rule.name, value)

    def _run_after_create(self, erector: Erector, model: Any) -> Any:
        for hook in erector.callbacks(AFTER_CREATE):
            try:
                result = hook(model)
            except CreateModelError:
                raise
            except Exception as exc:
                raise CreateModelError(
                    f"after_create hook {hook!r} failed for "
                    f"{erector.target.__qualname__}: {exc}"
                ) from exc
            if result is not None:
                model = result
        return model
