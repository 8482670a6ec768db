"""Declarative blueprints written as classes of field markers.

A blueprint class is tagged with ``@blueprint`` and declares one marker
per model field::

    @blueprint(Car)
    class CarBlueprint:
        make = Default("car make")
        driver: Driver = Mapped()
        wheels: list[Wheel] = MappedList(size=4, force=True)
        link_wheels = AfterCreateCallback(attach_wheels)

``to_blueprint`` reads such a class, or an instance of it, into a
Blueprint. Attributes without a marker are ignored. Markers are merged
along the MRO so a subclass replaces same-named markers of its bases,
except that a base class's ConstructorCallback is never inherited.
"""

import inspect
import logging
import types
import typing
from collections.abc import MutableSequence, MutableSet
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from modelcitizen.blueprint import Blueprint, BlueprintBuilder
from modelcitizen.constants import DEFAULT_BLUEPRINT_NAME
from modelcitizen.exceptions import RegisterBlueprintError

logger = logging.getLogger(__name__)

BLUEPRINT_ATTR = "__blueprint__"


@dataclass(frozen=True)
class BlueprintMeta:
    """What ``@blueprint`` records on a class."""

    target: type
    alias: str = DEFAULT_BLUEPRINT_NAME
    template: Any = None


@dataclass(frozen=True)
class Default:
    value: Any = None
    force: bool = False


@dataclass(frozen=True)
class Mapped:
    target: Optional[type] = None
    nullable: bool = False


@dataclass(frozen=True)
class MappedList:
    target: Optional[type] = None
    size: Optional[int] = None
    aliases: Optional[tuple[str, ...]] = None
    target_list: Optional[type] = None
    ignore_empty: bool = True
    force: bool = False


@dataclass(frozen=True)
class MappedSet:
    target: Optional[type] = None
    size: int = 0
    target_set: Optional[type] = None
    ignore_empty: bool = True
    force: bool = False


@dataclass(frozen=True)
class ConstructorCallback:
    fn: Callable[[], Any]


@dataclass(frozen=True)
class AfterCreateCallback:
    fn: Callable[[Any], Any]


MARKER_TYPES = (
    Default,
    Mapped,
    MappedList,
    MappedSet,
    ConstructorCallback,
    AfterCreateCallback,
)


def blueprint(
    target: type, alias: str = DEFAULT_BLUEPRINT_NAME, template: Any = None
) -> Callable[[type], type]:
    """Class decorator marking a class as the blueprint for ``target``.

    Args:
        target: Model type the blueprint builds.
        alias: Alias used when registered without an explicit one.
        template: Optional template overriding the one chosen for ``target``.
    """

    def decorator(cls: type) -> type:
        setattr(cls, BLUEPRINT_ATTR, BlueprintMeta(target, alias, template))
        return cls

    return decorator


def is_blueprint_class(obj: Any) -> bool:
    """Check whether ``obj`` is a class decorated with ``@blueprint`` itself."""
    return isinstance(obj, type) and isinstance(vars(obj).get(BLUEPRINT_ATTR), BlueprintMeta)


def _unwrap_optional(annotation: Any) -> Any:
    if typing.get_origin(annotation) in (Union, types.UnionType):
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _collection_types(
    cls: type, name: str, annotation: Any, capability: type
) -> tuple[Any, Any]:
    """Split ``list[T]``-style annotations into (element type, concrete container)."""
    annotation = _unwrap_optional(annotation)
    origin = typing.get_origin(annotation) or annotation
    args = typing.get_args(annotation)

    element = args[0] if args and isinstance(args[0], type) else None
    if not isinstance(origin, type) or origin is Any:
        return element, None
    if not issubclass(origin, capability):
        raise RegisterBlueprintError(
            f"Blueprint {cls.__qualname__} field '{name}' is annotated as "
            f"{origin.__name__}, which is not a {capability.__name__}"
        )
    return element, None if inspect.isabstract(origin) else origin


def _collect_markers(cls: type, obj: Any) -> dict[str, Any]:
    markers: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        for name, value in vars(klass).items():
            if isinstance(value, MARKER_TYPES):
                if isinstance(value, ConstructorCallback) and klass is not cls:
                    continue
                markers[name] = value
            elif name in markers:
                # An unmarked attribute hides the base class marker
                del markers[name]

    if not isinstance(obj, type):
        for name, value in vars(obj).items():
            if isinstance(value, MARKER_TYPES):
                markers[name] = value
    return markers


def _require_target(cls: type, name: str, target: Any) -> type:
    if not isinstance(target, type):
        raise RegisterBlueprintError(
            f"Blueprint {cls.__qualname__} field '{name}' has no target type; "
            "pass target= or annotate the field"
        )
    return target


def _apply_marker(
    builder: BlueprintBuilder, cls: type, name: str, marker: Any, annotation: Any
) -> None:
    annotation = _unwrap_optional(annotation)

    if isinstance(marker, Default):
        target = annotation if isinstance(annotation, type) else None
        builder.default(name, marker.value, force=marker.force, target=target)

    elif isinstance(marker, Mapped):
        target = _require_target(cls, name, marker.target or annotation)
        builder.mapped(name, target, nullable=marker.nullable)

    elif isinstance(marker, MappedList):
        element, container = _collection_types(cls, name, annotation, MutableSequence)
        builder.mapped_list(
            name,
            _require_target(cls, name, marker.target or element),
            size=marker.size,
            aliases=marker.aliases,
            target_list=marker.target_list or container or list,
            ignore_empty=marker.ignore_empty,
            force=marker.force,
        )

    elif isinstance(marker, MappedSet):
        element, container = _collection_types(cls, name, annotation, MutableSet)
        builder.mapped_set(
            name,
            _require_target(cls, name, marker.target or element),
            size=marker.size,
            target_set=marker.target_set or container or set,
            ignore_empty=marker.ignore_empty,
            force=marker.force,
        )

    elif isinstance(marker, ConstructorCallback):
        logger.debug("Registering constructor for %s", cls.__qualname__)
        builder.constructor(marker.fn)

    elif isinstance(marker, AfterCreateCallback):
        if callable(marker.fn):
            logger.debug("Registering after-create hook %s for %s", name, cls.__qualname__)
            builder.after_create(marker.fn)
        else:
            logger.warning(
                "Invalid AfterCreateCallback %s registered for %s, skipping",
                name,
                cls.__qualname__,
            )


def to_blueprint(obj: Any) -> Blueprint:
    """Read a declarative blueprint class, or an instance of one, into a Blueprint.

    Args:
        obj: A class decorated with ``@blueprint`` or an instance of one.
            Marker attributes set on an instance replace the class markers.

    Returns:
        The Blueprint, with ``source`` set to ``obj``.

    Raises:
        RegisterBlueprintError: If the class is not decorated, a target
            type cannot be determined, or a marker is invalid.
    """
    cls = obj if isinstance(obj, type) else type(obj)
    if not is_blueprint_class(cls):
        raise RegisterBlueprintError(
            f"Blueprint class not decorated with @blueprint: {cls.__qualname__}"
        )
    meta: BlueprintMeta = vars(cls)[BLUEPRINT_ATTR]

    try:
        hints = typing.get_type_hints(cls)
    except Exception as exc:
        raise RegisterBlueprintError(
            f"Cannot resolve annotations of {cls.__qualname__}: {exc}"
        ) from exc

    logger.debug("Reading blueprint %s for %s", cls.__qualname__, meta.target.__qualname__)

    builder = Blueprint.builder(meta.target, meta.alias).source(obj)
    if meta.template is not None:
        builder.template(meta.template)

    for name, marker in _collect_markers(cls, obj).items():
        _apply_marker(builder, cls, name, marker, hints.get(name))

    return builder.build()
