"""Loading blueprints from qualified names and package scans."""

import importlib
import logging
import pkgutil
from types import ModuleType
from typing import Any

from modelcitizen.blueprint import Blueprint
from modelcitizen.declarative import is_blueprint_class
from modelcitizen.exceptions import RegisterBlueprintError

logger = logging.getLogger(__name__)


def import_string(path: str) -> Any:
    """Import an object by qualified name.

    Args:
        path: ``"package.module:Name"`` or ``"package.module.Name"``.
            Nested names (``"module:Outer.Inner"``) are supported with the
            colon form.

    Returns:
        The imported object.

    Raises:
        RegisterBlueprintError: If the module or attribute cannot be found.
    """
    if ":" in path:
        module_name, _, attr = path.partition(":")
    else:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise RegisterBlueprintError(f"Invalid qualified name: '{path}'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise RegisterBlueprintError(
            f"Cannot import module '{module_name}' for '{path}': {exc}"
        ) from exc

    obj: Any = module
    try:
        for part in attr.split("."):
            obj = getattr(obj, part)
    except AttributeError as exc:
        raise RegisterBlueprintError(
            f"Module '{module_name}' has no attribute '{attr}'"
        ) from exc
    return obj


def find_blueprints(module: ModuleType) -> list[Any]:
    """Return the blueprints defined in a module, in definition order.

    Declarative blueprint classes count only in the module that defines
    them; Blueprint instances count wherever they are bound.
    """
    found: list[Any] = []
    for value in vars(module).values():
        if is_blueprint_class(value) and value.__module__ == module.__name__:
            found.append(value)
        elif isinstance(value, Blueprint):
            found.append(value)
    return found


def scan_package(package: str) -> list[Any]:
    """Collect blueprints from a package and all of its submodules.

    Args:
        package: Dotted name of a package or module.

    Returns:
        Blueprint classes and instances, each listed once.

    Raises:
        RegisterBlueprintError: If the package or a submodule fails to import.
    """
    try:
        root = importlib.import_module(package)
    except ImportError as exc:
        raise RegisterBlueprintError(f"Cannot import package '{package}': {exc}") from exc

    modules = [root]
    path = getattr(root, "__path__", None)
    if path is not None:
        for info in pkgutil.walk_packages(path, prefix=f"{root.__name__}."):
            try:
                modules.append(importlib.import_module(info.name))
            except ImportError as exc:
                raise RegisterBlueprintError(
                    f"Cannot import module '{info.name}': {exc}"
                ) from exc

    found: list[Any] = []
    seen: set[int] = set()
    for module in modules:
        for item in find_blueprints(module):
            if id(item) not in seen:
                seen.add(id(item))
                found.append(item)

    logger.debug("Found %d blueprints in %d modules of %s", len(found), len(modules), package)
    return found
