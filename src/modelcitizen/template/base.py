"""Model template protocol used by the factory to touch model instances."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class BlueprintTemplate(Protocol):
    """Interface for constructing, reading and writing model instances.

    The factory never touches a model directly; every construction, read
    and write during a build goes through the blueprint's template. Each
    operation raises ``TemplateError`` when it cannot be carried out.
    """

    def construct(self, target: type) -> Any:
        """Create an empty instance of ``target``.

        Args:
            target: Model or collection type to instantiate.

        Returns:
            A new instance with no blueprint values applied.
        """
        ...

    def get(self, model: Any, name: str) -> Any:
        """Read a field from a model.

        Args:
            model: Instance to read from.
            name: Field name.

        Returns:
            The field value, or None when the field is declared but unset.
        """
        ...

    def set(self, model: Any, name: str, value: Any) -> Any:
        """Write a field on a model.

        Args:
            model: Instance to write to.
            name: Field name.
            value: New field value.

        Returns:
            The model carrying the new value. Templates over immutable
            models return a new instance; callers must use the result.
        """
        ...
