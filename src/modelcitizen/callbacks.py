"""Deferred literal values evaluated against the reference model."""

from abc import ABC, abstractmethod
from typing import Any, Callable


class FieldCallback(ABC):
    """A literal whose value is computed at build time.

    When a default field resolves to a FieldCallback, the factory calls
    ``get`` with the reference model and writes the result instead.
    """

    @abstractmethod
    def get(self, reference: Any) -> Any:
        """Compute the field value.

        Args:
            reference: The reference model of the current build. Without a
                caller-supplied reference this is the freshly constructed model.

        Returns:
            The value to write into the built model.
        """


class _FunctionCallback(FieldCallback):
    def __init__(self, fn: Callable[[Any], Any]) -> None:
        self.fn = fn

    def get(self, reference: Any) -> Any:
        return self.fn(reference)

    def __repr__(self) -> str:
        return f"field_callback({getattr(self.fn, '__qualname__', self.fn)!r})"


def field_callback(fn: Callable[[Any], Any]) -> FieldCallback:
    """Wrap a one-argument function as a FieldCallback.

    Usable as a decorator or inline::

        builder.default("email", field_callback(lambda user: f"{user.name}@example.com"))
    """
    return _FunctionCallback(fn)
