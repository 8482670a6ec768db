"""Field rules describing how a single model field is populated.

A blueprint holds an ordered tuple of field rules. Each rule is one case
of a closed union discriminated by ``kind``:

- ``DefaultField``: a literal value, optionally forced over the reference.
- ``MappedField``: exactly one nested model.
- ``MappedListField``: an ordered list of nested models, one alias per slot.
- ``MappedSetField``: an unordered set of nested models.
"""

import inspect
from collections.abc import MutableSequence, MutableSet
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modelcitizen.constants import DEFAULT_BLUEPRINT_NAME


class ModelField(BaseModel):
    """Attributes shared by every field rule.

    Attributes:
        name: Name of the model field the rule populates.
        target: Value type of the field. Field policies are looked up by it.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    target: type = object

    def __hash__(self) -> int:
        # Literal values may be unhashable; identity within a blueprint is the name.
        return hash((type(self).__name__, self.name))


class DefaultField(ModelField):
    """Assign a literal value unless the reference model already has one."""

    kind: Literal["default"] = "default"
    value: Any = None
    force: bool = False


class MappedField(ModelField):
    """Hold one nested model of ``target``, built when the reference has none."""

    kind: Literal["mapped"] = "mapped"
    nullable: bool = False


def _check_collection(value: type, capability: type, label: str) -> type:
    if not issubclass(value, capability) or inspect.isabstract(value):
        raise ValueError(
            f"{label} must be a concrete {capability.__name__}, got {value.__name__}"
        )
    return value


class MappedListField(ModelField):
    """Hold a list of ``size`` nested models, each built under its positional alias.

    When ``aliases`` is omitted every position uses the default alias. When
    only ``aliases`` is given, ``size`` is its length.
    """

    kind: Literal["mapped_list"] = "mapped_list"
    size: int = Field(0, ge=0)
    target_list: type = list
    aliases: tuple[str, ...] = ()
    ignore_empty: bool = True
    force: bool = False

    @model_validator(mode="before")
    @classmethod
    def _fill_aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        size = data.get("size")
        if data.get("aliases") is None:
            count = size if isinstance(size, int) and size > 0 else 0
            data["aliases"] = (DEFAULT_BLUEPRINT_NAME,) * count
        elif size is None:
            data["size"] = len(data["aliases"])
        return data

    @field_validator("target_list")
    @classmethod
    def _check_target_list(cls, value: type) -> type:
        return _check_collection(value, MutableSequence, "target_list")

    @model_validator(mode="after")
    def _check_aliases(self) -> "MappedListField":
        if len(self.aliases) != self.size:
            raise ValueError(
                f"List field '{self.name}' has size {self.size} "
                f"but {len(self.aliases)} aliases"
            )
        return self


class MappedSetField(ModelField):
    """Hold a set of ``size`` nested models built under the default alias."""

    kind: Literal["mapped_set"] = "mapped_set"
    size: int = Field(0, ge=0)
    target_set: type = set
    ignore_empty: bool = True
    force: bool = False

    @field_validator("target_set")
    @classmethod
    def _check_target_set(cls, value: type) -> type:
        return _check_collection(value, MutableSet, "target_set")


FieldRule = Annotated[
    Union[DefaultField, MappedField, MappedListField, MappedSetField],
    Field(discriminator="kind"),
]
