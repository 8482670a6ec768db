"""Build populated model instances for tests from registered blueprints."""

from modelcitizen.blueprint import Blueprint, BlueprintBuilder
from modelcitizen.callbacks import FieldCallback, field_callback
from modelcitizen.constants import DEFAULT_BLUEPRINT_NAME
from modelcitizen.erector import BuildRequest, Command, Erector
from modelcitizen.exceptions import (
    BlueprintNotFoundError,
    CreateModelError,
    ModelCitizenError,
    PolicyError,
    RegisterBlueprintError,
    TemplateError,
)
from modelcitizen.factory import ModelFactory
from modelcitizen.fields import (
    DefaultField,
    FieldRule,
    MappedField,
    MappedListField,
    MappedSetField,
)
from modelcitizen.policy import BlueprintPolicy, FieldPolicy, Policy

__version__ = "0.1.0"

__all__ = [
    "Blueprint",
    "BlueprintBuilder",
    "BlueprintNotFoundError",
    "BlueprintPolicy",
    "BuildRequest",
    "Command",
    "CreateModelError",
    "DEFAULT_BLUEPRINT_NAME",
    "DefaultField",
    "Erector",
    "FieldCallback",
    "FieldPolicy",
    "FieldRule",
    "MappedField",
    "MappedListField",
    "MappedSetField",
    "ModelCitizenError",
    "ModelFactory",
    "Policy",
    "PolicyError",
    "RegisterBlueprintError",
    "TemplateError",
    "field_callback",
]
