"""Model templates: construct, get and set primitives over model instances."""

from modelcitizen.template.attribute import AttributeTemplate
from modelcitizen.template.base import BlueprintTemplate
from modelcitizen.template.pydantic_model import PydanticTemplate
from modelcitizen.template.registry import template_for

__all__ = [
    "AttributeTemplate",
    "BlueprintTemplate",
    "PydanticTemplate",
    "template_for",
]
