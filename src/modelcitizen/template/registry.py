"""Default template selection per model type."""

from pydantic import BaseModel

from modelcitizen.template.attribute import AttributeTemplate
from modelcitizen.template.base import BlueprintTemplate
from modelcitizen.template.pydantic_model import PydanticTemplate


def template_for(target: type) -> BlueprintTemplate:
    """Pick the bundled template suited to a model type.

    Args:
        target: The model type a blueprint builds.

    Returns:
        A PydanticTemplate for pydantic models, else an AttributeTemplate.
    """
    if isinstance(target, type) and issubclass(target, BaseModel):
        return PydanticTemplate()
    return AttributeTemplate()
