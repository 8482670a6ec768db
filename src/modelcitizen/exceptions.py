"""Error taxonomy for blueprint registration and model creation."""


class ModelCitizenError(Exception):
    """Base class for all modelcitizen errors."""


class RegisterBlueprintError(ModelCitizenError):
    """Raised when a blueprint cannot be registered.

    Covers malformed blueprint metadata, collection capability mismatches
    and qualified names that fail to import.
    """


class PolicyError(ModelCitizenError):
    """Raised when a policy is attached to an unregistered blueprint or fails."""


class BlueprintNotFoundError(ModelCitizenError, LookupError):
    """Raised when no blueprint is registered for an (alias, type) pair."""

    def __init__(self, alias: str, target: type) -> None:
        self.alias = alias
        self.target = target
        super().__init__(
            f"Unregistered alias '{alias}' for class {target.__module__}.{target.__qualname__}"
        )


class TemplateError(ModelCitizenError):
    """Raised when a template fails to construct, read or write a model."""


class CreateModelError(ModelCitizenError):
    """Raised to the caller of ``create_model`` when a build fails.

    The originating error is available as ``__cause__``.
    """
