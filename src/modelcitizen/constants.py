"""Well-known names shared across the factory."""

# Alias used when a blueprint or a build does not name one
DEFAULT_BLUEPRINT_NAME = "default"

# Hook list run on every model after its fields are resolved
AFTER_CREATE = "after_create"

# Nested builds allowed before a build is failed as runaway recursion
DEFAULT_MAX_DEPTH = 32
