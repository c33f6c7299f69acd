"""Error types for Service Designer.

The analysis pipeline itself is total over well-typed input. These errors
are only raised where raw configuration enters the system.
"""


class ServiceDesignerError(Exception):
    """Base error for the package."""
    pass


class ConfigurationLoadError(ServiceDesignerError):
    """Raw configuration could not be converted into domain models."""
    pass


class RuleConfigError(ServiceDesignerError):
    """A custom gap rule document is malformed."""
    pass
