#!/usr/bin/env python3
# CUI // SP-CTI
"""archrecon Resilience — Structured Exception Hierarchy.

Classification misses and resolution gaps are NOT errors: they surface as
"no role" and ``Unknown(reason)`` respectively. The exceptions below cover
the two remaining categories, malformed input and catalog-level failure,
plus invalid settings. All of them are permanent; retrying a read over the
same snapshot cannot change the outcome.

Usage:
    from archrecon.resilience.errors import CatalogUnavailableError

    raise CatalogUnavailableError("no graph for method", declaration="com.acme.OrderService")
"""


class ArchReconError(Exception):
    """Base exception for all archrecon errors.

    Attributes:
        component: Name of the component that raised the error (e.g. "catalog").
        retryable: Whether the caller should retry the operation. Always
            False for the extraction pass.
    """

    def __init__(self, message: str, component: str = "", retryable: bool = False):
        super().__init__(message)
        self.component = component
        self.retryable = retryable


class ArchReconPermanentError(ArchReconError):
    """Permanent error — retrying will not help.

    Examples: declaration missing from the catalog, malformed generic
    signature, invalid settings file.
    """

    def __init__(self, message: str, component: str = "", retryable: bool = False):
        super().__init__(message, component=component, retryable=retryable)


class CatalogUnavailableError(ArchReconPermanentError):
    """The analysis catalog could not supply a declaration or program graph.

    Fatal only for the declaration named in ``declaration``; the driver
    logs it and carries on with the rest of the run.
    """

    def __init__(self, message: str, declaration: str = ""):
        super().__init__(
            message or f"Declaration '{declaration}' is unavailable in the catalog",
            component="catalog",
        )
        self.declaration = declaration


class MalformedInputError(ArchReconPermanentError):
    """A catalog record has a shape the builders cannot project.

    Attributes:
        detail: The offending record or value, for diagnostics.
    """

    def __init__(self, message: str, detail: str = ""):
        super().__init__(message, component="builder")
        self.detail = detail


class ConfigurationError(ArchReconPermanentError):
    """Configuration error — missing or invalid settings."""

    def __init__(self, message: str, config_key: str = ""):
        super().__init__(message, component="config", retryable=False)
        self.config_key = config_key
