#!/usr/bin/env python3
# CUI // SP-CTI
"""archrecon Resilience Package — structured error hierarchy.

Every operation in the extraction pass is a pure read over an immutable
snapshot, so there is no retry or circuit-breaker layer here; only the
error taxonomy the driver uses to decide what to skip.
"""

from archrecon.resilience.errors import (  # noqa: F401
    ArchReconError,
    ArchReconPermanentError,
    CatalogUnavailableError,
    ConfigurationError,
    MalformedInputError,
)
