#!/usr/bin/env python3
# CUI // SP-CTI
"""Modernization package — static architecture recovery.

Leaves first: role_classifier, config_document, entity_builder,
component_builder, call_site_locator, expression_resolver,
architecture_assembler; architecture_recovery drives the pass.
"""

from archrecon.modernization.architecture_recovery import (  # noqa: F401
    ArchitectureRecovery,
    recover_architecture,
)
from archrecon.modernization.config_document import ConfigDocument  # noqa: F401
from archrecon.modernization.recovery_settings import RecoverySettings, load_settings  # noqa: F401
