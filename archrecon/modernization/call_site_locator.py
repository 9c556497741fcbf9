#!/usr/bin/env python3
# CUI // SP-CTI
"""CallSiteLocator — outbound-call invocations inside one method's graph.

Linear scan of invocation nodes in program order. A node matches when its
target signature starts with the configured prefix (and, if the caller
narrowed it, when the target method name is in ``call_target_methods``).
The first argument of a match is the address argument. Callees are not
entered; the resolver only follows data edges inside the same graph.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from archrecon.catalog.interface import GraphNode, MethodDecl, ProgramGraph
from archrecon.modernization.recovery_settings import RecoverySettings

logger = logging.getLogger("archrecon.modernization.call_site_locator")


@dataclass(frozen=True)
class CallSite:
    """Unresolved RestCall skeleton."""

    method: str
    target: str
    invoke: GraphNode
    argument_ids: Tuple[int, ...]

    @property
    def address_id(self) -> Optional[int]:
        return self.argument_ids[0] if self.argument_ids else None


class CallSiteLocator:

    def __init__(self, settings: RecoverySettings):
        self.prefix = settings.call_signature_prefix
        self.target_methods = settings.call_target_methods

    def matches(self, node: GraphNode) -> bool:
        if not self.prefix or not node.target.startswith(self.prefix):
            return False
        return not self.target_methods or node.target_method_name in self.target_methods

    def locate(self, method: MethodDecl, graph: ProgramGraph) -> List[CallSite]:
        sites = [
            CallSite(
                method=method.qualified_name,
                target=node.target,
                invoke=node,
                argument_ids=node.arguments,
            )
            for node in graph.invocations()
            if self.matches(node)
        ]
        if sites:
            logger.debug("%d outbound call site(s) in %s", len(sites), method.qualified_name)
        return sites
