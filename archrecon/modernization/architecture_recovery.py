#!/usr/bin/env python3
# CUI // SP-CTI
"""Architecture Recovery — static extraction of an application's architecture model.

Walks every reachable declaration of an analysis catalog snapshot,
classifies it (entity / service / controller), builds the matching
records, locates outbound REST calls in the methods of services and
controllers, reconstructs their address arguments, and assembles one
immutable Module. Nothing is executed.

Usage:
    python -m archrecon.modernization.architecture_recovery \\
        --catalog build/catalog.json --config-doc src/main/resources/application.yml \\
        --module-name cms --base-package edu.baylor.ecs.cms --rest --json

    python -m archrecon.modernization.architecture_recovery \\
        --catalog build/catalog.json --workers 4 --output-file cms-architecture.json

    python -m archrecon.modernization.architecture_recovery \\
        --catalog build/catalog.json --human
"""

import argparse
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

from archrecon.catalog.interface import Declaration, MetadataCatalog
from archrecon.catalog.snapshot_catalog import SnapshotCatalog
from archrecon.cli.output_formatter import add_human_flag, format_module_report, should_use_human
from archrecon.modernization.architecture_assembler import ArchitectureAssembler, ExtractionResult
from archrecon.modernization.call_site_locator import CallSiteLocator
from archrecon.modernization.component_builder import ComponentCatalogBuilder
from archrecon.modernization.config_document import ConfigDocument
from archrecon.modernization.entity_builder import EntityModelBuilder
from archrecon.modernization.expression_resolver import ExpressionResolver
from archrecon.modernization.recovery_settings import RecoverySettings, load_settings
from archrecon.modernization.role_classifier import Role, RoleClassifier
from archrecon.resilience.errors import (
    ArchReconError,
    CatalogUnavailableError,
    ConfigurationError,
    MalformedInputError,
)
from archrecon.schemas.architecture import Module, RestCall

logger = logging.getLogger("archrecon.modernization.architecture_recovery")


class ArchitectureRecovery:
    """One extraction pass over a fixed catalog snapshot."""

    def __init__(
        self,
        catalog: MetadataCatalog,
        settings: Optional[RecoverySettings] = None,
        config_document: Optional[ConfigDocument] = None,
    ):
        self.catalog = catalog
        self.settings = settings or RecoverySettings()
        self.config_document = config_document or ConfigDocument.empty()
        self.classifier = RoleClassifier(self.settings)
        self.entity_builder = EntityModelBuilder(self.settings)
        self.component_builder = ComponentCatalogBuilder(self.settings)
        self.locator = CallSiteLocator(self.settings)
        self.resolver = ExpressionResolver(self.settings, self.config_document)
        self.assembler = ArchitectureAssembler()

    # ---- selection ----

    def is_relevant(self, name: str) -> bool:
        """Under the base package and outside every excluded package."""
        if any(name.startswith(p) for p in self.settings.excluded_packages):
            return False
        return name.startswith(self.settings.base_package)

    def relevant_declarations(self) -> List[str]:
        return [n for n in self.catalog.declaration_names() if self.is_relevant(n)]

    # ---- per declaration ----

    def extract_declaration(self, name: str) -> ExtractionResult:
        """Classify and project one declaration.

        Catalog failures and malformed records cost only this declaration:
        they are logged and an empty result is returned.
        """
        result = ExtractionResult()
        try:
            declaration = self.catalog.lookup_declaration(name)
            role = self.classifier.classify(declaration, self.catalog)
            if role is None:
                return result
            if role is Role.ENTITY:
                result.entities.append(self.entity_builder.build(declaration, self.catalog))
            elif role is Role.SERVICE:
                result.services.append(self.component_builder.build_service(declaration, self.catalog))
            else:
                result.controllers.append(self.component_builder.build_controller(declaration, self.catalog))
                result.endpoints.extend(self.component_builder.build_endpoints(declaration, self.catalog))
        except (CatalogUnavailableError, MalformedInputError) as e:
            logger.warning("Skipping declaration %s: %s", name, e)
            return ExtractionResult()

        if self.settings.extract_rest_calls and role in (Role.SERVICE, Role.CONTROLLER):
            result.rest_calls.extend(self.extract_rest_calls(declaration))
        return result

    def extract_rest_calls(self, declaration: Declaration) -> List[RestCall]:
        calls = []
        for method in self.catalog.declared_methods(declaration):
            try:
                graph = self.catalog.program_graph_of(method)
            except (CatalogUnavailableError, MalformedInputError) as e:
                logger.warning("No usable program graph for %s: %s", method.qualified_name, e)
                continue
            for site in self.locator.locate(method, graph):
                address = self.resolver.resolve(site.address_id, graph)
                calls.append(RestCall(method=site.method, target=site.target, address=address))
        return calls

    def extract_shard(self, names: List[str]) -> ExtractionResult:
        result = ExtractionResult()
        for name in names:
            result.extend(self.extract_declaration(name))
        return result

    # ---- run ----

    def run(self) -> Module:
        """Extract every relevant declaration and assemble the Module.

        With ``workers > 1`` the declaration list is sharded across a
        thread pool; the assembler merge after all shards finish is the
        only synchronization point.
        """
        names = self.relevant_declarations()
        workers = max(1, min(self.settings.workers, len(names) or 1))
        logger.info("Recovering module %s from %d declaration(s) with %d worker(s)",
                    self.settings.module_name, len(names), workers)
        if workers == 1:
            partials = [self.extract_shard(names)]
        else:
            shards = [names[i::workers] for i in range(workers)]
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="archrecon") as pool:
                partials = list(pool.map(self.extract_shard, shards))
        return self.assembler.assemble(self.settings.module_name, partials)


def recover_architecture(
    catalog: MetadataCatalog,
    settings: Optional[RecoverySettings] = None,
    config_document: Optional[ConfigDocument] = None,
) -> Module:
    """Convenience wrapper: one ArchitectureRecovery pass."""
    return ArchitectureRecovery(catalog, settings, config_document).run()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Static architecture recovery from an analysis catalog snapshot",
    )
    ap.add_argument("--catalog", required=True, help="Catalog snapshot (.json, .yml, .yaml)")
    ap.add_argument("--config-doc", help="Application configuration document (.yml, .yaml, .properties)")
    ap.add_argument("--settings", help="Recovery settings YAML (default: args/architecture_recovery_config.yaml)")
    ap.add_argument("--module-name", help="Name of the recovered module")
    ap.add_argument("--base-package", help="Only analyse declarations under this package")
    ap.add_argument("--rest", dest="extract_rest_calls", action="store_true", default=None,
                    help="Extract and resolve outbound REST calls")
    ap.add_argument("--no-rest", dest="extract_rest_calls", action="store_false",
                    help="Skip REST call extraction")
    ap.add_argument("--workers", type=int, help="Worker threads for the extraction pass")
    ap.add_argument("--max-depth", type=int, help="Hop bound for expression resolution")
    ap.add_argument("--output-file", help="Write the module JSON here instead of stdout")
    ap.add_argument("--json", action="store_true", dest="json_output", help="JSON output (default)")
    add_human_flag(ap)
    ap.add_argument("--verbose", action="store_true", help="Debug logging")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = load_settings(args.settings, overrides={
            "module_name": args.module_name,
            "base_package": args.base_package,
            "extract_rest_calls": args.extract_rest_calls,
            "workers": args.workers,
            "max_depth": args.max_depth,
        })
        config_document = ConfigDocument.from_file(args.config_doc) if args.config_doc else ConfigDocument.empty()
        catalog = SnapshotCatalog.from_file(args.catalog)
        module = recover_architecture(catalog, settings, config_document)
    except ConfigurationError as e:
        print(f"CONFIGURATION ERROR: {e}", file=sys.stderr)
        return 1
    except ArchReconError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if should_use_human(args) and not args.output_file:
        print(format_module_report(module))
        return 0
    output = json.dumps(module.to_dict(), indent=2)
    if args.output_file:
        op = Path(args.output_file)
        op.parent.mkdir(parents=True, exist_ok=True)
        op.write_text(output, encoding="utf-8")
        logger.info("Writing the module JSON into %s", op)
        if should_use_human(args):
            print(format_module_report(module))
    else:
        print(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
