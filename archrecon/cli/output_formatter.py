# CUI // SP-CTI
"""
archrecon CLI Output Formatter
==============================

Human-friendly terminal rendering of a recovered architecture Module.

Tools print JSON by default (``--json``); with ``--human`` they render
through this module: a summary block, one table per record kind, and the
REST calls with their reconstructed addresses. Resolution gaps
(``{?}`` and unresolved ``${key}`` placeholders) are highlighted.

Usage::

    from archrecon.cli.output_formatter import format_module_report, add_human_flag
"""

from __future__ import annotations

import argparse
import os
import re
import sys
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from archrecon.schemas.architecture import Module
from archrecon.schemas.expressions import find_unknowns, render_expression

# ---------------------------------------------------------------------------
# ANSI color support
# ---------------------------------------------------------------------------

def _is_tty() -> bool:
    """Return True if stdout is connected to a terminal."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


# Also respect NO_COLOR (https://no-color.org/) and FORCE_COLOR env vars.
_COLORS_ENABLED: bool = (
    os.environ.get("FORCE_COLOR", "") == "1"
    or (_is_tty() and os.environ.get("NO_COLOR") is None)
)

_ANSI_RE = re.compile(r"\033\[[0-9;]*m")


class _Ansi:
    """ANSI escape-code helpers. Return plain text when color is disabled."""

    _CODES = {
        "reset":     "\033[0m",
        "bold":      "\033[1m",
        "dim":       "\033[2m",
        "underline": "\033[4m",
        "red":       "\033[31m",
        "green":     "\033[32m",
        "yellow":    "\033[33m",
        "magenta":   "\033[35m",
        "cyan":      "\033[36m",
    }

    @classmethod
    def wrap(cls, text: str, *styles: str) -> str:
        """Wrap *text* with one or more ANSI styles."""
        if not _COLORS_ENABLED or not styles:
            return text
        prefix = "".join(cls._CODES.get(s, "") for s in styles)
        return f"{prefix}{text}{cls._CODES['reset']}"

    @classmethod
    def strip(cls, text: str) -> str:
        """Remove all ANSI escape sequences from *text*."""
        return _ANSI_RE.sub("", text)


C = _Ansi  # short alias


def _highlight_gaps(text: str) -> str:
    """Color ``{?}`` and unresolved ``${...}`` placeholders inside *text*."""
    if not _COLORS_ENABLED:
        return text
    text = text.replace("{?}", C.wrap("{?}", "red", "bold"))
    return re.sub(r"\$\{[^}]*\}", lambda m: C.wrap(m.group(0), "yellow"), text)

# ---------------------------------------------------------------------------
# Generic blocks
# ---------------------------------------------------------------------------

def format_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    title: Optional[str] = None,
) -> str:
    """Render an ASCII table with box-drawing characters and auto-width columns."""
    str_rows = [[str(c) for c in row] for row in rows]

    widths = [len(h) for h in headers]
    for row in str_rows:
        for i, cell in enumerate(row):
            if i < len(widths):
                widths[i] = max(widths[i], len(cell))

    def _hline(left: str, mid: str, right: str, fill: str = "─") -> str:
        return left + mid.join(fill * (w + 2) for w in widths) + right

    def _row_str(cells: List[str], header: bool = False) -> str:
        parts = []
        for i, cell in enumerate(cells):
            pad = widths[i] - len(cell)
            display = C.wrap(cell, "bold", "cyan") if header else _highlight_gaps(cell)
            parts.append(f" {display}{' ' * pad} ")
        return "│" + "│".join(parts) + "│"

    lines: List[str] = []
    if title:
        lines.append(C.wrap(f"  {title}", "bold", "underline"))
        lines.append("")
    lines.append(_hline("┌", "┬", "┐"))
    lines.append(_row_str(list(headers), header=True))
    lines.append(_hline("├", "┼", "┤"))
    for row in str_rows:
        lines.append(_row_str(row))
    lines.append(_hline("└", "┴", "┘"))
    return "\n".join(lines)


def format_kv(
    pairs: Union[Dict[str, Any], List[Tuple[str, Any]]],
    title: Optional[str] = None,
) -> str:
    """Key-value display with aligned colons."""
    items = list(pairs.items()) if isinstance(pairs, dict) else list(pairs)
    if not items:
        return ""
    max_key = max(len(str(k)) for k, _ in items)
    lines: List[str] = []
    if title:
        lines.append(C.wrap(f"  {title}", "bold", "underline"))
        lines.append("")
    for key, val in items:
        lines.append(f"  {C.wrap(str(key).ljust(max_key), 'cyan')} : {val}")
    return "\n".join(lines)


def format_section(title: str, width: int = 60) -> str:
    """Decorated section header with horizontal rules."""
    rule = "─" * width
    return "\n".join([
        C.wrap(rule, "dim"),
        C.wrap(f"  {title}", "bold", "magenta"),
        C.wrap(rule, "dim"),
    ])

# ---------------------------------------------------------------------------
# Module report
# ---------------------------------------------------------------------------

def format_module_report(module: Module) -> str:
    """Render a Module as summary plus one table per non-empty record kind."""
    summary = module.summary()
    gaps = sum(1 for r in module.rest_calls if find_unknowns(r.address))
    summary["rest_calls_with_gaps"] = gaps
    blocks = [format_section(f"Architecture: {module.name.simple}"), format_kv(summary)]

    if module.entities:
        rows = [
            (e.name.qualified, len(e.fields),
             ", ".join(sorted(f"{f.name}->{f.referenced_entity_name}" for f in e.fields if f.is_reference)) or "-")
            for e in module.entities
        ]
        blocks.append(format_table(["Entity", "Fields", "Relations"], rows, title="Entities"))
    for title, components in (("Services", module.services), ("Controllers", module.controllers)):
        if components:
            rows = [(c.name.qualified, len(c.fields), len(c.methods)) for c in components]
            blocks.append(format_table([title[:-1], "Fields", "Methods"], rows, title=title))
    if module.endpoints:
        rows = [(e.verb or "*", e.path, f"{e.controller}.{e.method}") for e in module.endpoints]
        blocks.append(format_table(["Verb", "Path", "Handler"], rows, title="Endpoints"))
    if module.rest_calls:
        rows = [(r.method, r.target.split("(", 1)[0].rsplit(".", 1)[-1], render_expression(r.address))
                for r in module.rest_calls]
        blocks.append(format_table(["Caller", "Call", "Address"], rows, title="REST calls"))
    return "\n\n".join(b for b in blocks if b)


def add_human_flag(parser: argparse.ArgumentParser) -> None:
    """Add ``--human`` to an argparse parser (JSON stays the default)."""
    parser.add_argument(
        "--human",
        action="store_true",
        default=False,
        help="Human-friendly colorized terminal output (instead of JSON)",
    )


def should_use_human(args: argparse.Namespace) -> bool:
    """Return True if the ``--human`` flag is set on *args*."""
    return getattr(args, "human", False)
