#!/usr/bin/env python3
# CUI // SP-CTI
"""ConfigDocument — immutable snapshot of the application's configuration tree.

Mirrors ``application.yml`` / ``application.properties``: a nested mapping
from string keys to string leaves or further mappings. Loaded once before
extraction and only ever queried afterwards.

``resolve("a.b.c")`` descends one segment at a time and returns the leaf
only when the whole path is consumed and the terminal value is a string.
Missing keys, non-mapping intermediates and non-string terminals all
yield None. There is no partial-path fallback and no environment
interpolation.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from archrecon.resilience.errors import ConfigurationError

logger = logging.getLogger("archrecon.modernization.config_document")


class ConfigDocument:
    """Hierarchical key lookup over a loaded configuration tree."""

    def __init__(self, tree: Optional[Mapping[str, Any]] = None):
        if tree is not None and not isinstance(tree, Mapping):
            raise ConfigurationError(
                f"Configuration document root must be a mapping, got {type(tree).__name__}"
            )
        self._tree: Dict[str, Any] = copy.deepcopy(dict(tree or {}))

    def __repr__(self) -> str:
        return f"ConfigDocument(keys={sorted(self._tree)})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ConfigDocument) and self._tree == other._tree

    __hash__ = None  # type: ignore[assignment]

    # ---- construction ----

    @classmethod
    def empty(cls) -> "ConfigDocument":
        return cls({})

    @classmethod
    def from_mapping(cls, tree: Mapping[str, Any]) -> "ConfigDocument":
        return cls(tree)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "ConfigDocument":
        """Load the first YAML document of *path*."""
        p = Path(path)
        try:
            with open(p, "r", encoding="utf-8") as f:
                tree = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration document {p}: {e}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Configuration document {p} is not valid YAML: {e}")
        return cls(tree or {})

    @classmethod
    def from_properties(cls, path: Union[str, Path]) -> "ConfigDocument":
        """Load a flat ``a.b.c=value`` properties file into the nested form.

        When a key is both a leaf and a prefix of a longer key
        (``a=1`` and ``a.b=2``) the longer key wins and a warning is logged.
        """
        p = Path(path)
        try:
            text = p.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration document {p}: {e}")
        return cls(_nest_properties(_parse_properties(text), str(p)))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ConfigDocument":
        p = Path(path)
        if p.suffix.lower() == ".properties":
            return cls.from_properties(p)
        return cls.from_yaml(p)

    # ---- query ----

    def resolve(self, dot_path: str) -> Optional[str]:
        """Return the string leaf at *dot_path*, or None when unresolved."""
        if not dot_path:
            return None
        current: Any = self._tree
        for segment in dot_path.split("."):
            if not isinstance(current, Mapping) or segment not in current:
                return None
            current = current[segment]
        return current if isinstance(current, str) else None

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._tree)


def _parse_properties(text: str) -> Dict[str, str]:
    props: Dict[str, str] = {}
    pending = ""
    for line in text.splitlines():
        stripped = line.strip()
        if not pending and (not stripped or stripped[0] in "#!"):
            continue
        if stripped.endswith("\\"):
            pending += stripped[:-1]
            continue
        stripped = pending + stripped
        pending = ""
        sep = min((i for i in (stripped.find("="), stripped.find(":")) if i >= 0), default=-1)
        if sep < 0:
            props[stripped] = ""
            continue
        props[stripped[:sep].strip()] = stripped[sep + 1:].strip()
    return props


def _nest_properties(props: Dict[str, str], source: str) -> Dict[str, Any]:
    tree: Dict[str, Any] = {}
    for key in sorted(props, key=lambda k: k.count(".")):
        node = tree
        parts = key.split(".")
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                if child is not None:
                    logger.warning("%s: key '%s' shadows a shorter leaf", source, key)
                child = {}
                node[part] = child
            node = child
        if isinstance(node.get(parts[-1]), dict):
            logger.warning("%s: leaf '%s' shadowed by longer keys", source, key)
            continue
        node[parts[-1]] = props[key]
    return tree
