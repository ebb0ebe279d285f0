"""Dependency-manifest detection and dependency-name extraction."""

from __future__ import annotations

import json
import logging
import re
import tomllib

from repo_lens.domain.entities import FileNode

logger = logging.getLogger(__name__)

# First match wins, in this order.
MANIFEST_NAMES: tuple[str, ...] = (
    "package.json",
    "requirements.txt",
    "pyproject.toml",
    "Cargo.toml",
    "go.mod",
    "pom.xml",
    "build.gradle",
    "Gemfile",
    "composer.json",
    "setup.py",
)

_REQUIREMENT_NAME_RE = re.compile(r"^([A-Za-z0-9][A-Za-z0-9._-]*)")
_PEP508_NAME_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")
_GO_REQUIRE_RE = re.compile(r"^\s*([\w.\-/]+)\s+v[\w.\-+]+", re.MULTILINE)


def find_manifest(tree: list[FileNode] | tuple[FileNode, ...]) -> FileNode | None:
    """Return the first manifest found, preferring the repository root."""
    blobs = [node for node in tree if node.type == "blob"]
    for name in MANIFEST_NAMES:
        for node in blobs:
            if node.path == name:
                return node
    for name in MANIFEST_NAMES:
        for node in blobs:
            if node.path.endswith(f"/{name}") and "node_modules/" not in node.path:
                return node
    return None


def manifest_type(path: str) -> str:
    return path.rsplit("/", maxsplit=1)[-1]


def extract_dependencies(kind: str, content: str) -> tuple[str, ...]:
    """Best-effort dependency names for *kind*; unparseable content yields ``()``."""
    try:
        if kind == "package.json":
            return _from_package_json(content)
        if kind == "requirements.txt":
            return _from_requirements(content)
        if kind == "pyproject.toml":
            return _from_pyproject(content)
        if kind == "Cargo.toml":
            return _from_cargo(content)
        if kind == "go.mod":
            return tuple(dict.fromkeys(_GO_REQUIRE_RE.findall(content)))
    except (ValueError, tomllib.TOMLDecodeError, AttributeError, TypeError):
        logger.debug("Could not parse %s — no dependencies extracted", kind, exc_info=True)
    return ()


def _from_package_json(content: str) -> tuple[str, ...]:
    data = json.loads(content)
    names: dict[str, None] = {}
    for section in ("dependencies", "devDependencies"):
        names.update(dict.fromkeys(data.get(section) or {}))
    return tuple(names)


def _from_requirements(content: str) -> tuple[str, ...]:
    names: dict[str, None] = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith(("#", "-")):
            continue
        match = _REQUIREMENT_NAME_RE.match(line)
        if match:
            names[match.group(1)] = None
    return tuple(names)


def _from_pyproject(content: str) -> tuple[str, ...]:
    data = tomllib.loads(content)
    names: dict[str, None] = {}
    for requirement in data.get("project", {}).get("dependencies", []):
        match = _PEP508_NAME_RE.match(requirement)
        if match:
            names[match.group(1)] = None
    poetry = data.get("tool", {}).get("poetry", {}).get("dependencies", {})
    names.update(dict.fromkeys(name for name in poetry if name != "python"))
    return tuple(names)


def _from_cargo(content: str) -> tuple[str, ...]:
    data = tomllib.loads(content)
    return tuple(data.get("dependencies", {}))
