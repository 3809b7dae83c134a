"""
Helpers shared by detectors: tree lookups, manifest parsing and keyword
matching. All reads go through the scan's cached reader.
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from repo_inventory.scanner.context import DetectorContext, DetectorResult, ReadFn

logger = logging.getLogger(__name__)

# Vendored or generated directories never hold the project's own manifests
IGNORED_DIRS = ("node_modules/", ".venv/", "venv/", "site-packages/", "vendor/", "dist/")

ENV_FILE_NAMES = (".env", ".env.example")

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")
_VERSION_PREFIX = re.compile(r"^[\s^~=<>v]+")


@dataclass(frozen=True)
class DependencyMatch:
    """A dependency found in a manifest."""

    file: str
    name: str
    version: str = ""

    @property
    def snippet(self) -> str:
        return f'"{self.name}": "{self.version}"' if self.version else self.name


# ============================================================================
# Tree helpers
# ============================================================================


def _ignored(path: str) -> bool:
    return any(path.startswith(d) or f"/{d}" in path for d in IGNORED_DIRS)


def find_files(
    ctx: DetectorContext, pattern: Union[str, Callable[[str], bool]]
) -> List[str]:
    """
    Files in the tree matching ``pattern``.

    A string pattern matches a file with exactly that name at any depth;
    a callable receives the full path. Root-level matches come first.
    """
    if isinstance(pattern, str):
        name = pattern

        def matcher(path: str) -> bool:
            return path == name or path.endswith("/" + name)

    else:
        matcher = pattern

    matches = [p for p in ctx.file_paths if not _ignored(p) and matcher(p)]
    matches.sort(key=lambda p: (p.count("/"), p))
    return matches


def head(content: str, lines: int) -> str:
    return "\n".join(content.split("\n")[:lines])


def mentions(text: str, keyword: str) -> bool:
    """
    Case-insensitive keyword match on identifier boundaries.

    ``RDS`` matches ``AWS_RDS_HOST`` and ``db.rds.amazonaws.com`` but not
    ``PASSWORDS``.
    """
    if not text:
        return False
    pattern = rf"(?<![A-Za-z0-9]){re.escape(keyword)}(?![A-Za-z0-9])"
    return re.search(pattern, text, re.IGNORECASE) is not None


def clean_version(version: str) -> str:
    """Strip range operators from a version spec: ``^14.2.0`` -> ``14.2.0``."""
    return _VERSION_PREFIX.sub("", version or "").strip()


# ============================================================================
# JSON / npm
# ============================================================================


def read_json(read: ReadFn, path: str) -> Optional[dict]:
    content = read(path)
    if not content:
        return None
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        logger.debug(f"Failed to parse {path} as JSON")
        return None
    return data if isinstance(data, dict) else None


def npm_dependencies(pkg: dict) -> Dict[str, str]:
    """dependencies and devDependencies of a package.json, merged."""
    deps: Dict[str, str] = {}
    for key in ("dependencies", "devDependencies"):
        section = pkg.get(key)
        if isinstance(section, dict):
            deps.update({k: str(v) for k, v in section.items()})
    return deps


def read_all_package_json(ctx: DetectorContext) -> List[Tuple[str, dict]]:
    """Every parseable package.json in the repository, root first."""
    results = []
    for path in find_files(ctx, "package.json"):
        data = read_json(ctx.read, path)
        if data is not None:
            results.append((path, data))
    return results


def find_npm_dependency(
    ctx: DetectorContext, names: Union[str, Sequence[str]]
) -> Optional[DependencyMatch]:
    """
    First of ``names`` declared by any package.json.

    Manifests are visited root first; within a manifest, ``names`` are tried
    in the order given.
    """
    if isinstance(names, str):
        names = [names]
    for path, pkg in read_all_package_json(ctx):
        deps = npm_dependencies(pkg)
        for name in names:
            if name in deps:
                return DependencyMatch(file=path, name=name, version=deps[name])
    return None


def all_npm_dependencies(ctx: DetectorContext) -> Dict[str, DependencyMatch]:
    """Union of every package.json's dependencies; first declaration wins."""
    found: Dict[str, DependencyMatch] = {}
    for path, pkg in read_all_package_json(ctx):
        for name, version in npm_dependencies(pkg).items():
            found.setdefault(name, DependencyMatch(file=path, name=name, version=version))
    return found


# ============================================================================
# Python manifests
# ============================================================================


def normalize_name(name: str) -> str:
    """PEP 503 style normalization: lower case, runs of -_. become -."""
    return re.sub(r"[-_.]+", "-", name).lower()


def _requirement_name(spec: str) -> Optional[str]:
    spec = spec.strip()
    if not spec or spec.startswith(("#", "-", "git+", "http:", "https:")):
        return None
    match = _REQUIREMENT_NAME.match(spec)
    return normalize_name(match.group(1)) if match else None


def parse_requirements(content: str) -> Dict[str, str]:
    """Package name -> raw requirement line, from requirements.txt syntax."""
    deps: Dict[str, str] = {}
    for line in content.splitlines():
        line = line.split(" #", 1)[0].strip()
        name = _requirement_name(line)
        if name:
            deps.setdefault(name, line)
    return deps


def parse_pipfile(content: str) -> Dict[str, str]:
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError:
        logger.debug("Failed to parse Pipfile")
        return {}
    deps: Dict[str, str] = {}
    for section in ("packages", "dev-packages"):
        for name, spec in (data.get(section) or {}).items():
            deps.setdefault(normalize_name(name), f"{name} {spec}")
    return deps


def parse_pyproject(content: str) -> Dict[str, str]:
    """Dependencies declared by PEP 621, PEP 735 or Poetry tables."""
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError:
        logger.debug("Failed to parse pyproject.toml")
        return {}

    groups = []
    project = data.get("project") or {}
    groups.append(project.get("dependencies") or [])
    groups.extend((project.get("optional-dependencies") or {}).values())
    groups.extend((data.get("dependency-groups") or {}).values())
    # Entries that are not requirement strings (include-group tables, typos) are skipped
    specs = [s for group in groups if isinstance(group, list) for s in group if isinstance(s, str)]

    deps: Dict[str, str] = {}
    for spec in specs:
        name = _requirement_name(spec)
        if name:
            deps.setdefault(name, spec)

    poetry = (data.get("tool") or {}).get("poetry") or {}
    poetry_tables = [poetry.get("dependencies") or {}, poetry.get("dev-dependencies") or {}]
    poetry_tables.extend(
        (group or {}).get("dependencies") or {}
        for group in (poetry.get("group") or {}).values()
    )
    for table in poetry_tables:
        for name, spec in table.items():
            if name.lower() != "python":
                deps.setdefault(normalize_name(name), f"{name} {spec}")
    return deps


PYTHON_MANIFESTS: Dict[str, Callable[[str], Dict[str, str]]] = {
    "requirements.txt": parse_requirements,
    "Pipfile": parse_pipfile,
    "pyproject.toml": parse_pyproject,
}


def read_python_manifests(ctx: DetectorContext) -> List[Tuple[str, Dict[str, str]]]:
    """(path, dependencies) for every Python manifest, root first."""
    manifests = []
    for name, parser in PYTHON_MANIFESTS.items():
        for path in find_files(ctx, name):
            content = ctx.read(path)
            if content:
                manifests.append((path, parser(content)))
    manifests.sort(key=lambda m: (m[0].count("/"), m[0]))
    return manifests


def find_python_dependency(
    ctx: DetectorContext, names: Union[str, Iterable[str]]
) -> Optional[DependencyMatch]:
    if isinstance(names, str):
        names = [names]
    wanted = [normalize_name(n) for n in names]
    for path, deps in read_python_manifests(ctx):
        for name in wanted:
            if name in deps:
                return DependencyMatch(file=path, name=name, version=deps[name])
    return None


def all_python_dependencies(ctx: DetectorContext) -> Dict[str, DependencyMatch]:
    found: Dict[str, DependencyMatch] = {}
    for path, deps in read_python_manifests(ctx):
        for name, spec in deps.items():
            found.setdefault(name, DependencyMatch(file=path, name=name, version=spec))
    return found


# ============================================================================
# Environment files
# ============================================================================


def read_env_text(ctx: DetectorContext) -> str:
    """Contents of every .env / .env.example file, joined."""
    contents = []
    for name in ENV_FILE_NAMES:
        for path in find_files(ctx, name):
            content = ctx.read(path)
            if content:
                contents.append(content)
    return "\n".join(contents)


def env_mentions(ctx: DetectorContext, *keywords: str) -> bool:
    env = read_env_text(ctx)
    return any(mentions(env, k) for k in keywords)


# ============================================================================
# Results
# ============================================================================


def resolved(field: str, label: str, file: str, snippet: str) -> DetectorResult:
    """Result for an architecture detector that settled on ``label``."""
    result = DetectorResult(patch={field: label}, score=1.0)
    result.add_proof(file, snippet)
    return result
