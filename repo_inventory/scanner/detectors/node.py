"""Node.js ecosystem: package manager, build tools, test and lint tooling."""

import json
from typing import Dict, List, Tuple

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import (
    all_npm_dependencies,
    find_files,
    read_all_package_json,
)
from repo_inventory.scanner.detectors.registry import register_detector

# Lockfile -> package manager, highest precedence first
LOCKFILES: List[Tuple[str, str]] = [
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("package-lock.json", "npm"),
]

BUILD_TOOLS: Dict[str, str] = {
    "vite": "Vite",
    "webpack": "Webpack",
    "turbopack": "Turbopack",
    "turborepo": "Turbopack",
    "esbuild": "esbuild",
    "rollup": "Rollup",
    "parcel": "Parcel",
    "@swc/core": "SWC",
}

TESTING: Dict[str, str] = {
    "jest": "Jest",
    "vitest": "Vitest",
    "mocha": "Mocha",
    "@playwright/test": "Playwright",
    "cypress": "Cypress",
}

LINT_FORMAT: Dict[str, str] = {
    "eslint": "ESLint",
    "prettier": "Prettier",
    "biome": "Biome",
    "@biomejs/biome": "Biome",
}


def _labels(deps, table: Dict[str, str]) -> List[str]:
    return list(dict.fromkeys(label for name, label in table.items() if name in deps))


@register_detector("node")
def detect_node(ctx: DetectorContext) -> DetectorResult:
    manifests = read_all_package_json(ctx)
    if not manifests:
        return DetectorResult.empty()

    deps = all_npm_dependencies(ctx)
    patch = {}

    for lockfile, manager in LOCKFILES:
        if find_files(ctx, lockfile):
            patch["package_managers"] = [manager]
            break

    for field, table in (
        ("build_tools", BUILD_TOOLS),
        ("testing", TESTING),
        ("lint_format", LINT_FORMAT),
    ):
        labels = _labels(deps, table)
        if labels:
            patch[field] = labels

    result = DetectorResult(patch=patch, score=0.9)
    root_path, root_pkg = manifests[0]
    result.add_proof(root_path, json.dumps(root_pkg, indent=2)[:500])
    return result
