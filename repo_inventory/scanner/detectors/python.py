"""Python ecosystem: package manager, test and lint tooling."""

from typing import Dict, List, Tuple

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import (
    all_python_dependencies,
    find_files,
    head,
    read_python_manifests,
)
from repo_inventory.scanner.detectors.registry import register_detector

# Marker file -> package manager, highest precedence first
MANAGER_MARKERS: List[Tuple[str, str]] = [
    ("uv.lock", "uv"),
    ("poetry.lock", "Poetry"),
    ("Pipfile.lock", "Pipenv"),
    ("Pipfile", "Pipenv"),
    ("requirements.txt", "pip"),
]

TESTING: Dict[str, str] = {
    "pytest": "pytest",
    "tox": "tox",
    "nox": "nox",
    "hypothesis": "Hypothesis",
}

LINT_FORMAT: Dict[str, str] = {
    "ruff": "Ruff",
    "black": "Black",
    "flake8": "Flake8",
    "pylint": "Pylint",
    "isort": "isort",
    "mypy": "mypy",
}


@register_detector("python")
def detect_python(ctx: DetectorContext) -> DetectorResult:
    manifests = read_python_manifests(ctx)
    if not manifests:
        return DetectorResult.empty()

    deps = all_python_dependencies(ctx)
    patch = {}

    for marker, manager in MANAGER_MARKERS:
        if find_files(ctx, marker):
            patch["package_managers"] = [manager]
            break

    testing = [label for name, label in TESTING.items() if name in deps]
    if testing:
        patch["testing"] = testing

    lint = [label for name, label in LINT_FORMAT.items() if name in deps]
    if lint:
        patch["lint_format"] = lint

    result = DetectorResult(patch=patch, score=0.9)
    path = manifests[0][0]
    result.add_proof(path, head(ctx.read(path) or "", 15))
    return result
