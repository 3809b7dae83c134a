"""
Server framework: Next.js > Nuxt.js > Express.js > Flask > FastAPI > Streamlit.

Manifests are searched across the whole tree so backends living in a
monorepo subdirectory are found too.
"""

from typing import List, Tuple

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import (
    find_npm_dependency,
    find_python_dependency,
    resolved,
)
from repo_inventory.scanner.detectors.meta_frameworks import NEXT_CONFIGS
from repo_inventory.scanner.detectors.registry import register_detector

NUXT_SERVER_CONFIGS = ("nuxt.config.js", "nuxt.config.ts")

# Python package -> label, in precedence order
PYTHON_SERVERS: List[Tuple[str, str]] = [
    ("flask", "Flask"),
    ("fastapi", "FastAPI"),
    ("streamlit", "Streamlit"),
]


@register_detector("server")
def detect_server(ctx: DetectorContext) -> DetectorResult:
    config = ctx.first_present(*NEXT_CONFIGS)
    if config:
        return resolved("server", "Next.js", config, "Next.js server detected")

    config = ctx.first_present(*NUXT_SERVER_CONFIGS)
    if config:
        return resolved("server", "Nuxt.js", config, "Nuxt.js server detected")

    dep = find_npm_dependency(ctx, "express")
    if dep:
        return resolved("server", "Express.js", dep.file, f"Express.js detected: {dep.version}")

    for package, label in PYTHON_SERVERS:
        dep = find_python_dependency(ctx, package)
        if dep:
            return resolved("server", label, dep.file, f"{label} detected")

    return DetectorResult.empty()
