"""
Full-stack meta-frameworks (Next.js, Nuxt).

A framework is only reported when a structural signal (config file or
routing directory) is corroborated by the framework's package in a
manifest. The label carries the declared version.
"""

from typing import Sequence

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import clean_version, find_npm_dependency
from repo_inventory.scanner.detectors.registry import register_detector

NEXT_CONFIGS = ("next.config.js", "next.config.mjs", "next.config.ts")
NUXT_CONFIGS = ("nuxt.config.js", "nuxt.config.ts", ".nuxtrc")


def _has_dir(ctx: DetectorContext, prefix: str) -> bool:
    return any(path.startswith(prefix) for path in ctx.paths)


def _detect_meta_framework(
    ctx: DetectorContext,
    label: str,
    package: str,
    configs: Sequence[str],
    route_dirs: Sequence[str],
) -> DetectorResult:
    config = ctx.first_present(*configs)
    if not config and not any(_has_dir(ctx, d) for d in route_dirs):
        return DetectorResult.empty()

    dep = find_npm_dependency(ctx, package)
    if dep is None:
        return DetectorResult.empty()

    version = clean_version(dep.version)
    name = f"{label} {version}" if version else label

    result = DetectorResult(patch={"frameworks": [name]}, score=1.0)
    result.add_proof(dep.file, dep.snippet)
    if config:
        result.add_proof(config, f"{label} configuration file found")
    return result


@register_detector("nextjs")
def detect_nextjs(ctx: DetectorContext) -> DetectorResult:
    return _detect_meta_framework(
        ctx, "Next.js", "next", NEXT_CONFIGS, route_dirs=("app/", "pages/")
    )


@register_detector("nuxt")
def detect_nuxt(ctx: DetectorContext) -> DetectorResult:
    return _detect_meta_framework(
        ctx, "Nuxt", "nuxt", NUXT_CONFIGS, route_dirs=("pages/",)
    )
