"""Deployment targets, from platform-specific config files or directories."""

from typing import List, Tuple

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.registry import register_detector

SNIPPET_CHARS = 300

# (paths, label); the first existing path of each entry is used as evidence
PLATFORMS: List[Tuple[Tuple[str, ...], str]] = [
    (("vercel.json", ".vercel"), "Vercel"),
    (("netlify.toml",), "Netlify"),
    (("fly.toml",), "Fly.io"),
    (("render.yaml",), "Render"),
    (("Procfile", "app.json"), "Heroku"),
]


@register_detector("deploy_targets")
def detect_deploy_targets(ctx: DetectorContext) -> DetectorResult:
    targets = []
    result = DetectorResult(score=0.9)

    for paths, label in PLATFORMS:
        path = ctx.first_present(*paths)
        if path is None:
            continue
        targets.append(label)
        # Directories such as .vercel have no content to quote
        if path in ctx.file_paths:
            content = ctx.read(path)
            if content:
                result.add_proof(path, content[:SNIPPET_CHARS])
                continue
        result.add_proof(path, f"{label} configuration found")

    if not targets:
        return DetectorResult.empty()

    result.patch = {"deploy_targets": targets}
    return result
