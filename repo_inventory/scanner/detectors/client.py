"""Client framework: Next.js > Nuxt.js > Vue > React."""

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import find_npm_dependency, resolved
from repo_inventory.scanner.detectors.meta_frameworks import NEXT_CONFIGS, NUXT_CONFIGS
from repo_inventory.scanner.detectors.registry import register_detector


@register_detector("client")
def detect_client(ctx: DetectorContext) -> DetectorResult:
    # Meta-frameworks first: they bundle React / Vue
    config = ctx.first_present(*NEXT_CONFIGS)
    if config:
        return resolved("client", "Next.js", config, "Next.js configuration detected")

    config = ctx.first_present(*NUXT_CONFIGS)
    if config:
        return resolved("client", "Nuxt.js", config, "Nuxt.js configuration detected")

    dep = find_npm_dependency(ctx, ["vue", "@vue/cli"])
    if dep:
        return resolved("client", "Vue", dep.file, f"Vue detected: {dep.version}")

    dep = find_npm_dependency(ctx, "react")
    if dep:
        return resolved("client", "React", dep.file, f"React detected: {dep.version}")

    return DetectorResult.empty()
