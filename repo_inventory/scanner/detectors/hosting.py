"""Hosting: Vercel > Firebase Hosting > Docker > Cloud Run > EC2."""

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import find_files, mentions, read_json, resolved
from repo_inventory.scanner.detectors.registry import register_detector

VERCEL_MARKERS = ("vercel.json", ".vercel")
DOCKER_MARKERS = ("Dockerfile", "docker-compose.yml", "docker-compose.yaml")
CLOUD_RUN_MARKERS = ("cloudbuild.yaml", "cloudbuild.yml", "app.yaml")
EC2_KEYWORDS = ("aws_instance", "ec2")


@register_detector("hosting")
def detect_hosting(ctx: DetectorContext) -> DetectorResult:
    marker = ctx.first_present(*VERCEL_MARKERS)
    if marker:
        return resolved("hosting", "Vercel", marker, "Vercel deployment detected")

    for path in find_files(ctx, "firebase.json"):
        config = read_json(ctx.read, path)
        if config and config.get("hosting"):
            return resolved(
                "hosting",
                "Firebase Hosting",
                path,
                "Firebase Hosting config in firebase.json detected",
            )

    marker = ctx.first_present(*DOCKER_MARKERS)
    if marker:
        return resolved("hosting", "Docker", marker, "Docker deployment detected")

    marker = ctx.first_present(*CLOUD_RUN_MARKERS)
    if marker:
        return resolved("hosting", "CloudRun", marker, "Cloud Run deployment detected")

    for path in find_files(ctx, lambda p: p.endswith(".tf")):
        content = ctx.read(path)
        if content and any(mentions(content, k) for k in EC2_KEYWORDS):
            return resolved("hosting", "EC2", path, "AWS EC2 instance detected")

    return DetectorResult.empty()
