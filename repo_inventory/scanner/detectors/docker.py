"""Container tooling: Dockerfile and Compose files."""

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import find_files, head
from repo_inventory.scanner.detectors.registry import register_detector

COMPOSE_FILES = (
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
)

SNIPPET_LINES = 10


@register_detector("docker")
def detect_docker(ctx: DetectorContext) -> DetectorResult:
    dockerfiles = find_files(ctx, "Dockerfile")
    compose = ctx.first_present(*COMPOSE_FILES)
    if not compose:
        for name in COMPOSE_FILES:
            matches = find_files(ctx, name)
            if matches:
                compose = matches[0]
                break

    if not dockerfiles and not compose:
        return DetectorResult.empty()

    container = []
    result = DetectorResult(score=0.95)

    if dockerfiles:
        container.append("Docker")
        content = ctx.read(dockerfiles[0])
        if content:
            result.add_proof(dockerfiles[0], head(content, SNIPPET_LINES))

    if compose:
        container.append("Docker Compose")
        content = ctx.read(compose)
        if content:
            result.add_proof(compose, head(content, SNIPPET_LINES))

    result.patch = {"container": container}
    return result
