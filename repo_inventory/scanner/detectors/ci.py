"""CI/CD systems."""

from typing import List, Tuple

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import head
from repo_inventory.scanner.detectors.registry import register_detector

WORKFLOWS_DIR = ".github/workflows/"
SNIPPET_LINES = 15

# Config file -> CI system, for providers other than GitHub Actions
CI_CONFIGS: List[Tuple[str, str]] = [
    (".gitlab-ci.yml", "GitLab CI"),
    (".circleci/config.yml", "CircleCI"),
    ("Jenkinsfile", "Jenkins"),
    ("azure-pipelines.yml", "Azure Pipelines"),
    ("bitbucket-pipelines.yml", "Bitbucket Pipelines"),
    ("cloudbuild.yaml", "Cloud Build"),
    ("cloudbuild.yml", "Cloud Build"),
]


@register_detector("github_actions")
def detect_github_actions(ctx: DetectorContext) -> DetectorResult:
    workflows = sorted(
        path
        for path in ctx.file_paths
        if path.startswith(WORKFLOWS_DIR) and path.endswith((".yml", ".yaml"))
    )
    if not workflows:
        return DetectorResult.empty()

    result = DetectorResult(patch={"ci_cd": ["GitHub Actions"]}, score=1.0)
    content = ctx.read(workflows[0])
    if content:
        result.add_proof(workflows[0], head(content, SNIPPET_LINES))
    return result


@register_detector("ci_providers")
def detect_ci_providers(ctx: DetectorContext) -> DetectorResult:
    found = [(path, label) for path, label in CI_CONFIGS if path in ctx.paths]
    if not found:
        return DetectorResult.empty()

    labels = list(dict.fromkeys(label for _, label in found))
    result = DetectorResult(patch={"ci_cd": labels}, score=1.0)
    path = found[0][0]
    content = ctx.read(path)
    if content:
        result.add_proof(path, head(content, SNIPPET_LINES))
    return result
