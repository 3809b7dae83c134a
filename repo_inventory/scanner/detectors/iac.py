"""Infrastructure as code."""

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import find_files, head
from repo_inventory.scanner.detectors.registry import register_detector

SNIPPET_LINES = 15

# Marker file -> tool, checked in addition to Terraform's *.tf files
MARKERS = [
    ("Pulumi.yaml", "Pulumi"),
    ("cdk.json", "AWS CDK"),
    ("serverless.yml", "Serverless Framework"),
    ("serverless.yaml", "Serverless Framework"),
]


@register_detector("iac")
def detect_iac(ctx: DetectorContext) -> DetectorResult:
    tools = []
    evidence_files = []

    tf_files = find_files(ctx, lambda p: p.endswith(".tf"))
    if tf_files:
        tools.append("Terraform")
        evidence_files.append(tf_files[0])

    for marker, label in MARKERS:
        matches = find_files(ctx, marker)
        if matches and label not in tools:
            tools.append(label)
            evidence_files.append(matches[0])

    if not tools:
        return DetectorResult.empty()

    result = DetectorResult(patch={"infra_as_code": tools}, score=0.95)
    for path in evidence_files:
        content = ctx.read(path)
        if content:
            result.add_proof(path, head(content, SNIPPET_LINES))
    return result
