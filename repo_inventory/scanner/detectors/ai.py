"""AI / ML platform: Vertex AI > SageMaker > OpenCV, npm before Python."""

from typing import List, Tuple

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import (
    find_npm_dependency,
    find_python_dependency,
    resolved,
)
from repo_inventory.scanner.detectors.registry import register_detector

# (package names, label, snippet), in precedence order
NPM_PLATFORMS: List[Tuple[List[str], str, str]] = [
    (["@google-cloud/aiplatform", "@google-cloud/vertexai"], "Vertex AI", "Vertex AI detected"),
    (["@aws-sdk/client-sagemaker"], "SageMaker", "AWS SageMaker detected"),
    (["opencv4nodejs", "opencv.js"], "OpenCV", "OpenCV detected"),
]

PYTHON_PLATFORMS: List[Tuple[List[str], str, str]] = [
    (["google-cloud-aiplatform"], "Vertex AI", "Vertex AI detected"),
    (["sagemaker"], "SageMaker", "AWS SageMaker detected"),
    (["opencv-python", "opencv-python-headless", "opencv-contrib-python"], "OpenCV", "OpenCV detected"),
]


@register_detector("ai")
def detect_ai(ctx: DetectorContext) -> DetectorResult:
    for names, label, snippet in NPM_PLATFORMS:
        dep = find_npm_dependency(ctx, names)
        if dep:
            return resolved("ai", label, dep.file, snippet)

    for names, label, snippet in PYTHON_PLATFORMS:
        dep = find_python_dependency(ctx, names)
        if dep:
            return resolved("ai", label, dep.file, snippet)

    return DetectorResult.empty()
