"""Authentication provider."""

from typing import Optional

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import (
    env_mentions,
    find_npm_dependency,
    find_python_dependency,
    resolved,
)
from repo_inventory.scanner.detectors.registry import register_detector


def _from_npm(ctx: DetectorContext) -> Optional[DetectorResult]:
    dep = find_npm_dependency(ctx, "better-auth")
    if dep:
        return resolved("auth", "Better-Auth", dep.file, "Better-Auth detected")

    dep = find_npm_dependency(ctx, "next-auth")
    if dep:
        return resolved("auth", "Next-Auth", dep.file, "Next-Auth detected")

    dep = find_npm_dependency(ctx, "firebase")
    if dep and env_mentions(ctx, "AUTH", "FIREBASE"):
        return resolved("auth", "Firebase Auth", dep.file, "Firebase Auth detected")

    dep = find_npm_dependency(ctx, ["aws-amplify", "@aws-amplify/auth"])
    if dep and env_mentions(ctx, "COGNITO"):
        return resolved("auth", "AWS Cognito", dep.file, "AWS Cognito detected")

    dep = find_npm_dependency(ctx, "amazon-cognito-identity-js")
    if dep:
        return resolved("auth", "AWS Cognito", dep.file, "AWS Cognito detected")

    return None


def _from_python(ctx: DetectorContext) -> Optional[DetectorResult]:
    dep = find_python_dependency(ctx, "firebase-admin")
    if dep:
        return resolved("auth", "Firebase Auth", dep.file, "Firebase Auth detected")

    dep = find_python_dependency(ctx, "boto3")
    if dep and env_mentions(ctx, "COGNITO"):
        return resolved("auth", "AWS Cognito", dep.file, "AWS Cognito detected")

    return None


@register_detector("auth")
def detect_auth(ctx: DetectorContext) -> DetectorResult:
    return _from_npm(ctx) or _from_python(ctx) or DetectorResult.empty()
