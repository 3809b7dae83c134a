"""Object storage: Firebase Storage config > npm deps > Python deps."""

from typing import Optional

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import (
    env_mentions,
    find_files,
    find_npm_dependency,
    find_python_dependency,
    read_json,
    resolved,
)
from repo_inventory.scanner.detectors.registry import register_detector


def _from_npm(ctx: DetectorContext) -> Optional[DetectorResult]:
    dep = find_npm_dependency(ctx, "@vercel/blob")
    if dep:
        return resolved("storage", "Vercel Blob", dep.file, "Vercel Blob detected")

    dep = find_npm_dependency(ctx, "@google-cloud/storage")
    if dep:
        return resolved("storage", "GCS", dep.file, "Google Cloud Storage detected")

    dep = find_npm_dependency(ctx, "firebase")
    if dep and env_mentions(ctx, "storage", "STORAGE_BUCKET"):
        return resolved("storage", "Firebase Storage", dep.file, "Firebase Storage detected")

    dep = find_npm_dependency(ctx, ["@aws-sdk/client-s3", "aws-sdk"])
    if dep:
        return resolved("storage", "S3", dep.file, "AWS S3 detected")

    return None


def _from_python(ctx: DetectorContext) -> Optional[DetectorResult]:
    dep = find_python_dependency(ctx, "google-cloud-storage")
    if dep:
        return resolved("storage", "GCS", dep.file, "Google Cloud Storage detected")

    dep = find_python_dependency(ctx, "firebase-admin")
    if dep and env_mentions(ctx, "storage", "STORAGE_BUCKET"):
        return resolved("storage", "Firebase Storage", dep.file, "Firebase Storage detected")

    dep = find_python_dependency(ctx, ["boto3", "s3fs"])
    if dep:
        return resolved("storage", "S3", dep.file, "AWS S3 detected")

    return None


@register_detector("storage")
def detect_storage(ctx: DetectorContext) -> DetectorResult:
    for path in find_files(ctx, "firebase.json"):
        config = read_json(ctx.read, path)
        if config and config.get("storage"):
            return resolved(
                "storage",
                "Firebase Storage",
                path,
                "Firebase Storage config in firebase.json detected",
            )

    rules = find_files(ctx, "storage.rules")
    if rules:
        return resolved("storage", "Firebase Storage", rules[0], "Firebase Storage rules file detected")

    return _from_npm(ctx) or _from_python(ctx) or DetectorResult.empty()
