"""
Primary database.

Precedence: Firestore config (firebase.json / firestore.rules) > npm
dependencies > Python dependencies. Cloud databases reached through a
generic SDK (aws-sdk, boto3, psycopg2) need an env-file keyword to
corroborate them.
"""

from typing import Optional

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import (
    env_mentions,
    find_files,
    find_npm_dependency,
    find_python_dependency,
    read_json,
)
from repo_inventory.scanner.detectors.registry import register_detector


def _database(label: str, file: str, snippet: str) -> DetectorResult:
    # The label is mirrored into the legacy databases array
    result = DetectorResult(patch={"db": label, "databases": [label]}, score=1.0)
    result.add_proof(file, snippet)
    return result


def _from_npm(ctx: DetectorContext) -> Optional[DetectorResult]:
    dep = find_npm_dependency(ctx, ["@neondatabase/serverless", "@neon/serverless"])
    if dep:
        return _database("Neon", dep.file, "Neon database detected")

    dep = find_npm_dependency(ctx, "@supabase/supabase-js")
    if dep:
        return _database("Supabase", dep.file, "Supabase detected")

    dep = find_npm_dependency(ctx, ["firebase", "@firebase/firestore"])
    if dep:
        return _database("Firestore", dep.file, "Firestore detected")

    dep = find_npm_dependency(ctx, ["aws-sdk", "@aws-sdk/client-rds", "@aws-sdk/client-dynamodb"])
    if dep:
        if env_mentions(ctx, "RDS", "Aurora"):
            return _database("AWS RDS", dep.file, "AWS RDS detected")
        if env_mentions(ctx, "DynamoDB"):
            return _database("AWS DynamoDB", dep.file, "AWS DynamoDB detected")

    dep = find_npm_dependency(ctx, ["mongodb", "mongoose"])
    if dep:
        return _database("MongoDB", dep.file, "MongoDB detected")

    dep = find_npm_dependency(ctx, ["redis", "ioredis"])
    if dep:
        return _database("Redis", dep.file, "Redis detected")

    return None


def _from_python(ctx: DetectorContext) -> Optional[DetectorResult]:
    dep = find_python_dependency(ctx, ["psycopg2", "psycopg2-binary", "psycopg"])
    if dep and env_mentions(ctx, "neon"):
        return _database("Neon", dep.file, "Neon (PostgreSQL) detected")

    dep = find_python_dependency(ctx, "supabase")
    if dep:
        return _database("Supabase", dep.file, "Supabase detected")

    dep = find_python_dependency(ctx, ["firebase-admin", "google-cloud-firestore"])
    if dep:
        return _database("Firestore", dep.file, "Firestore detected")

    dep = find_python_dependency(ctx, "boto3")
    if dep:
        if env_mentions(ctx, "RDS", "Aurora"):
            return _database("AWS RDS", dep.file, "AWS RDS detected")
        if env_mentions(ctx, "DynamoDB"):
            return _database("AWS DynamoDB", dep.file, "AWS DynamoDB detected")

    dep = find_python_dependency(ctx, ["pymongo", "motor"])
    if dep:
        return _database("MongoDB", dep.file, "MongoDB detected")

    dep = find_python_dependency(ctx, "redis")
    if dep:
        return _database("Redis", dep.file, "Redis detected")

    return None


@register_detector("database")
def detect_database(ctx: DetectorContext) -> DetectorResult:
    for path in find_files(ctx, "firebase.json"):
        config = read_json(ctx.read, path)
        if config and config.get("firestore"):
            return _database("Firestore", path, "Firestore config in firebase.json detected")

    rules = find_files(ctx, "firestore.rules")
    if rules:
        return _database("Firestore", rules[0], "Firestore rules file detected")

    return _from_npm(ctx) or _from_python(ctx) or DetectorResult.empty()
