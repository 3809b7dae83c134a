"""Messaging and queueing systems, from npm and Python dependencies."""

from typing import Dict

from repo_inventory.scanner.context import DetectorContext, DetectorResult
from repo_inventory.scanner.detectors.helpers import (
    all_npm_dependencies,
    all_python_dependencies,
)
from repo_inventory.scanner.detectors.registry import register_detector

NPM_PACKAGES: Dict[str, str] = {
    "kafkajs": "Kafka",
    "amqplib": "RabbitMQ",
    "@aws-sdk/client-sqs": "SQS",
    "@google-cloud/pubsub": "Pub/Sub",
    "nats": "NATS",
    "bullmq": "BullMQ",
    "@upstash/qstash": "QStash",
}

PYTHON_PACKAGES: Dict[str, str] = {
    "kafka-python": "Kafka",
    "confluent-kafka": "Kafka",
    "pika": "RabbitMQ",
    "celery": "Celery",
    "google-cloud-pubsub": "Pub/Sub",
    "nats-py": "NATS",
}


@register_detector("messaging")
def detect_messaging(ctx: DetectorContext) -> DetectorResult:
    result = DetectorResult(score=0.9)
    labels = []

    for deps, table in (
        (all_npm_dependencies(ctx), NPM_PACKAGES),
        (all_python_dependencies(ctx), PYTHON_PACKAGES),
    ):
        for package, label in table.items():
            match = deps.get(package)
            if match and label not in labels:
                labels.append(label)
                result.add_proof(match.file, f"{label} detected: {match.snippet}")

    if not labels:
        return DetectorResult.empty()

    result.patch = {"messaging": labels}
    return result
