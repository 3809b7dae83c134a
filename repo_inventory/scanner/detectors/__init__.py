"""
Detector registry.

Importing a detector module registers its detectors; the import order below
is the order the pipeline runs them in. Tooling detectors come first, then
the architecture detectors that resolve one scalar each.
"""

from repo_inventory.scanner.detectors import (  # noqa: F401
    node,
    python,
    meta_frameworks,
    docker,
    ci,
    deploy,
    iac,
    messaging,
    client,
    server,
    database,
    storage,
    hosting,
    auth,
    ai,
)
from repo_inventory.scanner.detectors.registry import DETECTOR_REGISTRY, register_detector

ALL_DETECTORS = list(DETECTOR_REGISTRY)

__all__ = ["ALL_DETECTORS", "DETECTOR_REGISTRY", "register_detector"]
