"""Ordered detector registry."""

from typing import Callable, List

from repo_inventory.scanner.context import Detector

# Registration order is the order the pipeline runs detectors in
DETECTOR_REGISTRY: List[Detector] = []


def register_detector(name: str) -> Callable[[Detector], Detector]:
    """
    Register a detector function under ``name``.

    The name keys the detector's evidence in the inventory record.
    """

    def decorator(func: Detector) -> Detector:
        if any(getattr(d, "detector_name", None) == name for d in DETECTOR_REGISTRY):
            raise ValueError(f"Detector '{name}' is already registered")
        func.detector_name = name
        DETECTOR_REGISTRY.append(func)
        return func

    return decorator
