"""
Detector pipeline driver.

Runs every registered detector against the same tree and cached reader.
Each detector sees a snapshot of the inventory as merged so far; its patch
is applied strictly after it returns, so the merge step is the only mutator
of the running record. A detector that raises (or returns a malformed patch
or score) is logged and treated as having abstained.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from repo_inventory.dtos.scan import TreeEntry
from repo_inventory.entities.repo_inventory import Proof, RepoInventory
from repo_inventory.scanner.context import Detector, DetectorContext, ReadFn
from repo_inventory.scanner.merge import InventoryPatch, merge_patch, validate_patch

logger = logging.getLogger(__name__)


def detector_name(detector: Detector) -> str:
    return getattr(detector, "detector_name", None) or getattr(
        detector, "__name__", "unknown"
    )


@dataclass
class DetectorPass:
    """What the detector pass produced, besides the merged record itself."""

    evidence: Dict[str, List[Proof]] = field(default_factory=dict)
    scores: List[float] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    ran: int = 0


def _validated_score(score) -> Optional[float]:
    if score is None:
        return None
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ValueError(f"score must be a number, got {score!r}")
    if not 0.0 <= score <= 1.0:
        raise ValueError(f"score must be within [0, 1], got {score}")
    return float(score)


def run_detectors(
    inventory: RepoInventory,
    tree: List[TreeEntry],
    read: ReadFn,
    detectors: Sequence[Detector],
) -> DetectorPass:
    """Run ``detectors`` in order, merging each patch into ``inventory``."""
    run = DetectorPass()

    for detector in detectors:
        name = detector_name(detector)
        run.ran += 1
        ctx = DetectorContext(
            tree=tree, read=read, current=inventory.model_copy(deep=True)
        )

        try:
            result = detector(ctx)
            if result is None:
                continue
            patch: Optional[InventoryPatch] = (
                validate_patch(result.patch) if result.patch else None
            )
            score = _validated_score(result.score)
        except Exception as e:
            logger.error(
                f"Detector {name} failed: {e}",
                exc_info=True,
                extra={"detector": name},
            )
            run.failed.append(name)
            continue

        if patch is not None:
            merge_patch(inventory, patch)

        if result.proofs:
            run.evidence[name] = list(result.proofs)

        if score is not None:
            run.scores.append(score)

    logger.debug(
        f"Ran {run.ran} detectors: {len(run.scores)} scored, {len(run.failed)} failed"
    )
    return run
