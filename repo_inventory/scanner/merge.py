"""
Merge and scoring of detector output.

Patches are validated against a fixed schema before they touch the running
inventory: array categories must be lists of labels, scalar categories a
single label or None, and unknown keys are rejected.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from repo_inventory.entities.repo_inventory import ARRAY_FIELDS, RepoInventory


class InventoryPatch(BaseModel):
    """Partial classification emitted by a detector."""

    model_config = ConfigDict(extra="forbid", strict=True)

    # Array categories (unioned into the record)
    frameworks: Optional[List[str]] = None
    build_tools: Optional[List[str]] = None
    package_managers: Optional[List[str]] = None
    container: Optional[List[str]] = None
    ci_cd: Optional[List[str]] = None
    deploy_targets: Optional[List[str]] = None
    infra_as_code: Optional[List[str]] = None
    databases: Optional[List[str]] = None
    messaging: Optional[List[str]] = None
    testing: Optional[List[str]] = None
    lint_format: Optional[List[str]] = None

    # Scalar categories (overwritten, None included)
    client: Optional[str] = None
    server: Optional[str] = None
    db: Optional[str] = None
    storage: Optional[str] = None
    hosting: Optional[str] = None
    auth: Optional[str] = None
    ai: Optional[str] = None

    def items_set(self) -> Dict[str, Any]:
        """Only the keys the detector actually provided."""
        return {name: getattr(self, name) for name in self.model_fields_set}


PatchLike = Union[InventoryPatch, Dict[str, Any]]


def validate_patch(patch: PatchLike) -> InventoryPatch:
    if isinstance(patch, InventoryPatch):
        return patch
    return InventoryPatch.model_validate(patch)


def _union(current: Iterable[Any], incoming: Iterable[Any]) -> List[Any]:
    # Set semantics, first-seen order
    return list(dict.fromkeys([*current, *incoming]))


def merge_arrays(current: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge a raw patch into a raw record.

    For every key in ``patch``: when both sides are lists the result is their
    de-duplicated union, otherwise the patch value replaces the current one.
    Keys absent from ``patch`` are left untouched.
    """
    merged = dict(current)
    for key, value in patch.items():
        if isinstance(value, list) and isinstance(merged.get(key), list):
            merged[key] = _union(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_patch(inventory: RepoInventory, patch: PatchLike) -> RepoInventory:
    """Apply a validated patch to ``inventory`` in place and return it."""
    # An explicit None for an array category carries no labels
    provided = {
        key: value
        for key, value in validate_patch(patch).items_set().items()
        if not (key in ARRAY_FIELDS and value is None)
    }
    current = {key: getattr(inventory, key) for key in provided}
    for key, value in merge_arrays(current, provided).items():
        setattr(inventory, key, value)
    return inventory


def average(scores: List[float]) -> Optional[float]:
    """Arithmetic mean of the scores actually reported, or None if there are none."""
    if not scores:
        return None
    return sum(scores) / len(scores)
