"""
Scan-scoped types shared by the scanner and every detector.

A detector receives a DetectorContext (tree, cached reader, snapshot of the
inventory accumulated so far) and returns a DetectorResult. Nothing here is
process-wide; each repository scan builds its own context.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Callable, Dict, List, Optional, Protocol, Set

from repo_inventory.dtos.scan import TreeEntry
from repo_inventory.entities.repo_inventory import Contributor, LanguageShare, Proof, RepoInventory

ReadFn = Callable[[str], Optional[str]]


class SourceAdapter(Protocol):
    """Read access to a remote version-control host."""

    def get_repo_tree(self, owner: str, repo: str, branch: str) -> List[TreeEntry]: ...

    def get_text(self, owner: str, repo: str, path: str) -> Optional[str]: ...

    def list_repo_languages(
        self, owner: str, repo: str, threshold_percent: int = 20
    ) -> List[LanguageShare]: ...

    def list_repo_contributors(
        self, owner: str, repo: str, limit: int = 10
    ) -> List[Contributor]: ...


@dataclass
class DetectorContext:
    tree: List[TreeEntry]
    read: ReadFn
    current: RepoInventory

    @cached_property
    def paths(self) -> Set[str]:
        return {entry.path for entry in self.tree}

    @cached_property
    def file_paths(self) -> List[str]:
        return [entry.path for entry in self.tree if entry.is_file]

    def has(self, *paths: str) -> bool:
        """True if any of ``paths`` exists in the tree (file or directory)."""
        return any(p in self.paths for p in paths)

    def first_present(self, *paths: str) -> Optional[str]:
        """The first of ``paths`` that exists in the tree."""
        for p in paths:
            if p in self.paths:
                return p
        return None


@dataclass
class DetectorResult:
    """
    Output of one detector.

    ``patch`` maps inventory classification fields to values (lists for
    array fields, a string or None for scalar fields). A result with no
    patch and no score means the detector abstained.
    """

    patch: Dict[str, Any] = field(default_factory=dict)
    proofs: List[Proof] = field(default_factory=list)
    score: Optional[float] = None

    @classmethod
    def empty(cls) -> "DetectorResult":
        return cls()

    def add_proof(self, file: str, snippet: str) -> None:
        self.proofs.append(Proof(file=file, snippet=snippet))


Detector = Callable[[DetectorContext], DetectorResult]
