"""DTOs passed between the GitHub adapter, the scanner and the orchestrator."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class TreeEntry(BaseModel):
    """One item of a recursive git tree listing."""

    model_config = {"frozen": True}

    path: str
    type: str = "blob"  # "blob" | "tree" | "commit"
    sha: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return self.type == "blob"


class RepoMeta(BaseModel):
    """Repository metadata supplied by the caller of a scan."""

    org: str
    repo_id: int
    name: str
    owner: Optional[str] = None
    url: str = ""
    default_branch: str = "main"
    visibility: str = "public"
    primary_language: Optional[str] = None
    updated_at: Optional[datetime] = None
    pushed_at: Optional[datetime] = None

    @property
    def owner_login(self) -> str:
        return self.owner or self.org


class RepoScanOutcome(BaseModel):
    repo: str
    repo_id: Optional[int] = None
    status: Literal["success", "error"]
    error: Optional[str] = None
    detection_score: Optional[float] = None


class BulkScanReport(BaseModel):
    org: str
    results: List[RepoScanOutcome] = Field(default_factory=list)

    @property
    def scanned(self) -> int:
        return sum(1 for r in self.results if r.status == "success")

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == "error")

    def summary(self) -> dict:
        return {
            "org": self.org,
            "scanned": self.scanned,
            "failed": self.failed,
            "results": [r.model_dump() for r in self.results],
        }
