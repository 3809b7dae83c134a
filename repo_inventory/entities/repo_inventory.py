"""
RepoInventory Entity - Technology inventory for one repository.

One document per (org, repo_id). Created on the first scan of a repository
and rewritten in full by every later scan.

Collection: repo_inventory
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .base import BaseEntity

# Classification fields that hold a set of labels and only grow across scans
ARRAY_FIELDS = (
    "frameworks",
    "build_tools",
    "package_managers",
    "container",
    "ci_cd",
    "deploy_targets",
    "infra_as_code",
    "databases",
    "messaging",
    "testing",
    "lint_format",
)

# Classification fields that hold one dominant value, resolved by detectors
DETECTOR_SCALAR_FIELDS = (
    "client",
    "server",
    "db",
    "storage",
    "hosting",
    "auth",
    "ai",
)


class Proof(BaseModel):
    """A (file path, text snippet) pair justifying a detector's conclusion."""

    file: str
    snippet: str


class LanguageShare(BaseModel):
    name: str
    percent: int


class Contributor(BaseModel):
    login: str
    avatar_url: str = ""
    profile_url: str = ""
    contributions: int = 0


class RepoInventory(BaseEntity):
    """
    Technology inventory for a single repository.

    Scalar fields (client, server, ...) reflect only the latest scan.
    Array fields (frameworks, build_tools, ...) are the union of everything
    detected across all scans.
    """

    class Config:
        collection = "repo_inventory"
        populate_by_name = True
        arbitrary_types_allowed = True

    # Identity
    org: str
    repo_id: int = Field(..., description="GitHub's numeric repository id")
    repo_name: str
    default_branch: str = "main"
    visibility: str = "public"
    url: str = ""

    # Scalar classification
    primary_language: Optional[str] = None
    client: Optional[str] = None
    server: Optional[str] = None
    db: Optional[str] = None
    storage: Optional[str] = None
    hosting: Optional[str] = None
    auth: Optional[str] = None
    ai: Optional[str] = None

    # Array classification
    frameworks: List[str] = Field(default_factory=list)
    build_tools: List[str] = Field(default_factory=list)
    package_managers: List[str] = Field(default_factory=list)
    container: List[str] = Field(default_factory=list)
    ci_cd: List[str] = Field(default_factory=list)
    deploy_targets: List[str] = Field(default_factory=list)
    infra_as_code: List[str] = Field(default_factory=list)
    databases: List[str] = Field(default_factory=list)
    messaging: List[str] = Field(default_factory=list)
    testing: List[str] = Field(default_factory=list)
    lint_format: List[str] = Field(default_factory=list)

    # Scoring / provenance
    last_scanned_at: Optional[datetime] = None
    detection_score: Optional[float] = None
    evidence: Dict[str, List[Proof]] = Field(default_factory=dict)

    # GitHub repository metadata
    repo_updated_at: Optional[datetime] = None
    repo_pushed_at: Optional[datetime] = None

    # Enrichment
    languages: Optional[List[LanguageShare]] = None
    contributors: Optional[List[Contributor]] = None
    contributors_count: int = 0
    contributors_updated_at: Optional[datetime] = None
