"""
Batch file cache for one repository scan.

Detectors read the same handful of configuration files over and over
(package.json alone is consulted by most of them). The batch reader fetches
the known candidates that exist in the tree up front, in parallel, and then
serves every detector read from a scan-scoped cache that also remembers
"file absent" results.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional, Tuple

from repo_inventory.dtos.scan import TreeEntry
from repo_inventory.scanner.context import SourceAdapter

logger = logging.getLogger(__name__)

WORKFLOWS_DIR = ".github/workflows/"

# Configuration files detectors frequently check
ROOT_FILES = [
    "package.json",
    "requirements.txt",
    "Pipfile",
    "pyproject.toml",
    ".env",
    ".env.example",
    "next.config.js",
    "next.config.mjs",
    "next.config.ts",
    "nuxt.config.js",
    "nuxt.config.ts",
    "vercel.json",
    "firebase.json",
    "Dockerfile",
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
    "terraform.tf",
    "main.tf",
    "cloudbuild.yaml",
]

# Common monorepo locations for manifests and env files
MONOREPO_DIRS = [
    "frontend",
    "backend",
    "client",
    "server",
    "web",
    "api",
    "apps/web",
    "apps/api",
]

MONOREPO_FILES = [
    "package.json",
    "requirements.txt",
    "Pipfile",
    "pyproject.toml",
    ".env",
    ".env.example",
]

COMMON_FILES: List[str] = ROOT_FILES + [
    f"{directory}/{name}" for directory in MONOREPO_DIRS for name in MONOREPO_FILES
]


def candidate_paths(
    tree: Iterable[TreeEntry], candidates: Iterable[str] = COMMON_FILES
) -> List[str]:
    """Candidates that exist as files in the tree, plus CI workflow files."""
    files = {entry.path for entry in tree if entry.is_file}
    selected = [path for path in candidates if path in files]
    selected.extend(
        sorted(
            path
            for path in files
            if path.startswith(WORKFLOWS_DIR) and path.endswith((".yml", ".yaml"))
        )
    )
    # dict.fromkeys keeps order while dropping duplicates
    return list(dict.fromkeys(selected))


def batch_read_files(
    adapter: SourceAdapter,
    owner: str,
    repo: str,
    tree: List[TreeEntry],
    candidates: Iterable[str] = COMMON_FILES,
    max_workers: int = 8,
) -> Dict[str, Optional[str]]:
    """
    Fetch every candidate present in the tree concurrently.

    Returns a path -> content map. A fetch that raises is logged and leaves
    its path out of the map, so the cached reader will retry it on demand.
    """
    paths = candidate_paths(tree, candidates)
    cache: Dict[str, Optional[str]] = {}
    if not paths:
        return cache

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(paths)))) as executor:
        future_to_path = {
            executor.submit(adapter.get_text, owner, repo, path): path for path in paths
        }
        for future in as_completed(future_to_path):
            path = future_to_path[future]
            try:
                cache[path] = future.result()
            except Exception as e:
                logger.warning(f"Prefetch of {owner}/{repo}:{path} failed: {e}")

    logger.debug(f"Prefetched {len(cache)}/{len(paths)} files for {owner}/{repo}")
    return cache


class CachedReader:
    """
    Scan-scoped read function backed by the batch cache.

    A hit (including a cached None for a missing file) returns immediately.
    A miss fetches once and memoizes the outcome for the rest of the scan;
    a fetch that raises is remembered too and later reads re-raise it.
    Concurrent readers of the same path share a single fetch.
    """

    def __init__(
        self,
        cache: Dict[str, Optional[str]],
        adapter: SourceAdapter,
        owner: str,
        repo: str,
    ):
        self._cache = cache
        self._adapter = adapter
        self._owner = owner
        self._repo = repo
        self._failed: Dict[str, Exception] = {}
        self._guard = threading.Lock()
        self._path_locks: Dict[str, threading.Lock] = {}
        self.fetch_count = 0

    def _lock_for(self, path: str) -> threading.Lock:
        with self._guard:
            return self._path_locks.setdefault(path, threading.Lock())

    def _lookup(self, path: str) -> Tuple[bool, Optional[str]]:
        if path in self._cache:
            return True, self._cache[path]
        error = self._failed.get(path)
        if error is not None:
            raise error
        return False, None

    def __call__(self, path: str) -> Optional[str]:
        hit, content = self._lookup(path)
        if hit:
            return content

        with self._lock_for(path):
            hit, content = self._lookup(path)
            if hit:
                return content

            with self._guard:
                self.fetch_count += 1
            try:
                content = self._adapter.get_text(self._owner, self._repo, path)
            except Exception as e:
                self._failed[path] = e
                logger.warning(f"Read of {path} failed, skipping it for this scan: {e}")
                raise
            self._cache[path] = content
            return content


def create_cached_reader(
    cache: Dict[str, Optional[str]], adapter: SourceAdapter, owner: str, repo: str
) -> CachedReader:
    return CachedReader(cache, adapter, owner, repo)
