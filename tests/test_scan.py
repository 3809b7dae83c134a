import json
import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from repo_inventory.entities.repo_inventory import (
    ARRAY_FIELDS,
    DETECTOR_SCALAR_FIELDS,
    Contributor,
    LanguageShare,
)
from repo_inventory.scanner.context import DetectorResult
from repo_inventory.scanner.detectors import ALL_DETECTORS
from repo_inventory.scanner.scan import enrich_inventory, init_inventory, scan_one_repo
from repo_inventory.services.github.exceptions import GithubApiError
from tests.fakes import FakeAdapter, InMemoryStore, make_meta

NEXT_APP = {
    "package.json": json.dumps(
        {
            "dependencies": {"next": "^14.2.0", "react": "^18.2.0"},
            "devDependencies": {"eslint": "^8"},
        }
    ),
    "package-lock.json": "{}",
    "next.config.js": "module.exports = {}",
    "vercel.json": "{}",
    ".github/workflows/ci.yml": "name: CI\n",
}


class ScanTestCase(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryStore()

    def scan(self, adapter, meta=None, detectors=ALL_DETECTORS):
        meta = meta or make_meta()
        return scan_one_repo(adapter, meta.owner_login, meta.name, meta, detectors, self.store)


class TestScanOneRepo(ScanTestCase):
    def test_next_app_inventory(self):
        adapter = FakeAdapter(
            NEXT_APP,
            languages=[LanguageShare(name="TypeScript", percent=90)],
            contributors=[Contributor(login="alice", contributions=3)],
        )
        pushed = datetime(2024, 5, 1, tzinfo=timezone.utc)

        inv = self.scan(adapter, make_meta(pushed_at=pushed))

        self.assertEqual(inv.frameworks, ["Next.js 14.2.0"])
        self.assertEqual(inv.client, "Next.js")
        self.assertEqual(inv.server, "Next.js")
        self.assertEqual(inv.hosting, "Vercel")
        self.assertEqual(inv.deploy_targets, ["Vercel"])
        self.assertEqual(inv.ci_cd, ["GitHub Actions"])
        self.assertEqual(inv.package_managers, ["npm"])
        self.assertEqual(inv.lint_format, ["ESLint"])
        self.assertIsNone(inv.db)
        self.assertEqual(inv.primary_language, "TypeScript")
        self.assertEqual(inv.contributors_count, 1)
        self.assertIsNotNone(inv.contributors_updated_at)
        self.assertEqual(inv.repo_pushed_at, pushed)
        self.assertIsNotNone(inv.last_scanned_at)
        self.assertIn("nextjs", inv.evidence)
        self.assertEqual(inv.evidence["nextjs"][0].file, "package.json")
        self.assertGreater(inv.detection_score, 0.0)
        self.assertLessEqual(inv.detection_score, 1.0)
        self.assertEqual(self.store.upserts, 1)

    def test_common_files_read_once_per_scan(self):
        adapter = FakeAdapter(NEXT_APP)
        self.scan(adapter)
        self.assertEqual(adapter.text_calls["package.json"], 1)

    def test_empty_repository(self):
        inv = self.scan(FakeAdapter())

        self.assertIsNone(inv.detection_score)
        self.assertEqual(inv.evidence, {})
        self.assertEqual(inv.frameworks, [])
        self.assertIsNotNone(inv.last_scanned_at)
        self.assertEqual(self.store.upserts, 1)

    def test_rescan_is_idempotent(self):
        adapter = FakeAdapter(NEXT_APP)
        with patch("repo_inventory.scanner.scan.utc_now", return_value=datetime(2024, 6, 1, tzinfo=timezone.utc)):
            first = self.scan(adapter)
        with patch("repo_inventory.scanner.scan.utc_now", return_value=datetime(2024, 6, 2, tzinfo=timezone.utc)):
            second = self.scan(adapter)

        self.assertEqual(first.id, second.id)
        self.assertEqual(len(self.store.docs), 1)
        self.assertEqual(first.evidence, second.evidence)
        for field in ARRAY_FIELDS:
            self.assertEqual(set(getattr(first, field)), set(getattr(second, field)), field)
            self.assertEqual(len(getattr(second, field)), len(set(getattr(second, field))), field)
        for field in DETECTOR_SCALAR_FIELDS:
            self.assertEqual(getattr(first, field), getattr(second, field), field)
        self.assertEqual(first.detection_score, second.detection_score)
        self.assertEqual(first.last_scanned_at, datetime(2024, 6, 1, tzinfo=timezone.utc))
        self.assertEqual(second.last_scanned_at, datetime(2024, 6, 2, tzinfo=timezone.utc))

    def test_arrays_accumulate_and_scalars_reset_across_scans(self):
        self.scan(FakeAdapter(NEXT_APP))

        inv = self.scan(FakeAdapter({"Dockerfile": "FROM python"}))

        # Labels from the earlier scan are kept
        self.assertIn("Next.js 14.2.0", inv.frameworks)
        self.assertEqual(inv.container, ["Docker"])
        # Scalars reflect only the latest scan
        self.assertEqual(inv.hosting, "Docker")
        self.assertIsNone(inv.client)
        self.assertNotIn("nextjs", inv.evidence)

    def test_same_repo_id_in_two_orgs_are_separate_records(self):
        adapter = FakeAdapter(NEXT_APP)
        self.scan(adapter, make_meta(org="acme", repo_id=7))
        self.scan(adapter, make_meta(org="globex", repo_id=7))

        self.assertEqual(set(self.store.docs), {("acme", 7), ("globex", 7)})

    def test_identity_refreshed_on_rescan(self):
        adapter = FakeAdapter(NEXT_APP)
        self.scan(adapter, make_meta(name="web"))
        inv = self.scan(adapter, make_meta(name="web-app", visibility="private"))

        self.assertEqual(inv.repo_name, "web-app")
        self.assertEqual(inv.visibility, "private")
        self.assertEqual(len(self.store.docs), 1)

    def test_tree_failure_propagates_without_persisting(self):
        adapter = FakeAdapter(NEXT_APP)
        adapter.tree_error = GithubApiError("GitHub API 500", status_code=500)

        with self.assertRaises(GithubApiError):
            self.scan(adapter)
        self.assertEqual(self.store.upserts, 0)

    def test_persistence_failure_propagates(self):
        self.store.fail_with = RuntimeError("mongo down")
        with self.assertRaises(RuntimeError):
            self.scan(FakeAdapter(NEXT_APP))

    def test_failing_detector_still_persists(self):
        def broken(ctx):
            raise RuntimeError("boom")

        broken.detector_name = "broken"

        def docker(ctx):
            return DetectorResult(patch={"container": ["Docker"]}, score=0.5)

        docker.detector_name = "docker"

        with self.assertLogs("repo_inventory.scanner.runner", level="ERROR"):
            inv = self.scan(FakeAdapter({"Dockerfile": "FROM x"}), detectors=[broken, docker])

        self.assertEqual(inv.container, ["Docker"])
        self.assertEqual(inv.detection_score, 0.5)
        self.assertEqual(self.store.upserts, 1)

    def test_prefetch_failure_is_absorbed(self):
        adapter = FakeAdapter(NEXT_APP)
        adapter.text_errors["vercel.json"] = RuntimeError("flaky")

        inv = self.scan(adapter)

        self.assertEqual(inv.frameworks, ["Next.js 14.2.0"])
        self.assertEqual(self.store.upserts, 1)

    def test_unreadable_file_is_fetched_at_most_twice(self):
        adapter = FakeAdapter(NEXT_APP)
        adapter.text_errors["package.json"] = GithubApiError("GitHub API 500", status_code=500)

        with self.assertLogs("repo_inventory.scanner.runner", level="ERROR"):
            inv = self.scan(adapter)

        # One prefetch attempt plus one on-demand read
        self.assertEqual(adapter.text_calls["package.json"], 2)
        self.assertEqual(inv.deploy_targets, ["Vercel"])
        self.assertEqual(self.store.upserts, 1)


class TestEnrichInventory(unittest.TestCase):
    def test_failures_keep_prior_values(self):
        adapter = FakeAdapter()
        adapter.languages_error = RuntimeError("down")
        adapter.contributors_error = RuntimeError("down")
        inv = init_inventory(make_meta(primary_language="Go"))
        inv.contributors_count = 4

        enrich_inventory(inv, adapter, "acme", "web")

        self.assertEqual(inv.primary_language, "Go")
        self.assertEqual(inv.contributors_count, 4)
        self.assertIsNone(inv.contributors_updated_at)

    def test_empty_languages_keep_primary_language(self):
        inv = init_inventory(make_meta(primary_language="Go"))
        enrich_inventory(inv, FakeAdapter(), "acme", "web")

        self.assertEqual(inv.languages, [])
        self.assertEqual(inv.primary_language, "Go")
        self.assertEqual(inv.contributors, [])
        self.assertEqual(inv.contributors_count, 0)

    def test_threshold_forwarded(self):
        adapter = FakeAdapter(
            languages=[LanguageShare(name="Python", percent=60), LanguageShare(name="Shell", percent=15)]
        )
        inv = init_inventory(make_meta())
        enrich_inventory(inv, adapter, "acme", "web", threshold_percent=10)

        self.assertEqual([l.name for l in inv.languages], ["Python", "Shell"])
        self.assertEqual(inv.primary_language, "Python")


if __name__ == "__main__":
    unittest.main()
