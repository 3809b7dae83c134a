import unittest
from concurrent.futures import ThreadPoolExecutor

from repo_inventory.scanner.batch_reader import (
    COMMON_FILES,
    batch_read_files,
    candidate_paths,
    create_cached_reader,
)
from tests.fakes import FakeAdapter, build_tree


class TestCandidatePaths(unittest.TestCase):
    def test_only_present_files_and_workflows(self):
        tree = build_tree(
            [
                "package.json",
                "frontend/package.json",
                "src/index.ts",
                ".github/workflows/ci.yml",
                ".github/workflows/release.yaml",
                ".github/workflows/README.md",
            ]
        )
        paths = candidate_paths(tree)

        self.assertIn("package.json", paths)
        self.assertIn("frontend/package.json", paths)
        self.assertIn(".github/workflows/ci.yml", paths)
        self.assertIn(".github/workflows/release.yaml", paths)
        self.assertNotIn("src/index.ts", paths)
        self.assertNotIn(".github/workflows/README.md", paths)
        self.assertNotIn("requirements.txt", paths)

    def test_directories_are_not_candidates(self):
        tree = build_tree([], dirs=["api"])
        self.assertEqual(candidate_paths(tree, ["api"]), [])

    def test_common_files_cover_monorepo_manifests(self):
        self.assertIn("backend/requirements.txt", COMMON_FILES)
        self.assertIn("apps/web/package.json", COMMON_FILES)


class TestBatchReadFiles(unittest.TestCase):
    def test_prefetches_each_present_file_once(self):
        adapter = FakeAdapter({"package.json": "{}", "Dockerfile": "FROM node", "README.md": "hi"})
        tree = adapter.get_repo_tree("acme", "web", "main")

        cache = batch_read_files(adapter, "acme", "web", tree)

        self.assertEqual(cache, {"package.json": "{}", "Dockerfile": "FROM node"})
        self.assertEqual(adapter.text_calls["package.json"], 1)
        self.assertEqual(adapter.text_calls["README.md"], 0)

    def test_failed_fetch_is_left_uncached(self):
        adapter = FakeAdapter({"package.json": "{}", "Dockerfile": "FROM node"})
        adapter.text_errors["Dockerfile"] = RuntimeError("boom")
        tree = adapter.get_repo_tree("acme", "web", "main")

        cache = batch_read_files(adapter, "acme", "web", tree)

        self.assertEqual(cache, {"package.json": "{}"})

    def test_empty_tree(self):
        adapter = FakeAdapter()
        self.assertEqual(batch_read_files(adapter, "acme", "web", []), {})


class TestCachedReader(unittest.TestCase):
    def test_cache_hit_does_not_fetch(self):
        adapter = FakeAdapter({"package.json": "live"})
        read = create_cached_reader({"package.json": "cached"}, adapter, "acme", "web")

        self.assertEqual(read("package.json"), "cached")
        self.assertEqual(adapter.text_calls["package.json"], 0)
        self.assertEqual(read.fetch_count, 0)

    def test_cached_absence_is_served(self):
        adapter = FakeAdapter({"package.json": "live"})
        read = create_cached_reader({"package.json": None}, adapter, "acme", "web")

        self.assertIsNone(read("package.json"))
        self.assertEqual(adapter.text_calls["package.json"], 0)

    def test_miss_fetches_once_and_memoizes_absence(self):
        adapter = FakeAdapter()
        read = create_cached_reader({}, adapter, "acme", "web")

        self.assertIsNone(read("firestore.rules"))
        self.assertIsNone(read("firestore.rules"))
        self.assertEqual(adapter.text_calls["firestore.rules"], 1)
        self.assertEqual(read.fetch_count, 1)

    def test_failed_fetch_is_not_repeated(self):
        adapter = FakeAdapter({"x.tf": "resource"})
        adapter.text_errors["x.tf"] = RuntimeError("boom")
        read = create_cached_reader({}, adapter, "acme", "web")

        with self.assertRaises(RuntimeError):
            read("x.tf")
        del adapter.text_errors["x.tf"]
        with self.assertRaises(RuntimeError):
            read("x.tf")
        self.assertEqual(adapter.text_calls["x.tf"], 1)

    def test_path_missing_after_failed_prefetch_is_read_on_demand(self):
        adapter = FakeAdapter({"package.json": "{}"})
        adapter.text_errors["package.json"] = RuntimeError("boom")
        tree = adapter.get_repo_tree("acme", "web", "main")
        cache = batch_read_files(adapter, "acme", "web", tree)
        del adapter.text_errors["package.json"]
        read = create_cached_reader(cache, adapter, "acme", "web")

        self.assertEqual(read("package.json"), "{}")
        self.assertEqual(read("package.json"), "{}")
        self.assertEqual(adapter.text_calls["package.json"], 2)

    def test_concurrent_reads_share_one_fetch(self):
        adapter = FakeAdapter({"main.tf": "provider"})
        read = create_cached_reader({}, adapter, "acme", "web")

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(read, ["main.tf"] * 32))

        self.assertEqual(set(results), {"provider"})
        self.assertEqual(adapter.text_calls["main.tf"], 1)


if __name__ == "__main__":
    unittest.main()
