import unittest

from repo_inventory.entities.repo_inventory import RepoInventory
from repo_inventory.scanner.context import DetectorResult
from repo_inventory.scanner.runner import detector_name, run_detectors
from tests.fakes import build_tree


def _named(name, func):
    func.detector_name = name
    return func


def _inventory() -> RepoInventory:
    return RepoInventory(org="acme", repo_id=1, repo_name="web")


class TestRunDetectors(unittest.TestCase):
    def setUp(self):
        self.tree = build_tree(["package.json"])
        self.read = lambda path: None

    def test_patches_merge_in_order(self):
        first = _named("first", lambda ctx: DetectorResult(patch={"client": "Vue"}, score=1.0))
        second = _named("second", lambda ctx: DetectorResult(patch={"client": "React"}, score=0.5))
        inv = _inventory()

        run = run_detectors(inv, self.tree, self.read, [first, second])

        self.assertEqual(inv.client, "React")
        self.assertEqual(run.scores, [1.0, 0.5])
        self.assertEqual(run.ran, 2)

    def test_later_detectors_see_earlier_patches_in_snapshot(self):
        seen = []

        def observer(ctx):
            seen.append(ctx.current.frameworks)
            return DetectorResult.empty()

        producer = _named(
            "producer", lambda ctx: DetectorResult(patch={"frameworks": ["Next.js 14.2.0"]})
        )
        run_detectors(_inventory(), self.tree, self.read, [producer, _named("observer", observer)])

        self.assertEqual(seen, [["Next.js 14.2.0"]])

    def test_snapshot_mutation_does_not_leak(self):
        def vandal(ctx):
            ctx.current.frameworks.append("Injected")
            ctx.current.client = "Injected"
            return DetectorResult.empty()

        inv = _inventory()
        run_detectors(inv, self.tree, self.read, [_named("vandal", vandal)])

        self.assertEqual(inv.frameworks, [])
        self.assertIsNone(inv.client)

    def test_failing_detector_does_not_stop_others(self):
        def broken(ctx):
            raise RuntimeError("boom")

        ok = _named("ok", lambda ctx: DetectorResult(patch={"container": ["Docker"]}, score=0.95))
        inv = _inventory()

        with self.assertLogs("repo_inventory.scanner.runner", level="ERROR"):
            run = run_detectors(inv, self.tree, self.read, [_named("broken", broken), ok])

        self.assertEqual(run.failed, ["broken"])
        self.assertEqual(inv.container, ["Docker"])
        self.assertEqual(run.scores, [0.95])

    def test_malformed_patch_is_treated_as_failure(self):
        bad = _named("bad", lambda ctx: DetectorResult(patch={"client": ["React"]}, score=1.0))
        inv = _inventory()

        with self.assertLogs("repo_inventory.scanner.runner", level="ERROR"):
            run = run_detectors(inv, self.tree, self.read, [bad])

        self.assertEqual(run.failed, ["bad"])
        self.assertEqual(run.scores, [])
        self.assertIsNone(inv.client)

    def test_out_of_range_score_is_treated_as_failure(self):
        bad = _named("bad", lambda ctx: DetectorResult(patch={"ci_cd": ["X"]}, score=1.5))
        inv = _inventory()

        with self.assertLogs("repo_inventory.scanner.runner", level="ERROR"):
            run = run_detectors(inv, self.tree, self.read, [bad])

        self.assertEqual(run.failed, ["bad"])
        self.assertEqual(inv.ci_cd, [])

    def test_evidence_recorded_only_when_proofs_present(self):
        def with_proof(ctx):
            result = DetectorResult(patch={"ci_cd": ["GitHub Actions"]}, score=1.0)
            result.add_proof(".github/workflows/ci.yml", "name: CI")
            return result

        silent = _named("silent", lambda ctx: DetectorResult(score=0.9))
        run = run_detectors(
            _inventory(), self.tree, self.read, [_named("github_actions", with_proof), silent]
        )

        self.assertEqual(list(run.evidence), ["github_actions"])
        self.assertEqual(run.evidence["github_actions"][0].file, ".github/workflows/ci.yml")

    def test_abstaining_detector_contributes_no_score(self):
        run = run_detectors(
            _inventory(), self.tree, self.read, [_named("quiet", lambda ctx: DetectorResult.empty())]
        )
        self.assertEqual(run.scores, [])
        self.assertEqual(run.failed, [])


class TestDetectorName(unittest.TestCase):
    def test_prefers_registered_name(self):
        self.assertEqual(detector_name(_named("docker", lambda ctx: None)), "docker")

    def test_falls_back_to_function_name(self):
        def detect_something(ctx):
            return None

        self.assertEqual(detector_name(detect_something), "detect_something")


if __name__ == "__main__":
    unittest.main()
