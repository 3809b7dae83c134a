import copy
import threading
import unittest
from unittest.mock import MagicMock

from bson import ObjectId

from repo_inventory.entities.repo_inventory import RepoInventory
from repo_inventory.repositories.repo_inventory import RepoInventoryRepository
from repo_inventory.scanner.detectors import ALL_DETECTORS
from repo_inventory.scanner.scan import scan_one_repo
from tests.fakes import FakeAdapter, make_meta


class UpsertingCollection:
    """
    Minimal collection honouring the operations the inventory repository uses.

    ``find_one`` waits on ``barrier`` when one is set, so concurrent callers
    all complete their lookup before any of them writes.
    """

    def __init__(self, barrier=None):
        self.docs = []
        self.barrier = barrier
        self._lock = threading.Lock()

    def create_index(self, keys, **kwargs):
        return kwargs.get("name")

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(k) == v for k, v in query.items())

    def find_one(self, query):
        with self._lock:
            found = next((d for d in self.docs if self._matches(d, query)), None)
        if self.barrier is not None:
            self.barrier.wait(timeout=5)
        return copy.deepcopy(found)

    def find_one_and_replace(self, query, replacement, projection=None, upsert=False, return_document=None):
        with self._lock:
            for i, doc in enumerate(self.docs):
                if self._matches(doc, query):
                    self.docs[i] = {**replacement, "_id": doc["_id"]}
                    return {"_id": doc["_id"]}
            if not upsert:
                return None
            doc = {**replacement, "_id": ObjectId()}
            self.docs.append(doc)
            return {"_id": doc["_id"]}

    def replace_one(self, query, replacement):
        with self._lock:
            for i, doc in enumerate(self.docs):
                if self._matches(doc, query):
                    self.docs[i] = {**replacement, "_id": doc["_id"]}


class TestRepoInventoryRepository(unittest.TestCase):
    def setUp(self):
        self.collection = MagicMock()
        self.db = MagicMock()
        self.db.__getitem__.return_value = self.collection
        self.repo = RepoInventoryRepository(self.db, collection_name="inventory_test")

    def test_uses_configured_collection(self):
        self.db.__getitem__.assert_called_with("inventory_test")

    def test_constructor_creates_unique_org_repo_index(self):
        args, kwargs = self.collection.create_index.call_args
        self.assertEqual(args[0], [("org", 1), ("repo_id", 1)])
        self.assertTrue(kwargs["unique"])
        self.assertEqual(kwargs["name"], "repo_org_id_unique")

    def test_find_inventory_queries_by_org_and_repo_id(self):
        oid = ObjectId()
        self.collection.find_one.return_value = {
            "_id": oid,
            "org": "acme",
            "repo_id": 42,
            "repo_name": "web",
            "frameworks": ["Next.js 14.2.0"],
            "evidence": {"nextjs": [{"file": "package.json", "snippet": '"next": "^14.2.0"'}]},
        }

        inv = self.repo.find_inventory("acme", 42)

        self.collection.find_one.assert_called_once_with({"org": "acme", "repo_id": 42})
        self.assertEqual(inv.id, oid)
        self.assertEqual(inv.frameworks, ["Next.js 14.2.0"])
        self.assertEqual(inv.evidence["nextjs"][0].file, "package.json")

    def test_find_inventory_missing(self):
        self.collection.find_one.return_value = None
        self.assertIsNone(self.repo.find_inventory("acme", 42))

    def test_new_record_is_upserted_on_org_and_repo_id(self):
        oid = ObjectId()
        self.collection.find_one_and_replace.return_value = {"_id": oid}
        inv = RepoInventory(org="acme", repo_id=42, repo_name="web")

        self.repo.upsert_inventory(inv)

        args, kwargs = self.collection.find_one_and_replace.call_args
        query, doc = args
        self.assertEqual(query, {"org": "acme", "repo_id": 42})
        self.assertNotIn("_id", doc)
        self.assertEqual(doc["repo_name"], "web")
        self.assertTrue(kwargs["upsert"])
        self.assertEqual(inv.id, oid)
        self.collection.replace_one.assert_not_called()

    def test_upsert_replaces_existing_record(self):
        oid = ObjectId()
        inv = RepoInventory(_id=oid, org="acme", repo_id=42, repo_name="web", client="React")

        self.repo.upsert_inventory(inv)

        query, doc = self.collection.replace_one.call_args.args
        self.assertEqual(query, {"_id": oid})
        self.assertEqual(doc["client"], "React")
        self.collection.find_one_and_replace.assert_not_called()

    def test_list_repo_ids(self):
        self.collection.find.return_value = [{"repo_id": 1}, {"repo_id": 2}]

        self.assertEqual(self.repo.list_repo_ids("acme"), {1, 2})
        self.collection.find.assert_called_once_with({"org": "acme"}, {"repo_id": 1, "_id": 0})


class TestConcurrentScans(unittest.TestCase):
    def test_interleaved_first_scans_share_one_record(self):
        collection = UpsertingCollection(barrier=threading.Barrier(2))
        db = MagicMock()
        db.__getitem__.return_value = collection
        store = RepoInventoryRepository(db)
        meta = make_meta(name="web", repo_id=1)
        results, errors = [], []

        def run():
            try:
                adapter = FakeAdapter({"Dockerfile": "FROM python"})
                results.append(
                    scan_one_repo(adapter, meta.owner_login, meta.name, meta, ALL_DETECTORS, store)
                )
            except Exception as e:  # surfaced by the assertion below
                errors.append(e)

        threads = [threading.Thread(target=run) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        self.assertEqual(errors, [])
        records = [d for d in collection.docs if d["org"] == "acme" and d["repo_id"] == 1]
        self.assertEqual(len(records), 1)
        self.assertEqual({r.id for r in results}, {records[0]["_id"]})


if __name__ == "__main__":
    unittest.main()
