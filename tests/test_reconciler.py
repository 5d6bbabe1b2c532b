# tests/test_reconciler.py

"""Tests for CatalogReconciler merge-vs-create and persistence."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from src.models.errors import StorageUnavailable
from src.models.product import IncomingListing, MatchResult
from src.services.reconciler import CatalogReconciler, ReconcileReport
from src.storage.catalog_db import CatalogDB


def _listing(
    name: str, vendor_id: int = 1, price: float = 10.0,
) -> IncomingListing:
    """Create a minimal IncomingListing."""
    return IncomingListing(
        listed_name=name,
        vendor_id=vendor_id,
        price=price,
        image="https://img.example/p.png",
        link=f"https://shop.example/{vendor_id}",
    )


class TestReconcile(unittest.IsolatedAsyncioTestCase):
    """CatalogReconciler.reconcile against a real temp database."""

    def setUp(self) -> None:
        """Create a fresh temp DB for each test."""
        tmp_dir = tempfile.mkdtemp()
        self.db = CatalogDB(db_path=Path(tmp_dir) / "catalog.db")

    async def test_returns_report(self) -> None:
        """reconcile() returns a ReconcileReport."""
        report = await CatalogReconciler(self.db).reconcile([])
        self.assertIsInstance(report, ReconcileReport)
        self.assertEqual(report.results, [])

    async def test_empty_catalog_creates_products(self) -> None:
        """Every listing creates a product when the catalog is empty."""
        report = await CatalogReconciler(self.db).reconcile([
            _listing("Whey Protein", vendor_id=1, price=49.0),
            _listing("Creatine", vendor_id=2, price=25.0),
        ])
        self.assertEqual(report.created_count, 2)
        self.assertEqual(
            [p.name for p in self.db.get_canonical_products()],
            ["whey protein", "creatine"],
        )
        links = self.db.get_all_listings()
        self.assertEqual(len(links), 2)
        self.assertEqual(links[0].listed_name, "whey protein")
        self.assertEqual(links[0].match_score, 0.0)
        self.assertEqual(links[1].price, 25.0)

    async def test_merges_into_existing_product(self) -> None:
        """A strong match reuses the catalog product."""
        pid = self.db.insert_canonical_product("whey protein")
        report = await CatalogReconciler(self.db).reconcile(
            [_listing("Whey Protein", vendor_id=3, price=45.0)]
        )
        [result] = report.results
        self.assertFalse(result.created)
        self.assertEqual(result.product_id, pid)
        self.assertEqual(result.match_score, 1.0)
        self.assertEqual(len(self.db.get_canonical_products()), 1)

        link = self.db.get_listing(pid, 3)
        assert link is not None
        self.assertEqual(link.price, 45.0)
        self.assertEqual(link.match_score, 1.0)
        self.assertEqual(link.link, "https://shop.example/3")

    async def test_below_threshold_records_best_score(self) -> None:
        """A weak match creates a product but keeps the best score."""
        self.db.insert_canonical_product("energy drink")
        report = await CatalogReconciler(self.db).reconcile(
            [_listing("Pre-Workout Energy Blast", vendor_id=4)]
        )
        [result] = report.results
        self.assertTrue(result.created)
        self.assertEqual(result.normalized_name, "energy blast")
        self.assertEqual(result.matched_product_id, 1)
        self.assertEqual(result.match_score, 0.5)
        self.assertEqual(result.product_id, 2)

        link = self.db.get_listing(2, 4)
        assert link is not None
        self.assertEqual(link.match_score, 0.5)
        self.assertEqual(link.listed_name, "energy blast")

    async def test_score_equal_to_threshold_creates(self) -> None:
        """A score of exactly 0.70 does not merge at threshold 0.70."""
        self.db.insert_canonical_product("abcdefghijk")
        report = await CatalogReconciler(
            self.db, threshold=0.70
        ).reconcile([_listing("abcdefghxyz")])
        [result] = report.results
        self.assertEqual(result.match_score, 0.7)
        self.assertTrue(result.created)
        self.assertEqual(len(self.db.get_canonical_products()), 2)

    async def test_lower_threshold_merges(self) -> None:
        """The same pair merges once the threshold is lowered."""
        self.db.insert_canonical_product("abcdefghijk")
        report = await CatalogReconciler(
            self.db, threshold=0.69
        ).reconcile([_listing("abcdefghxyz")])
        [result] = report.results
        self.assertFalse(result.created)
        self.assertEqual(result.product_id, 1)

    async def test_threshold_defaults_to_settings(self) -> None:
        """Without an explicit threshold the configured one is used."""
        self.assertEqual(CatalogReconciler(self.db).threshold, 0.70)

    async def test_invalid_listings_skipped(self) -> None:
        """Malformed listings are reported and the rest still persist."""
        report = await CatalogReconciler(self.db).reconcile([
            _listing("Creatine"),
            _listing("   "),
            _listing("BCAA", price=0),
        ])
        self.assertEqual(len(report.results), 1)
        self.assertEqual([s.index for s in report.skipped], [1, 2])
        self.assertEqual(len(self.db.get_all_listings()), 1)

    async def test_catalog_snapshot_taken_once(self) -> None:
        """New products created mid-batch are not matched in that batch."""
        report = await CatalogReconciler(self.db).reconcile([
            _listing("Creatine", vendor_id=1),
            _listing("Creatine", vendor_id=2),
        ])
        self.assertEqual(report.created_count, 2)
        self.assertEqual(len(self.db.get_canonical_products()), 2)

    async def test_order_preserved(self) -> None:
        """Results keep the order of the input listings."""
        self.db.insert_canonical_product("creatine")
        names = ["BCAA", "Creatine", "Whey Protein"]
        report = await CatalogReconciler(self.db).reconcile(
            [_listing(n, vendor_id=i) for i, n in enumerate(names)]
        )
        self.assertEqual(
            [r.vendor_id for r in report.results], [0, 1, 2]
        )
        self.assertEqual(
            [r.created for r in report.results], [True, False, True]
        )


class TestReconcileFailures(unittest.IsolatedAsyncioTestCase):
    """Failure propagation with a mocked store."""

    def _mock_db(self) -> MagicMock:
        db = MagicMock(spec=CatalogDB)
        db.get_canonical_products.return_value = []
        db.insert_canonical_product.side_effect = [1, 2, 3]
        db.insert_listing_link.return_value = 1
        return db

    async def test_catalog_load_failure_aborts(self) -> None:
        """No catalog means no matching and no writes."""
        db = self._mock_db()
        db.get_canonical_products.side_effect = StorageUnavailable("down")
        with self.assertRaises(StorageUnavailable):
            await CatalogReconciler(db).reconcile([_listing("Creatine")])
        db.insert_canonical_product.assert_not_called()
        db.insert_listing_link.assert_not_called()

    async def test_persistence_failure_stops_batch(self) -> None:
        """The first write error aborts the remaining listings."""
        db = self._mock_db()
        db.insert_listing_link.side_effect = [
            1, StorageUnavailable("database is locked"), 3,
        ]
        with self.assertRaises(StorageUnavailable):
            await CatalogReconciler(db).reconcile([
                _listing("Creatine"),
                _listing("Whey Protein"),
                _listing("BCAA"),
            ])
        self.assertEqual(db.insert_listing_link.call_count, 2)
        self.assertEqual(db.insert_canonical_product.call_count, 2)

    async def test_link_written_for_merge_without_insert(self) -> None:
        """Merging writes exactly one link and no product row."""
        db = self._mock_db()
        db.get_canonical_products.return_value = []
        reconciler = CatalogReconciler(db)
        match = MatchResult(
            listed_name="Creatine",
            normalized_name="creatine",
            vendor_id=5,
            price=25.0,
            matched_product_id=9,
            match_score=0.95,
        )
        self.assertTrue(reconciler.should_merge(match))
        reconciler._persist(match)
        db.insert_canonical_product.assert_not_called()
        [call] = db.insert_listing_link.call_args_list
        link = call.args[0]
        self.assertEqual(link.product_id, 9)
        self.assertEqual(link.match_score, 0.95)
        self.assertEqual(link.listed_name, "creatine")


if __name__ == "__main__":
    unittest.main()
