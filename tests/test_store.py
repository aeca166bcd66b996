"""
Unit tests for the receipt store.
"""
import json
import tempfile
import unittest
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from extractor.models import ExtractionResult
from store.receipt_store import Receipt, ReceiptStore, build_receipt, generate_file_name


def make_receipt(receipt_id: str = "r1", amount: float = 12.1) -> Receipt:
    return Receipt(
        id=receipt_id,
        file_name=f"Receipt_{receipt_id}.pdf",
        date=datetime(2024, 3, 15, 10, 30),
        amount=amount,
    )


class TestReceiptRecord(unittest.TestCase):
    """Tests for Receipt serialization and construction."""

    def test_to_dict_keys(self):
        """Test the JSON record layout."""
        record = make_receipt().to_dict()
        self.assertEqual(record, {
            'id': 'r1',
            'fileName': 'Receipt_r1.pdf',
            'date': '2024-03-15T10:30:00',
            'amount': 12.1,
        })

    def test_from_dict_round_trip(self):
        """Test reading a record back."""
        receipt = make_receipt()
        self.assertEqual(Receipt.from_dict(receipt.to_dict()), receipt)

    def test_from_dict_invalid(self):
        """Test records without a date are rejected."""
        with self.assertRaises(ValueError):
            Receipt.from_dict({'id': 'x', 'fileName': 'a.pdf', 'date': 'soon'})

    def test_generate_file_name(self):
        """Test document naming."""
        ts = datetime.fromtimestamp(1718000000)
        self.assertEqual(generate_file_name(ts), "Receipt_1718000000.pdf")
        self.assertEqual(generate_file_name(ts, ".txt"), "Receipt_1718000000.txt")

    def test_build_receipt_uses_extracted_fields(self):
        """Extracted date and amount go into the record."""
        result = ExtractionResult(date=date(2024, 3, 15), amount=Decimal("12.10"), currency="EUR")
        receipt = build_receipt(result, "Receipt_1.pdf", scanned_at=datetime(2024, 4, 1, 9, 0))
        self.assertEqual(receipt.date, datetime(2024, 3, 15))
        self.assertEqual(receipt.amount, 12.1)
        self.assertEqual(receipt.file_name, "Receipt_1.pdf")
        self.assertTrue(receipt.id)

    def test_build_receipt_defaults(self):
        """Missing fields fall back to scan time and 0.0."""
        scanned_at = datetime(2024, 4, 1, 9, 0)
        receipt = build_receipt(ExtractionResult(), "Receipt_1.pdf", scanned_at=scanned_at)
        self.assertEqual(receipt.date, scanned_at)
        self.assertEqual(receipt.amount, 0.0)

    def test_build_receipt_fresh_ids(self):
        """Every record gets its own id."""
        first = build_receipt(ExtractionResult(), "a.pdf")
        second = build_receipt(ExtractionResult(), "b.pdf")
        self.assertNotEqual(first.id, second.id)


class TestReceiptStore(unittest.TestCase):
    """Tests for persistence."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.directory = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_empty_store(self):
        """A new directory starts empty."""
        store = ReceiptStore(self.directory)
        self.assertEqual(store.get_all(), [])
        self.assertFalse(store.store_path.exists())

    def test_add_persists(self):
        """Added receipts survive reopening the store."""
        store = ReceiptStore(self.directory)
        store.add(make_receipt("r1"))
        store.add(make_receipt("r2", amount=3.5))

        reopened = ReceiptStore(self.directory)
        self.assertEqual([r.id for r in reopened.get_all()], ["r1", "r2"])
        self.assertEqual(reopened.get("r2").amount, 3.5)

        with open(self.directory / "receipts.json", encoding="utf-8") as f:
            records = json.load(f)
        self.assertEqual(records[0]['fileName'], "Receipt_r1.pdf")

    def test_no_temp_files_left(self):
        """Atomic writes leave only receipts.json behind."""
        store = ReceiptStore(self.directory)
        store.add(make_receipt())
        self.assertEqual(os.listdir(self.directory), ["receipts.json"])

    def test_get_all_returns_copy(self):
        """Mutating the returned list does not touch the store."""
        store = ReceiptStore(self.directory)
        store.add(make_receipt())
        store.get_all().clear()
        self.assertEqual(len(store.get_all()), 1)

    def test_update(self):
        """Test updating by id."""
        store = ReceiptStore(self.directory)
        store.add(make_receipt("r1"))

        self.assertTrue(store.update(make_receipt("r1", amount=99.0)))
        self.assertFalse(store.update(make_receipt("missing")))
        self.assertEqual(ReceiptStore(self.directory).get("r1").amount, 99.0)

    def test_delete(self):
        """Test deleting by id."""
        store = ReceiptStore(self.directory)
        store.add(make_receipt("r1"))
        store.add(make_receipt("r2"))

        self.assertTrue(store.delete("r1"))
        self.assertFalse(store.delete("r1"))
        self.assertEqual([r.id for r in ReceiptStore(self.directory).get_all()], ["r2"])

    def test_delete_removes_document(self):
        """remove_file also deletes the scanned document."""
        store = ReceiptStore(self.directory)
        receipt = make_receipt()
        store.file_path(receipt).write_bytes(b"%PDF-1.4")
        store.add(receipt)

        store.delete(receipt.id, remove_file=True)
        self.assertFalse(store.file_path(receipt).exists())

    def test_delete_keeps_files_outside_store(self):
        """A fileName pointing outside the store directory is left alone."""
        store_dir = self.directory / "store"
        outside = self.directory / "outside.pdf"
        outside.write_bytes(b"%PDF-1.4")

        store = ReceiptStore(store_dir)
        receipt = make_receipt()
        receipt.file_name = "../outside.pdf"
        store.add(receipt)

        self.assertTrue(store.delete(receipt.id, remove_file=True))
        self.assertTrue(outside.exists())
        self.assertEqual(store.get_all(), [])

    def test_delete_missing_document(self):
        """A document that is already gone is not an error."""
        store = ReceiptStore(self.directory)
        store.add(make_receipt())
        self.assertTrue(store.delete("r1", remove_file=True))

    def test_corrupt_file_starts_fresh(self):
        """An unreadable store is logged and treated as empty."""
        (self.directory / "receipts.json").write_text("{not json", encoding="utf-8")
        with self.assertLogs('store.receipt_store', level='WARNING'):
            store = ReceiptStore(self.directory)
        self.assertEqual(store.get_all(), [])

    def test_wrong_shape_starts_fresh(self):
        """A JSON object instead of an array is treated as empty."""
        (self.directory / "receipts.json").write_text('{"id": 1}', encoding="utf-8")
        with self.assertLogs('store.receipt_store', level='WARNING'):
            store = ReceiptStore(self.directory)
        self.assertEqual(store.get_all(), [])

    def test_import_document(self):
        """Documents are copied under generated, unique names."""
        source = self.directory / "scan.pdf"
        source.write_bytes(b"%PDF-1.4 test")
        store = ReceiptStore(self.directory / "store")
        ts = datetime.fromtimestamp(1718000000)

        first = store.import_document(source, ts)
        second = store.import_document(source, ts)

        self.assertEqual(first, "Receipt_1718000000.pdf")
        self.assertEqual(second, "Receipt_1718000001.pdf")
        self.assertEqual((store.directory / first).read_bytes(), b"%PDF-1.4 test")


if __name__ == '__main__':
    unittest.main()
