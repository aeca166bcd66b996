"""
Persistence for scanned receipts.

Receipts live in a single JSON array (receipts.json) next to the scanned
documents. Every change is written immediately and atomically.
"""
import json
import logging
import os
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Union

from config import RECEIPT_FILE_PREFIX, RECEIPT_FILE_SUFFIX, STORE_FILENAME, get_store_dir
from extractor.models import ExtractionResult
from normalizer.date_parser import parse_iso_datetime

logger = logging.getLogger(__name__)


@dataclass
class Receipt:
    """
    A stored receipt: the scanned document plus its date and total.
    """
    id: str
    file_name: str
    date: datetime
    amount: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert receipt to its JSON record."""
        return {
            'id': self.id,
            'fileName': self.file_name,
            'date': self.date.isoformat(),
            'amount': self.amount,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Receipt':
        """
        Create receipt from a JSON record.

        Raises:
            ValueError: If the record has no id, file name or valid date
        """
        receipt_id = data.get('id')
        file_name = data.get('fileName')
        date = parse_iso_datetime(data.get('date'))
        if not receipt_id or not file_name or date is None:
            raise ValueError(f"Invalid receipt record: {data!r}")
        return cls(
            id=str(receipt_id),
            file_name=str(file_name),
            date=date,
            amount=float(data.get('amount') or 0.0),
        )


def generate_file_name(
    timestamp: Optional[datetime] = None,
    suffix: str = RECEIPT_FILE_SUFFIX,
) -> str:
    """Document name for a new scan, e.g. "Receipt_1718000000.pdf"."""
    timestamp = timestamp or datetime.now()
    return f"{RECEIPT_FILE_PREFIX}{int(timestamp.timestamp())}{suffix}"


def build_receipt(
    result: ExtractionResult,
    file_name: str,
    scanned_at: Optional[datetime] = None,
) -> Receipt:
    """
    Turn an extraction result into a new store record.

    Missing fields get their defaults here: the scan time for the date and
    0.0 for the amount.

    Args:
        result: Fields extracted from the receipt text
        file_name: Name of the scanned document in the store directory
        scanned_at: When the receipt was scanned (default: now)

    Returns:
        A Receipt with a fresh id
    """
    scanned_at = scanned_at or datetime.now()

    if result.date is not None:
        date = datetime.combine(result.date, time.min)
    else:
        date = scanned_at

    amount = float(result.amount) if result.amount is not None else 0.0

    return Receipt(
        id=str(uuid.uuid4()),
        file_name=file_name,
        date=date,
        amount=amount,
    )


class ReceiptStore:
    """
    JSON-backed list of receipts.

    Usage::

        store = ReceiptStore("/path/to/receipts")
        store.add(receipt)
        for receipt in store.get_all():
            ...
    """

    def __init__(self, directory: Union[str, Path, None] = None):
        """
        Open the store, loading any receipts already on disk.

        Args:
            directory: Folder for receipts.json and documents
                       (default: the configured store directory)
        """
        self.directory = Path(directory) if directory is not None else get_store_dir()
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        self._receipts: List[Receipt] = []
        self._load()

    @property
    def store_path(self) -> Path:
        """Path of the JSON file."""
        return self.directory / STORE_FILENAME

    def file_path(self, receipt: Receipt) -> Path:
        """Path of the receipt's scanned document."""
        return self.directory / receipt.file_name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_all(self) -> List[Receipt]:
        """Return a copy of the current receipts, in insertion order."""
        with self._lock:
            return list(self._receipts)

    def get(self, receipt_id: str) -> Optional[Receipt]:
        """Find a receipt by id."""
        with self._lock:
            for receipt in self._receipts:
                if receipt.id == receipt_id:
                    return receipt
        return None

    def add(self, receipt: Receipt) -> None:
        """Add a new receipt and persist immediately."""
        with self._lock:
            self._receipts.append(receipt)
            self._save()
        logger.info("Added receipt %s (%s)", receipt.id, receipt.file_name)

    def update(self, updated: Receipt) -> bool:
        """
        Replace the receipt with the same id and persist.

        Returns:
            True if a receipt was updated, False if the id is unknown
        """
        with self._lock:
            for idx, receipt in enumerate(self._receipts):
                if receipt.id == updated.id:
                    self._receipts[idx] = updated
                    self._save()
                    break
            else:
                return False
        logger.info("Updated receipt %s", updated.id)
        return True

    def delete(self, receipt_id: str, remove_file: bool = False) -> bool:
        """
        Delete a receipt by id and persist.

        Args:
            receipt_id: Id of the receipt to delete
            remove_file: Also delete the scanned document, if it exists

        Returns:
            True if a receipt was deleted, False if the id is unknown
        """
        with self._lock:
            removed = [r for r in self._receipts if r.id == receipt_id]
            if not removed:
                return False
            self._receipts = [r for r in self._receipts if r.id != receipt_id]
            self._save()

        logger.info("Deleted receipt %s", receipt_id)

        if remove_file:
            for receipt in removed:
                path = self.file_path(receipt).resolve()
                if path.parent != self.directory.resolve():
                    logger.warning(
                        "Not removing %s: outside %s", receipt.file_name, self.directory
                    )
                    continue
                if path.exists():
                    path.unlink()
                    logger.info("Removed document %s", path)
        return True

    def import_document(
        self,
        source_path: Union[str, Path],
        timestamp: Optional[datetime] = None,
    ) -> str:
        """
        Copy a scanned document into the store directory.

        The copy is named like "Receipt_<unix seconds><ext>"; if that name
        is taken the timestamp is bumped one second at a time.

        Args:
            source_path: The document to copy
            timestamp: Scan time used for the name (default: now)

        Returns:
            The new file name, relative to the store directory
        """
        source_path = Path(source_path)
        timestamp = timestamp or datetime.now()
        suffix = source_path.suffix.lower() or RECEIPT_FILE_SUFFIX

        with self._lock:
            taken = {receipt.file_name for receipt in self._receipts}
            file_name = generate_file_name(timestamp, suffix)
            while file_name in taken or (self.directory / file_name).exists():
                timestamp += timedelta(seconds=1)
                file_name = generate_file_name(timestamp, suffix)

            shutil.copyfile(source_path, self.directory / file_name)

        logger.debug("Copied %s to %s", source_path, file_name)
        return file_name

    def reload(self) -> None:
        """Re-read receipts.json from disk."""
        with self._lock:
            self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        """Load from disk; a missing or unreadable file means an empty store."""
        if not self.store_path.exists():
            self._receipts = []
            return

        try:
            with open(self.store_path, 'r', encoding='utf-8') as f:
                records = json.load(f)
            if not isinstance(records, list):
                raise ValueError("expected a JSON array")
            self._receipts = [Receipt.from_dict(record) for record in records]
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Could not load receipts from %s: %s", self.store_path, e)
            self._receipts = []
            return

        logger.debug("Loaded %d receipt(s) from %s", len(self._receipts), self.store_path)

    def _save(self) -> None:
        """Write all receipts to a temp file, then swap it in."""
        records = [receipt.to_dict() for receipt in self._receipts]
        fd, tmp_path = tempfile.mkstemp(
            prefix=".receipts_", suffix=".json", dir=str(self.directory)
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.store_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
