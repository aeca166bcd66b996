"""Receipt persistence module."""
from store.receipt_store import Receipt, ReceiptStore, build_receipt, generate_file_name

__all__ = ["Receipt", "ReceiptStore", "build_receipt", "generate_file_name"]
