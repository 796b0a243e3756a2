"""
Receipt Ledger

The in-memory, most-recent-first collection of receipt records.

DESIGN DECISION: Persist first, then commit.
Every insert/delete builds the new snapshot, writes it through the
ReceiptStoreInterface, and only then swaps the in-memory state. If the
write fails the ledger is unchanged and the StorageError propagates, so
memory never shows a receipt the disk does not have.

CRITICAL: The ledger is the single writer of receipt state. Readers get
tuple snapshots and cannot mutate it.
"""

from typing import Iterator, Optional, Union

from scansave.audit import AuditLogger
from scansave.i18n import Translator
from scansave.models.receipt import ReceiptRecord, SpendingCategory
from scansave.services.storage import (
    DuplicateError,
    PersistenceError,
    ReceiptStoreInterface,
)


ALL_CATEGORIES = "all"


class ReceiptLedger:
    """Ordered receipt collection backed by a snapshot store."""

    def __init__(
        self,
        store: ReceiptStoreInterface,
        records: Optional[list[ReceiptRecord]] = None,
        translator: Optional[Translator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._records: tuple[ReceiptRecord, ...] = tuple(records or ())
        self._translator = translator or Translator()
        self._audit = audit_logger or AuditLogger()

    @classmethod
    def load(
        cls,
        store: ReceiptStoreInterface,
        translator: Optional[Translator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> "ReceiptLedger":
        """
        Rehydrate the ledger from its store.

        A missing snapshot yields an empty ledger. A corrupt one is logged
        and also yields an empty ledger; it is overwritten on the next save.
        """
        audit_logger = audit_logger or AuditLogger()
        try:
            records = store.load()
        except PersistenceError as e:
            audit_logger.log_snapshot_corrupt(e.key, str(e))
            records = []
        return cls(store, records, translator=translator, audit_logger=audit_logger)

    # =========================================================================
    # READS
    # =========================================================================

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ReceiptRecord]:
        return iter(self._records)

    def __contains__(self, receipt_id: object) -> bool:
        return any(r.id == receipt_id for r in self._records)

    @property
    def is_empty(self) -> bool:
        return not self._records

    def snapshot(self) -> tuple[ReceiptRecord, ...]:
        return self._records

    def get(self, receipt_id: str) -> Optional[ReceiptRecord]:
        for record in self._records:
            if record.id == receipt_id:
                return record
        return None

    def search(self, query: str, language: Optional[str] = None) -> list[ReceiptRecord]:
        """
        Case-insensitive substring search.

        Matches the store name, the category label in the given language,
        or any item description. Ledger order is preserved; a blank query
        returns everything.
        """
        needle = (query or "").strip().lower()
        if not needle:
            return list(self._records)

        def matches(record: ReceiptRecord) -> bool:
            if needle in record.store_name.lower():
                return True
            if needle in self._translator.category_label(record.category, language).lower():
                return True
            return any(needle in item.description.lower() for item in record.items)

        return [r for r in self._records if matches(r)]

    def filter_by_category(
        self,
        category: Union[SpendingCategory, str],
    ) -> list[ReceiptRecord]:
        """Records in one category, or all of them for "all"."""
        if category == ALL_CATEGORIES:
            return list(self._records)
        wanted = SpendingCategory.coerce(category)
        return [r for r in self._records if r.category == wanted]

    # =========================================================================
    # WRITES
    # =========================================================================

    def insert(self, record: ReceiptRecord) -> ReceiptRecord:
        """
        Add a record at the front of the ledger.

        Raises:
            DuplicateError: If a record with the same id exists
            StorageError: If the snapshot could not be written
        """
        if record.id in self:
            raise DuplicateError(f"Receipt {record.id} already exists")

        updated = (record,) + self._records
        self._store.save(list(updated))
        self._records = updated
        self._audit.log_receipt_saved(
            receipt_id=record.id,
            store_name=record.store_name,
            total=record.formatted_total,
        )
        return record

    def delete(self, receipt_id: str) -> bool:
        """Remove a record. Returns False (and writes nothing) if absent."""
        if receipt_id not in self:
            return False

        updated = tuple(r for r in self._records if r.id != receipt_id)
        self._store.save(list(updated))
        self._records = updated
        self._audit.log_receipt_deleted(receipt_id)
        return True
