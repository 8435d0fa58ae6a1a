"""Transaction queue store: the durable record of unconfirmed transactions.

One JSON document per operation kind (``transfer-domestic.json``,
``transfer-foreign.json``) maps each account class to its ordered list of
transaction records::

    {
      "individual": [
        {"recipient": {"name": "Jane Doe", "iban": "BG...", "bic": null, ...},
         "amount": "100.00", "currency": "BGN", "description": "rent",
         "funds_origin": null}
      ]
    }

Every mutation rewrites the whole document through a temp-file-and-rename,
so a crash leaves either the previous or the new state on disk. A document
that cannot be parsed raises ``QueueCorrupt`` and is never treated as an
empty queue.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from raiffcli.exceptions import QueueCorrupt
from raiffcli.models.transaction import AccountClass, Batch, BatchKey, OperationKind, TransactionRequest
from raiffcli.store.files import read_json_document, write_json_document

logger = logging.getLogger(__name__)


class TransactionQueueStore:
    """Keyed, durable collection of pending transaction batches.

    Args:
        directory: Directory holding one queue document per operation kind.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    @classmethod
    def from_settings(cls) -> "TransactionQueueStore":
        from raiffcli.settings import get_settings

        return cls(Path(get_settings().storage.data_dir) / "queue")

    def path_for(self, operation: OperationKind) -> Path:
        return self.directory / f"{operation.value}.json"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self, key: BatchKey) -> Batch:
        """Return the persisted batch for *key* (empty if there is none).

        Raises:
            QueueCorrupt: If the queue document cannot be parsed.
        """
        path = self.path_for(key.operation)
        document = read_json_document(path)
        return self._parse_batch(path, key.account_class.value, document.get(key.account_class.value))

    def save(self, key: BatchKey, batch: Batch) -> None:
        """Atomically replace the persisted batch for *key*.

        Saving an empty batch removes the key from the document. Batches
        stored under other account classes are preserved.

        Raises:
            QueueCorrupt: If the existing document cannot be parsed.
        """
        path = self.path_for(key.operation)
        document = read_json_document(path)
        if batch.is_empty:
            document.pop(key.account_class.value, None)
        else:
            document[key.account_class.value] = [
                tx.model_dump(mode="json") for tx in batch.transactions
            ]
        write_json_document(path, document)
        logger.info("Saved %d transaction(s) for %s", len(batch), key)

    def remove(self, key: BatchKey, transaction: TransactionRequest) -> None:
        """Remove one value-equal *transaction* from the batch for *key*.

        A no-op when no stored transaction equals *transaction*, so the
        same removal can safely be repeated.
        """
        batch = self.load(key)
        remaining = batch.without(transaction)
        if len(remaining) == len(batch):
            logger.debug("Nothing to remove for %s: %s", key, transaction.summary())
            return
        self.save(key, remaining)
        logger.info("Removed confirmed transaction from %s: %s", key, transaction.summary())

    def discard(self, key: BatchKey) -> int:
        """Drop the whole batch for *key* on explicit operator request.

        Returns:
            The number of transactions discarded.
        """
        batch = self.load(key)
        if batch.is_empty:
            return 0
        self.save(key, Batch())
        logger.warning("Discarded %d queued transaction(s) for %s", len(batch), key)
        return len(batch)

    def outstanding(self) -> dict[BatchKey, Batch]:
        """Return every non-empty persisted batch, across all operation kinds.

        Raises:
            QueueCorrupt: If any queue document cannot be parsed.
        """
        result: dict[BatchKey, Batch] = {}
        for operation in OperationKind:
            for account_class in AccountClass:
                key = BatchKey(operation=operation, account_class=account_class)
                batch = self.load(key)
                if not batch.is_empty:
                    result[key] = batch
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_batch(path: Path, account_class: str, records: object) -> Batch:
        if records is None:
            return Batch()
        if not isinstance(records, list):
            raise QueueCorrupt(path, f"{account_class!r} must map to a list of transactions")
        try:
            return Batch(transactions=[TransactionRequest.model_validate(r) for r in records])
        except ValidationError as exc:
            raise QueueCorrupt(path, f"invalid transaction under {account_class!r}: {exc}") from exc
